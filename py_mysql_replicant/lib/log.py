# coding=utf-8
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_FORMAT = '%(asctime)s %(levelname)s [%(process)d] %(filename)s %(message)s '

# 单文件最大10M
LOG_MAX_BYTES = 10240000
LOG_BACKUP_COUNT = 100


def parse_level(value, default=logging.INFO):
    """
    Level from the [Logging] section: a number (10, 20) or a name (debug, INFO)

    >>> parse_level("10")
    10
    >>> parse_level("warning")
    30
    >>> parse_level(None)
    20
    """
    if value is None or str(value).strip() == "":
        return default
    value = str(value).strip()
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        raise ValueError("unknown log level %r" % value)
    return level


def log_file_path(log_name=None, log_dir=None):
    """
    <log_dir>/<log_name>.log, both defaulting to the running script: ../log/<script>.log
    """
    script_dir, name = os.path.split(os.path.abspath(sys.argv[0]))
    name = (log_name or name).replace(".py", "")
    log_dir = log_dir or os.path.join(os.path.dirname(script_dir), 'log')
    return os.path.join(log_dir, name + '.log')


def init_logger(log_name=None, level=logging.INFO, logger=None, log_dir=None):
    """初始化logger"""
    logger = logger or logging.getLogger('py_mysql_replicant')
    log_filename = log_file_path(log_name, log_dir)
    fmt = logging.Formatter(LOG_FORMAT)

    if not os.path.isdir(os.path.dirname(log_filename)):
        os.makedirs(os.path.dirname(log_filename))

    # a second call replaces the handlers of the first
    for handler in list(logger.handlers):
        if isinstance(handler, logging.StreamHandler):
            logger.removeHandler(handler)
            handler.close()

    file_handler = RotatingFileHandler(log_filename, mode='a', maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT,
                                       encoding="utf8")
    file_handler.setFormatter(fmt)
    logger.addHandler(file_handler)
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(fmt)
    logger.addHandler(stdout_handler)
    logger.setLevel(level)

    return logger
