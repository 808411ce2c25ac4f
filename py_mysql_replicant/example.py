import configparser
import logging
import os
import sys

from py_mysql_replicant.binlog_file import replay
from py_mysql_replicant.client import ReplicantClient
from py_mysql_replicant.errors import ReplicantError, ConnectionFailed
from py_mysql_replicant.lib.log import init_logger, parse_level
from py_mysql_replicant.settings import ReplicantSettings

logger = logging.getLogger('py_mysql_replicant')


def load_config(conf_file):
    config = configparser.ConfigParser()
    if not config.read(conf_file):
        raise ValueError("cannot read config file %s" % conf_file)
    for section in ("Replicant", "Logging"):
        if not config.has_section(section):
            config.add_section(section)
    return config


def replay_files(filenames):
    """
    Decode the listed binlog files one after the other, a bad file does not
    stop the ones after it
    """
    failed = 0
    for filename in filenames:
        try:
            replay(filename)
        except (OSError, ReplicantError) as e:
            logger.critical("reading %s failed: %s", filename, e)
            failed += 1
    return failed


def main(argv=None):
    argv = sys.argv if argv is None else argv
    conf_file = len(argv) > 1 and argv[1] or os.path.dirname(__file__) + "/example.conf"
    config = load_config(conf_file)

    init_logger(log_name=config["Logging"].get("log_name"),
                level=parse_level(config["Logging"].get("level")),
                log_dir=config["Logging"].get("log_dir"))

    settings = ReplicantSettings.from_config(config["Replicant"])

    if settings.read_binlogs:
        # offline mode: decode the files, then stop
        return 1 if replay_files(settings.read_binlogs) else 0

    logger.info("Start replicant from %s as server-id %d" % (settings.master_address, settings.server_id))

    client = ReplicantClient(settings)
    try:
        client.run()
    except KeyboardInterrupt:
        status = client.master_status
        logger.info("Stop replicant from %s at %s %s" % (settings.master_address,
                                                        status and status.binlog_file,
                                                        status and status.binlog_pos))
    except ConnectionFailed as e:
        logger.error("%s", e)
        return 2
    except ReplicantError as e:
        logger.error("replication failed: %s", e)
        return 1
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
