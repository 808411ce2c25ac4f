# coding=utf-8
import re

DEFAULT_MASTER_ADDRESS = ":4040"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3306
DEFAULT_USERNAME = "repl"
DEFAULT_SERVER_ID = 2


def parse_address(address, default_port=DEFAULT_PORT):
    """
    Split host:port, an empty host means the local machine

    >>> parse_address(":4040")
    ('127.0.0.1', 4040)
    >>> parse_address("db1.example.com")
    ('db1.example.com', 3306)
    >>> parse_address("[::1]:3307")
    ('::1', 3307)
    """
    address = address.strip()
    match = re.match(r'^\[(?P<host6>[^\]]+)\](:(?P<port6>\d+))?$', address)
    if match:
        host, port = match.group('host6'), match.group('port6')
    elif address.count(':') == 1:
        host, port = address.split(':')
    else:
        host, port = address, None

    if port is not None and not port.isdigit():
        raise ValueError("bad port in master address %r" % address)

    return host or DEFAULT_HOST, int(port) if port else default_port


def _split_paths(value):
    return [path for path in re.split(r'[\s,]+', value or '') if path]


class ReplicantSettings(object):
    """
    Settings of one replicant, read once at start up
    """
    __slots__ = ('host', 'port', 'username', 'password', 'server_id', 'non_blocking',
                 'read_binlogs', 'connect_timeout')

    def __init__(self, master_address=DEFAULT_MASTER_ADDRESS, username=DEFAULT_USERNAME, password="",
                 server_id=DEFAULT_SERVER_ID, non_blocking=False, read_binlogs=None, connect_timeout=10.0):
        self.host, self.port = parse_address(master_address)
        self.username = username
        self.password = password
        self.server_id = server_id
        self.non_blocking = non_blocking
        self.read_binlogs = list(read_binlogs or [])
        self.connect_timeout = connect_timeout

    @property
    def master_address(self):
        return "%s:%d" % (self.host, self.port)

    @staticmethod
    def from_config(section):
        """
        Build settings from a configparser section
        """
        return ReplicantSettings(
            master_address=section.get("master_address", DEFAULT_MASTER_ADDRESS),
            username=section.get("username", DEFAULT_USERNAME),
            password=section.get("password", ""),
            server_id=section.getint("server_id", DEFAULT_SERVER_ID),
            non_blocking=section.getboolean("non_blocking", False),
            read_binlogs=_split_paths(section.get("read_binlogs", "")),
            connect_timeout=section.getfloat("connect_timeout", 10.0),
        )
