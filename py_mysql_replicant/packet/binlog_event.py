# coding=utf-8
import re

from py_mysql_replicant.protocol import Flags
from py_mysql_replicant.protocol.proto import Proto


class BinlogEvent(object):
    """
    A decoded event: the common header plus type specific fields
    """
    __slots__ = ('header',)

    handled = True

    def __init__(self, header):
        self.header = header

    @property
    def event_type(self):
        return self.header.event_type

    def describe(self):
        return ""

    def __repr__(self):
        return "<%s %r>" % (self.__class__.__name__, self.header)


class UnknownEvent(BinlogEvent):
    """
    An event type without a decoder; the body is kept as raw bytes
    """
    __slots__ = ('body',)

    handled = False

    def __init__(self, header, body=b''):
        super(UnknownEvent, self).__init__(header)
        self.body = bytes(body)

    def describe(self):
        return "unknown event-type: %d" % self.header.event_type


class QueryEvent(BinlogEvent):
    """
    https://dev.mysql.com/doc/internals/en/query-event.html
    4              slave_proxy_id (thread id)
    4              execution time
    1              schema length
    2              error-code
    2              status-vars length
    string[$len]   status-vars
    string[$len]   schema
    1              [00]
    string[EOF]    query
    """
    __slots__ = ('thread_id', 'exec_time', 'error_code', 'status_vars', 'db_name', 'query')

    @staticmethod
    def loadFromPacket(header, body):
        obj = QueryEvent(header)
        proto = Proto(body)

        obj.thread_id = proto.get_fixed_int(4)
        obj.exec_time = proto.get_fixed_int(4)
        db_len = proto.get_fixed_int(1)
        obj.error_code = proto.get_fixed_int(2)
        status_vars_len = proto.get_fixed_int(2)
        obj.status_vars = proto.get_fixed_bytes(status_vars_len)
        obj.db_name = proto.get_fixed_str(db_len)
        proto.get_filler(1)
        obj.query = proto.get_eop_str()

        return obj

    def describe(self):
        return "QUERY: thread_id = %d, exec_time = %d, error-code = %d\ndb = %s, query = %s" % (
            self.thread_id, self.exec_time, self.error_code, self.db_name or "(null)", self.query or "(null)")


class RotateEvent(BinlogEvent):
    """
    8              position of the first event in the next log
    string[EOF]    name of the next log
    """
    __slots__ = ('position', 'next_binlog')

    @staticmethod
    def loadFromPacket(header, body):
        obj = RotateEvent(header)
        proto = Proto(body)

        obj.position = proto.get_fixed_int(8)
        obj.next_binlog = proto.get_eop_str()

        return obj

    def describe(self):
        return "ROTATE: next binlog = %s, position = %d" % (self.next_binlog, self.position)


class StopEvent(BinlogEvent):
    __slots__ = ()

    @staticmethod
    def loadFromPacket(header, body):
        return StopEvent(header)


class IntvarEvent(BinlogEvent):
    """
    1              type (LAST_INSERT_ID_EVENT = 1, INSERT_ID_EVENT = 2)
    8              value
    """
    __slots__ = ('intvar_type', 'value')

    @staticmethod
    def loadFromPacket(header, body):
        obj = IntvarEvent(header)
        proto = Proto(body)

        obj.intvar_type = proto.get_fixed_int(1)
        obj.value = proto.get_fixed_int(8)

        return obj

    def describe(self):
        return "INTVAR: type = %d, value = %d" % (self.intvar_type, self.value)


class XidEvent(BinlogEvent):
    __slots__ = ('xid',)

    @staticmethod
    def loadFromPacket(header, body):
        obj = XidEvent(header)
        obj.xid = Proto(body).get_fixed_int(8)
        return obj

    def describe(self):
        return "XID: xid = %d" % self.xid


# servers from this version on append checksum_alg + checksum to the FDE
CHECKSUM_VERSION = (5, 6, 1)


def _version_tuple(version):
    match = re.match(r'(\d+)\.(\d+)\.(\d+)', version)
    if not match:
        return (0, 0, 0)
    return tuple(int(part) for part in match.groups())


class FormatDescriptionEvent(BinlogEvent):
    '''
    https://dev.mysql.com/doc/internals/en/format-description-event.html
    2                binlog-version
    string[50]       mysql-server version
    4                create timestamp
    1                event header length
    string[p]        event type header lengths
    1                checksum algorithm (5.6.1+)
    4                checksum (5.6.1+)
    '''
    __slots__ = ('binlog_version', 'server_version', 'create_timestamp', 'header_length',
                 'post_header_lengths', 'checksum_alg')

    @staticmethod
    def loadFromPacket(header, body):
        obj = FormatDescriptionEvent(header)
        proto = Proto(body)

        obj.binlog_version = proto.get_fixed_int(2)
        obj.server_version = proto.get_fixed_str(50).rstrip('\x00')
        obj.create_timestamp = proto.get_fixed_int(4)
        obj.header_length = proto.get_fixed_int(1)

        if _version_tuple(obj.server_version) >= CHECKSUM_VERSION:
            trailer = 1 + Flags.BINLOG_CHECKSUM_LEN
            obj.post_header_lengths = proto.get_fixed_bytes(proto.remaining() - trailer)
            obj.checksum_alg = proto.get_fixed_int(1)
        else:
            obj.post_header_lengths = proto.get_eop_bytes()
            obj.checksum_alg = Flags.BINLOG_CHECKSUM_ALG_OFF

        return obj

    def describe(self):
        return "FORMAT_DESCRIPTION: binlog-version = %d, server-version = %s, checksum = %d" % (
            self.binlog_version, self.server_version, self.checksum_alg)
