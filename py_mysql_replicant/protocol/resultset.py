# coding=utf-8
"""
Text protocol result sets, as much of them as SHOW MASTER STATUS needs.

A result set arrives as::

    column count        lenenc-int
    field definitions   one packet per column
    EOF
    rows                one packet per row, one lenenc-str per column
    EOF

All helpers take whole packets (network header included).
"""
import collections
import logging

from py_mysql_replicant.errors import MalformedResultSet, TruncatedInput, MalformedInteger
from py_mysql_replicant.protocol import Flags
from py_mysql_replicant.protocol.packet import NET_HEADER_SIZE, getType
from py_mysql_replicant.protocol.proto import Proto

logger = logging.getLogger('py_mysql_replicant')

MasterStatus = collections.namedtuple('MasterStatus', ['binlog_file', 'binlog_pos'])


def is_eof_packet(packet):
    # an EOF is 0xfe with at most 8 payload bytes, longer ones are lenenc-ints in rows
    return (len(packet) > NET_HEADER_SIZE and getType(packet) == Flags.EOF
            and len(packet) - NET_HEADER_SIZE < 9)


def is_err_packet(packet):
    return len(packet) > NET_HEADER_SIZE and getType(packet) == Flags.ERR


def is_resultset_complete(packets):
    """
    True once the terminating EOF, or an ERR anywhere in the result set, is buffered.

    Neither field definitions nor text rows can start with 0xff, so any ERR
    header ends the result set.
    """
    if not packets:
        return False
    if get_err_packet(packets) is not None:
        return True
    return sum(1 for packet in packets if is_eof_packet(packet)) >= 2


def get_err_packet(packets):
    for packet in packets:
        if is_err_packet(packet):
            return packet
    return None


def get_field_count(packet):
    try:
        return Proto(packet, NET_HEADER_SIZE).get_lenenc_int()
    except (TruncatedInput, MalformedInteger) as e:
        raise MalformedResultSet("bad column count packet: %s" % e)


def skip_field_definitions(packets):
    """
    Returns the index of the first row packet, just past the EOF that ends
    the field definitions
    """
    field_count = get_field_count(packets[0])
    for index in range(1, len(packets)):
        if is_eof_packet(packets[index]):
            if index - 1 != field_count:
                raise MalformedResultSet("expected %d field definitions, got %d" % (field_count, index - 1))
            return index + 1
    raise MalformedResultSet("no EOF after the field definitions")


def read_text_row(packet, field_count):
    """
    Split a text row into field_count values, bytes or None for NULL
    """
    proto = Proto(packet, NET_HEADER_SIZE)
    values = []
    try:
        for _ in range(field_count):
            if proto.packet[proto.offset] == Flags.LENENC_NULL:
                proto.get_filler(1)
                values.append(None)
                continue
            field_len = proto.get_lenenc_int()
            values.append(proto.get_lenenc_bytes(field_len))
    except (TruncatedInput, MalformedInteger, IndexError) as e:
        raise MalformedResultSet("bad row: %s" % e)
    return values


def parse_master_status(packets):
    """
    Pull File and Position out of the SHOW MASTER STATUS result set.

    Columns after the first two (Binlog_Do_DB, Executed_Gtid_Set, ...) are
    skipped without looking at them.
    """
    field_count = get_field_count(packets[0])
    if field_count < 2:
        raise MalformedResultSet("SHOW MASTER STATUS returned %d columns" % field_count)

    rows = []
    for packet in packets[skip_field_definitions(packets):]:
        if is_eof_packet(packet):
            break
        rows.append(packet)

    if not rows:
        raise MalformedResultSet("SHOW MASTER STATUS returned no rows, is log-bin enabled?")
    if len(rows) > 1:
        logger.warning("SHOW MASTER STATUS returned %d rows, using the first", len(rows))

    binlog_file, binlog_pos = read_text_row(rows[0], field_count)[:2]

    if not binlog_file:
        raise MalformedResultSet("empty binlog file name")
    if not binlog_pos or not binlog_pos.isdigit():
        raise MalformedResultSet("binlog position %r is not an unsigned integer" % (binlog_pos,))

    return MasterStatus(binlog_file.decode("utf-8", "replace"), int(binlog_pos))
