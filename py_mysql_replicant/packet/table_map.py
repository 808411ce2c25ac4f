# coding=utf-8
"""
TABLE_MAP_EVENT and the per-column metadata that comes with it.

The metadata block has no self description: how many bytes belong to a
column, and what they mean, depends on that column's type. COLUMN_METADATA
maps a type to (width, decoder); types missing from the table take no
metadata at all, so unknown types never shift the columns after them.
"""
import logging

from pymysql.constants import FIELD_TYPE

from py_mysql_replicant.errors import MalformedEvent
from py_mysql_replicant.packet.binlog_event import BinlogEvent
from py_mysql_replicant.protocol.proto import Proto

logger = logging.getLogger('py_mysql_replicant')


class Column(object):
    __slots__ = ('index', 'type', 'real_type', 'length', 'pack_length',
                 'precision', 'decimals', 'nullable')

    def __init__(self, index, col_type):
        self.index = index
        self.type = col_type
        self.real_type = col_type
        self.length = 0
        self.pack_length = 0
        self.precision = 0
        self.decimals = 0
        self.nullable = False

    def __repr__(self):
        return "<Column [%d] type=%d real_type=%d length=%d pack_length=%d>" % (
            self.index, self.type, self.real_type, self.length, self.pack_length)


def _string_meta(column, meta):
    column.real_type = meta[0]
    column.length = meta[1]


def _var_string_meta(column, meta):
    column.length = meta[0] | (meta[1] << 8)


def _pack_length_meta(column, meta):
    # BLOB: 1..4, the size of the length prefix; FLOAT/DOUBLE: 4 or 8
    column.pack_length = meta[0]


def _decimal_meta(column, meta):
    column.precision = meta[0]
    column.decimals = meta[1]


def _enum_meta(column, meta):
    # real type tells ENUM from SET
    column.real_type = meta[0]
    column.pack_length = meta[1]


def _bit_meta(column, meta):
    column.length = meta[1] * 8 + meta[0]


def _no_meta(column, meta):
    pass


COLUMN_METADATA = {
    FIELD_TYPE.STRING: (2, _string_meta),
    FIELD_TYPE.VAR_STRING: (2, _var_string_meta),
    FIELD_TYPE.BLOB: (1, _pack_length_meta),
    FIELD_TYPE.DECIMAL: (2, _decimal_meta),
    FIELD_TYPE.DOUBLE: (1, _pack_length_meta),
    FIELD_TYPE.FLOAT: (1, _pack_length_meta),
    FIELD_TYPE.ENUM: (2, _enum_meta),
    FIELD_TYPE.BIT: (2, _bit_meta),
}

NO_METADATA = (0, _no_meta)


def column_metadata_for(col_type):
    """
    (width, decoder) for a column type, zero width for anything unlisted
    """
    return COLUMN_METADATA.get(col_type, NO_METADATA)


def decode_column_metadata(column_types, metadata):
    """
    Walk the columns in order, giving each one its slice of metadata.

    Returns (columns, bytes consumed).
    """
    columns = []
    offset = 0

    for index, col_type in enumerate(column_types):
        width, decode = column_metadata_for(col_type)
        if offset + width > len(metadata):
            raise MalformedEvent("column %d (type %d) needs %d metadata bytes at offset %d, only %d declared" % (
                index, col_type, width, offset, len(metadata)))
        column = Column(index, col_type)
        decode(column, metadata[offset:offset + width])
        offset += width
        columns.append(column)

    if offset != len(metadata):
        logger.debug("table map metadata: %d of %d bytes used", offset, len(metadata))

    return columns, offset


class TableMapEvent(BinlogEvent):
    """
    https://dev.mysql.com/doc/internals/en/table-map-event.html

    post-header:
    6              table id
    2              flags
    payload:
    1              schema name length
    string         schema name, NUL terminated
    1              table name length
    string         table name, NUL terminated
    lenenc-int     column count
    string.var_len column types, one byte per column
    lenenc-str     metadata block
    string.var_len null bitmap, (column count + 7) / 8 bytes
    """
    __slots__ = ('table_id', 'flags', 'db_name', 'table_name', 'column_count',
                 'column_types', 'metadata', 'null_bitmap', 'columns', 'metadata_consumed')

    @staticmethod
    def loadFromPacket(header, body):
        obj = TableMapEvent(header)
        proto = Proto(body)

        obj.table_id = proto.get_fixed_int(6)
        obj.flags = proto.get_fixed_int(2)

        db_len = proto.get_fixed_int(1)
        obj.db_name = proto.get_fixed_str(db_len)
        proto.get_filler(1)

        table_len = proto.get_fixed_int(1)
        obj.table_name = proto.get_fixed_str(table_len)
        proto.get_filler(1)

        obj.column_count = proto.get_lenenc_int()
        obj.column_types = list(proto.get_fixed_bytes(obj.column_count))

        metadata_len = proto.get_lenenc_int()
        obj.metadata = proto.get_lenenc_bytes(metadata_len)

        obj.null_bitmap = proto.get_fixed_bytes((obj.column_count + 7) // 8)

        obj.columns, obj.metadata_consumed = decode_column_metadata(obj.column_types, obj.metadata)
        for column in obj.columns:
            column.nullable = bool(obj.null_bitmap[column.index // 8] & (1 << (column.index % 8)))

        return obj

    def describe(self):
        lines = ["table-id = %d, flags = %04x, db = %s, table = %s, columns = %d" % (
            self.table_id, self.flags, self.db_name, self.table_name, self.column_count)]
        for column in self.columns:
            lines.append("[%d] type = %d, length = %d" % (column.index, column.real_type, column.length))
        return "\n".join(lines)
