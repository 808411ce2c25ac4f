#!/usr/bin/env python
# coding=utf-8

from pymysql.constants.COMMAND import COM_BINLOG_DUMP

from py_mysql_replicant.protocol import Flags
from py_mysql_replicant.protocol.packet import Packet
from py_mysql_replicant.protocol.proto import Proto


class DumpPos(Packet):
    """
    https://dev.mysql.com/doc/internals/en/com-binlog-dump.html
    1              [12] COM_BINLOG_DUMP
    4              binlog-pos
    2              flags
    4              server-id
    string[EOF]    binlog-filename
    """
    __slots__ = ('server_id', 'log_file', 'log_pos', 'flags') + Packet.__slots__

    def __init__(self, server_id, log_file, log_pos, flags=0):
        super(DumpPos, self).__init__()
        self.sequenceId = 0
        self.server_id = server_id
        self.log_file = log_file
        self.log_pos = log_pos
        self.flags = flags

    def getPayload(self):
        payload = bytearray()

        payload.extend(Proto.build_byte(COM_BINLOG_DUMP))
        payload.extend(Proto.build_fixed_int(4, self.log_pos))
        payload.extend(Proto.build_fixed_int(2, self.flags))
        payload.extend(Proto.build_fixed_int(4, self.server_id))
        payload.extend(Proto.build_eop_str(self.log_file))

        return payload


def encode_binlog_dump(position, server_id, filename, non_blocking=False):
    flags = Flags.BINLOG_DUMP_NON_BLOCK if non_blocking else 0
    return DumpPos(server_id, filename, position, flags).toPacket()
