#!/usr/bin/env python
# coding=utf-8

from py_mysql_replicant.errors import TruncatedInput, MalformedPacket
from py_mysql_replicant.protocol import Flags
from py_mysql_replicant.protocol.packet import Packet
from py_mysql_replicant.protocol.proto import Proto


class ERR(Packet):
    """
    1              [ff] the ERR header
    2              error code
    1              '#' marker
    string[5]      sql state
    string[EOF]    error message
    """
    __slots__ = ('errorCode', 'sqlState', 'errorMessage') + Packet.__slots__

    def __init__(self, errorCode=0, sqlState="HY000", errorMessage=""):
        super(ERR, self).__init__()
        self.sequenceId = 2
        self.errorCode = errorCode
        self.sqlState = sqlState
        self.errorMessage = errorMessage

    def getPayload(self):
        payload = bytearray()

        payload.extend(Proto.build_byte(Flags.ERR))
        payload.extend(Proto.build_fixed_int(2, self.errorCode))
        payload.extend(Proto.build_byte(ord('#')))
        payload.extend(Proto.build_fixed_str(5, self.sqlState))
        payload.extend(Proto.build_eop_str(self.errorMessage))

        return payload

    @staticmethod
    def loadFromPacket(packet):
        obj = ERR()
        proto = Proto(packet, 3)

        try:
            obj.sequenceId = proto.get_fixed_int(1)
            if proto.get_fixed_int(1) != Flags.ERR:
                raise MalformedPacket("not an ERR packet")
            obj.errorCode = proto.get_fixed_int(2)
            # pre-4.1 servers send no sql state
            if proto.has_remaining_data() and proto.packet[proto.offset] == ord('#'):
                proto.get_filler(1)
                obj.sqlState = proto.get_fixed_str(5)
            obj.errorMessage = proto.get_eop_str()
        except TruncatedInput as e:
            raise MalformedPacket("short ERR packet: %s" % e)

        return obj
