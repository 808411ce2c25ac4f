# coding=utf-8

from py_mysql_replicant.errors import MalformedPacket, TruncatedInput
from py_mysql_replicant.protocol import Flags
from py_mysql_replicant.protocol.packet import Packet, NET_HEADER_SIZE, read_packet_header
from py_mysql_replicant.protocol.proto import Proto

# protocol version, empty server version, connection id, challenge1, filler, capability flags
MIN_HANDSHAKE_SIZE = 1 + 1 + 4 + 8 + 1 + 2


class Challenge(Packet):
    """
    https://dev.mysql.com/doc/internals/en/connection-phase-packets.html#packet-Protocol::HandshakeV10

    1              [0a] protocol version
    string[NUL]    server version
    4              connection id
    string[8]      auth-plugin-data-part-1
    1              [00] filler
    2              capability flags (lower 2 bytes)
    1              character set
    2              status flags
    2              capability flags (upper 2 bytes)
    1              length of auth-plugin-data
    string[10]     reserved (all [00])
    string[$len]   auth-plugin-data-part-2 ($len=MAX(13, length of auth-plugin-data - 8))
    string[NUL]    auth-plugin name
    """
    __slots__ = ('protocolVersion', 'serverVersion', 'connectionId',
                 'challenge1', 'capabilityFlags', 'characterSet',
                 'statusFlags', 'challenge2', 'authPluginDataLength',
                 'authPluginName',
                 ) + Packet.__slots__

    def __init__(self):
        super(Challenge, self).__init__()
        self.protocolVersion = 0x0a
        self.serverVersion = ''
        self.connectionId = 0
        self.challenge1 = b''
        self.capabilityFlags = Flags.CLIENT_PROTOCOL_41
        self.characterSet = 0
        self.statusFlags = 0
        self.challenge2 = b''
        self.authPluginDataLength = 0
        self.authPluginName = ''

    def hasCapabilityFlag(self, flag):
        return ((self.capabilityFlags & flag) == flag)

    @property
    def nonce(self):
        """
        The 20 byte scramble seed, both halves of auth-plugin-data
        """
        return bytes(self.challenge1) + bytes(self.challenge2[:Flags.SCRAMBLE_LENGTH - 8])

    def getPayload(self):
        payload = bytearray()

        payload.extend(Proto.build_fixed_int(1, self.protocolVersion))
        payload.extend(Proto.build_null_str(self.serverVersion))
        payload.extend(Proto.build_fixed_int(4, self.connectionId))
        payload.extend(Proto.build_fixed_str(8, self.challenge1))
        payload.extend(Proto.build_filler(1))
        payload.extend(Proto.build_fixed_int(2, self.capabilityFlags & 0xffff))
        payload.extend(Proto.build_fixed_int(1, self.characterSet))
        payload.extend(Proto.build_fixed_int(2, self.statusFlags))
        payload.extend(Proto.build_fixed_int(2, self.capabilityFlags >> 16))

        if self.hasCapabilityFlag(Flags.CLIENT_PLUGIN_AUTH):
            payload.extend(Proto.build_fixed_int(1, self.authPluginDataLength))
        else:
            payload.extend(Proto.build_filler(1))

        payload.extend(Proto.build_filler(10))

        if self.hasCapabilityFlag(Flags.CLIENT_SECURE_CONNECTION):
            payload.extend(Proto.build_fixed_str(
                max(13, self.authPluginDataLength - 8), self.challenge2))
        if self.hasCapabilityFlag(Flags.CLIENT_PLUGIN_AUTH):
            payload.extend(Proto.build_null_str(self.authPluginName))

        return payload

    @staticmethod
    def loadFromPacket(packet):
        try:
            length, sequenceId = read_packet_header(packet)
        except TruncatedInput:
            raise MalformedPacket("handshake shorter than a packet header")
        if length + NET_HEADER_SIZE != len(packet):
            raise MalformedPacket("handshake declares %d bytes but %d arrived" % (
                length, len(packet) - NET_HEADER_SIZE))
        if length < MIN_HANDSHAKE_SIZE:
            raise MalformedPacket("handshake of %d bytes is shorter than the minimum %d" % (
                length, MIN_HANDSHAKE_SIZE))

        obj = Challenge()
        obj.sequenceId = sequenceId
        proto = Proto(packet, NET_HEADER_SIZE)

        try:
            obj.protocolVersion = proto.get_fixed_int(1)
            if obj.protocolVersion != 0x0a:
                raise MalformedPacket("unsupported handshake protocol version %d" % obj.protocolVersion)
            obj.serverVersion = proto.get_null_str()
            obj.connectionId = proto.get_fixed_int(4)
            obj.challenge1 = proto.get_fixed_bytes(8)
            proto.get_filler(1)
            obj.capabilityFlags = proto.get_fixed_int(2)

            if proto.has_remaining_data():
                obj.characterSet = proto.get_fixed_int(1)
                obj.statusFlags = proto.get_fixed_int(2)
                obj.capabilityFlags |= proto.get_fixed_int(2) << 16

                if obj.hasCapabilityFlag(Flags.CLIENT_PLUGIN_AUTH):
                    obj.authPluginDataLength = proto.get_fixed_int(1)
                else:
                    proto.get_filler(1)

                proto.get_filler(10)

                if obj.hasCapabilityFlag(Flags.CLIENT_SECURE_CONNECTION):
                    obj.challenge2 = proto.get_fixed_bytes(
                        min(max(13, obj.authPluginDataLength - 8), proto.remaining()))

                if obj.hasCapabilityFlag(Flags.CLIENT_PLUGIN_AUTH):
                    try:
                        obj.authPluginName = proto.get_null_str()
                    except TruncatedInput:
                        # some 5.5 servers forget the terminating NUL
                        obj.authPluginName = proto.get_eop_str()
        except TruncatedInput as e:
            raise MalformedPacket("short handshake: %s" % e)

        if len(obj.nonce) < Flags.SCRAMBLE_LENGTH:
            raise MalformedPacket("handshake carries a %d byte scramble, expected %d" % (
                len(obj.nonce), Flags.SCRAMBLE_LENGTH))

        return obj


def decode_auth_challenge(packet):
    return Challenge.loadFromPacket(packet)
