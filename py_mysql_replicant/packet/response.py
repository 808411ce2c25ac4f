#!/usr/bin/env python
# coding=utf-8

from py_mysql_replicant.errors import MalformedPacket
from py_mysql_replicant.protocol import Flags
from py_mysql_replicant.protocol.packet import Packet
from py_mysql_replicant.protocol.proto import Proto, scramble_native_password


class Response(Packet):
    """
    https://dev.mysql.com/doc/internals/en/connection-phase-packets.html#packet-Protocol::HandshakeResponse41

    4              capability flags, CLIENT_PROTOCOL_41 always set
    4              max-packet size
    1              character set
    string[23]     reserved (all [0])
    string[NUL]    username
    lenenc-int     length of auth-response
    string[n]      auth-response
    string[NUL]    database, if CLIENT_CONNECT_WITH_DB
    string[NUL]    auth plugin name, if CLIENT_PLUGIN_AUTH
    """
    __slots__ = ('capabilityFlags', 'maxPacketSize', 'characterSet',
                 'username', 'authResponse', 'schema',
                 'pluginName') + Packet.__slots__

    def __init__(self):
        super(Response, self).__init__()
        self.capabilityFlags = Flags.CLIENT_PROTOCOL_41
        self.maxPacketSize = Flags.MAX_PACKET_SIZE
        self.characterSet = Flags.CS_utf8_general_ci
        self.username = ''
        self.authResponse = b''
        self.schema = ''
        self.pluginName = ''

    def setCapabilityFlag(self, flag):
        self.capabilityFlags |= flag

    def hasCapabilityFlag(self, flag):
        return ((self.capabilityFlags & flag) == flag)

    def getPayload(self):
        payload = bytearray()

        payload.extend(Proto.build_fixed_int(4, self.capabilityFlags))
        payload.extend(Proto.build_fixed_int(4, self.maxPacketSize))
        payload.extend(Proto.build_fixed_int(1, self.characterSet))
        payload.extend(Proto.build_filler(23))
        payload.extend(Proto.build_null_str(self.username))

        if self.hasCapabilityFlag(Flags.CLIENT_SECURE_CONNECTION):
            payload.extend(Proto.build_lenenc_int(len(self.authResponse)))
            payload.extend(Proto.build_fixed_str(len(self.authResponse), self.authResponse))
        else:
            payload.extend(Proto.build_null_str(self.authResponse))

        if self.hasCapabilityFlag(Flags.CLIENT_CONNECT_WITH_DB):
            payload.extend(Proto.build_null_str(self.schema))

        if self.hasCapabilityFlag(Flags.CLIENT_PLUGIN_AUTH):
            payload.extend(Proto.build_null_str(self.pluginName))

        return payload


def encode_auth_response(challenge, username, password, schema=None):
    """
    Build the HandshakeResponse41 packet answering challenge.

    The capabilities are what both sides support, the character set is the
    server's, and the password only travels as its 20 byte scramble.
    """
    if not challenge.hasCapabilityFlag(Flags.CLIENT_PROTOCOL_41):
        raise MalformedPacket("master does not support the 4.1 protocol")

    response = Response()
    response.sequenceId = ((challenge.sequenceId or 0) + 1) & 0xff
    response.capabilityFlags = Flags.CLIENT_CAPABILITIES & challenge.capabilityFlags
    if schema:
        response.setCapabilityFlag(Flags.CLIENT_CONNECT_WITH_DB & challenge.capabilityFlags)
    response.characterSet = challenge.characterSet
    response.username = username or ''
    response.schema = schema or ''
    response.authResponse = scramble_native_password(password, challenge.nonce)
    response.pluginName = Flags.NATIVE_PASSWORD_PLUGIN

    return response.toPacket()
