# coding=utf-8

import logging

from py_mysql_replicant.errors import TruncatedInput
from py_mysql_replicant.protocol.Flags import header_name
from py_mysql_replicant.protocol.proto import Proto

logger = logging.getLogger('py_mysql_replicant')

NET_HEADER_SIZE = 4


class Packet(object):
    """
    Basic class for all mysql proto classes to inherit from
    """
    __slots__ = ('sequenceId',)

    def __init__(self):
        self.sequenceId = None

    def getPayload(self):
        """
        Return the payload as a bytearray
        """
        raise NotImplementedError('getPayload')

    def toPacket(self):
        """
        Convert a Packet object to a byte array stream
        """
        payload = self.getPayload()

        # Size is payload + packet size + sequence id
        size = len(payload)

        packet = bytearray(size + NET_HEADER_SIZE)

        packet[0:3] = Proto.build_fixed_int(3, size)
        packet[3] = (self.sequenceId or 0) & 0xff
        packet[4:] = payload

        return bytes(packet)


def read_packet_header(buffer):
    """
    Returns (payload length, sequence id) of the packet at the start of buffer

    >>> read_packet_header(b'\\x03\\x00\\x00\\x07abc')
    (3, 7)
    """
    if len(buffer) < NET_HEADER_SIZE:
        raise TruncatedInput("packet header needs %d bytes, have %d" % (NET_HEADER_SIZE, len(buffer)))
    proto = Proto(buffer)
    return proto.get_fixed_int(3), proto.get_fixed_int(1)


def getSize(packet):
    """
    Returns a specified packet size
    """
    return Proto(packet).get_fixed_int(3)


def getType(packet):
    """
    Returns a specified packet type
    """
    return packet[NET_HEADER_SIZE]


def getSequenceId(packet):
    """
    Returns the Sequence ID for the given packet
    """
    return Proto(packet, 3).get_fixed_int(1)


class PacketQueue(object):
    """
    Owned byte queue that hands out whole MySQL packets.

    Bytes are appended as they arrive; a frame is only visible through
    peek_frame()/consume_frame() once all of its length + 4 bytes are here.
    """
    __slots__ = ('_buffer',)

    def __init__(self):
        self._buffer = bytearray()

    def __len__(self):
        return len(self._buffer)

    def append(self, data):
        self._buffer.extend(data)

    def appendleft(self, data):
        self._buffer[0:0] = data

    def pending(self):
        return len(self._buffer)

    def frame_size(self):
        """
        Size of the next complete frame including its header, 0 if incomplete
        """
        try:
            length, _ = read_packet_header(self._buffer)
        except TruncatedInput:
            return 0
        if len(self._buffer) < length + NET_HEADER_SIZE:
            return 0
        return length + NET_HEADER_SIZE

    def peek_frame(self):
        size = self.frame_size()
        if not size:
            return None
        return bytes(self._buffer[:size])

    def consume_frame(self):
        size = self.frame_size()
        if not size:
            return None
        frame = bytes(self._buffer[:size])
        del self._buffer[:size]
        return frame

    def drain(self):
        data = bytes(self._buffer)
        self._buffer.clear()
        return data

    def clear(self):
        self._buffer.clear()


def hexdump(packet):
    """
    Hex + ASCII rendering, 16 bytes per line

    >>> hexdump(b'\\xfebin')[:21]
    '00000000  FE 62 69 6E'
    >>> hexdump(b'\\xfebin').endswith('.bin')
    True
    """
    offset = 0
    lines = []

    while offset < len(packet):
        dump = hex(offset)[2:].zfill(8).upper()
        dump += '  '

        for x in range(16):
            if offset + x >= len(packet):
                dump += '   '
            else:
                dump += hex(packet[offset + x])[2:].upper().zfill(2)
                dump += ' '
            if x == 7:
                dump += ' '

        dump += '  '

        for x in range(16):
            if offset + x >= len(packet):
                break
            c = packet[offset + x]
            if c < 32 or c >= 127:
                dump += '.'
            else:
                dump += chr(c)

            if x == 7:
                dump += ' '

        lines.append(dump.rstrip())
        offset += 16

    return '\n'.join(lines)


def dump(packet, title='Packet Dump'):
    """
    Dumps a packet to the logger
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return

    if len(packet) > NET_HEADER_SIZE:
        title = '%s Length: %s, SequenceId: %s, Header: %s=%s' % (
            title, getSize(packet), getSequenceId(packet), header_name(getType(packet)), getType(packet))

    logger.debug('%s\n%s', title, hexdump(packet))
