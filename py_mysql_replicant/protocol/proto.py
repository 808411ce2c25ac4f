# coding=utf-8
import hashlib
from functools import partial

from py_mysql_replicant.errors import TruncatedInput, MalformedInteger
from py_mysql_replicant.protocol import Flags


class Proto(object):
    """
    Read cursor over a packet or event buffer.

    Every getter checks the remaining length first and raises TruncatedInput
    without moving the offset when the buffer is too short.
    """
    __slots__ = ('packet', 'offset')

    def __init__(self, packet, offset=0):
        self.packet = packet
        self.offset = offset

    def has_remaining_data(self):
        return len(self.packet) - self.offset > 0

    def remaining(self):
        return len(self.packet) - self.offset

    def _require(self, size):
        if size < 0 or self.offset + size > len(self.packet):
            raise TruncatedInput("need %d bytes at offset %d, have %d" % (
                size, self.offset, max(0, len(self.packet) - self.offset)))

    @staticmethod
    def build_fixed_int(size, value):
        """
        Build a MySQL Fixed Int

        >>> Proto.build_fixed_int(1, 0)
        bytearray(b'\\x00')

        >>> Proto.build_fixed_int(2, 0xFFFF)
        bytearray(b'\\xff\\xff')

        >>> Proto.build_fixed_int(3, 4096)
        bytearray(b'\\x00\\x10\\x00')

        >>> Proto.build_fixed_int(6, 0x010203)
        bytearray(b'\\x03\\x02\\x01\\x00\\x00\\x00')

        >>> Proto.build_fixed_int(8, 255)
        bytearray(b'\\xff\\x00\\x00\\x00\\x00\\x00\\x00\\x00')
        """
        packet = bytearray(size)
        for i in range(size):
            packet[i] = (value >> (8 * i)) & 0xFF
        return packet

    @staticmethod
    def build_lenenc_int(value):
        """
        Build a MySQL Length Encoded Int

        >>> Proto.build_lenenc_int(0)
        bytearray(b'\\x00')

        >>> Proto.build_lenenc_int(250)
        bytearray(b'\\xfa')

        >>> Proto.build_lenenc_int(251)
        bytearray(b'\\xfc\\xfb\\x00')

        >>> Proto.build_lenenc_int((2**16))
        bytearray(b'\\xfd\\x00\\x00\\x01')

        >>> Proto.build_lenenc_int((2**24))
        bytearray(b'\\xfe\\x00\\x00\\x00\\x01\\x00\\x00\\x00\\x00')
        """
        if value < 251:
            return Proto.build_fixed_int(1, value)
        elif value < (1 << 16):
            return Proto.build_byte(Flags.LENENC_INT16) + Proto.build_fixed_int(2, value)
        elif value < (1 << 24):
            return Proto.build_byte(Flags.LENENC_INT24) + Proto.build_fixed_int(3, value)
        return Proto.build_byte(Flags.LENENC_INT64) + Proto.build_fixed_int(8, value)

    @staticmethod
    def build_lenenc_str(value):
        """
        Build a MySQL Length Encoded String

        >>> Proto.build_lenenc_str('abc')
        bytearray(b'\\x03abc')

        Empty strings are supported:
        >>> Proto.build_lenenc_str('')
        bytearray(b'\\x00')
        """
        value = _to_bytes(value)
        return Proto.build_lenenc_int(len(value)) + Proto.build_fixed_str(len(value), value)

    @staticmethod
    def build_null_str(value):
        """
        Build a MySQL Null String

        >>> Proto.build_null_str('ab')
        bytearray(b'ab\\x00')

        Empty string is just a null:
        >>> Proto.build_null_str('')
        bytearray(b'\\x00')
        """
        value = _to_bytes(value)
        return Proto.build_fixed_str(len(value) + 1, value)

    @staticmethod
    def build_fixed_str(size, value):
        """
        Build a MySQL Fixed String

        >>> Proto.build_fixed_str(2, 'ab')
        bytearray(b'ab')

        Zero pad if size > sizeOf(value):
        >>> Proto.build_fixed_str(3, b'ab')
        bytearray(b'ab\\x00')
        """
        value = _to_bytes(value)
        packet = bytearray(size)
        packet[:len(value)] = value[:size]
        return packet

    @staticmethod
    def build_eop_str(value):
        """
        Build a MySQL End of Packet String

        >>> Proto.build_eop_str('ab')
        bytearray(b'ab')
        """
        return bytearray(_to_bytes(value))

    @staticmethod
    def build_filler(size, fill=0x00):
        """
        Build a set of filler

        >>> Proto.build_filler(2)
        bytearray(b'\\x00\\x00')

        >>> Proto.build_filler(1, 0x1c)
        bytearray(b'\\x1c')
        """
        return bytearray((fill,) * size)

    @staticmethod
    def build_byte(value):
        """
        Build a extendable byte

        >>> Proto.build_byte(0xFF)
        bytearray(b'\\xff')
        """
        packet = bytearray(1)
        packet[0] = value
        return packet

    def get_fixed_int(self, size):
        """
        Extract a fixed int the current packet

        >>> packet = Proto(Proto.build_fixed_int(4, 4096))
        >>> packet.get_fixed_int(4)
        4096
        """
        self._require(size)
        value = int.from_bytes(self.packet[self.offset:self.offset + size], 'little')
        self.offset += size
        return value

    def get_filler(self, size):
        """
        Skip over packet filler

        >>> packet = Proto(bytearray(5))
        >>> packet.get_filler(2)
        >>> packet.offset
        2
        """
        self._require(size)
        self.offset += size

    def get_lenenc_int(self):
        """
        Extract a Length Encoded Int from the current packet position

        >>> Proto(Proto.build_lenenc_int(255)).get_lenenc_int()
        255

        >>> Proto(b'\\xff').get_lenenc_int()
        Traceback (most recent call last):
        ...
        py_mysql_replicant.errors.MalformedInteger: reserved lenenc-int tag 0xff
        """
        self._require(1)
        tag = self.packet[self.offset]

        if tag < Flags.LENENC_NULL:
            self.offset += 1
            return tag
        elif tag == Flags.LENENC_INT16:
            size = 2
        elif tag == Flags.LENENC_INT24:
            size = 3
        elif tag == Flags.LENENC_INT64:
            size = 8
        elif tag == Flags.LENENC_NULL:
            raise MalformedInteger("NULL marker 0xfb where a lenenc-int was expected")
        else:
            raise MalformedInteger("reserved lenenc-int tag 0x%02x" % tag)

        self._require(1 + size)
        self.offset += 1
        return self.get_fixed_int(size)

    def get_fixed_bytes(self, size):
        """
        Extract exactly size raw bytes

        >>> Proto(b'abcdef', 2).get_fixed_bytes(3)
        b'cde'
        """
        self._require(size)
        value = bytes(self.packet[self.offset:self.offset + size])
        self.offset += size
        return value

    def get_lenenc_bytes(self, declared_len):
        """
        Read the declared_len bytes that follow an already read length

        >>> Proto(b'abc').get_lenenc_bytes(4)
        Traceback (most recent call last):
        ...
        py_mysql_replicant.errors.TruncatedInput: need 4 bytes at offset 0, have 3
        """
        return self.get_fixed_bytes(declared_len)

    def get_fixed_str(self, size):
        """
        Extract a fixed length string from the current packet position

        >>> target = "The brown dog did stuff"
        >>> pckt = Proto.build_fixed_str(len(target), target)
        >>> Proto(pckt).get_fixed_str(len(pckt))
        'The brown dog did stuff'
        """
        return _to_str(self.get_fixed_bytes(size))

    def get_null_bytes(self):
        end = self.packet.find(b'\x00', self.offset)
        if end == -1:
            raise TruncatedInput("unterminated string at offset %d" % self.offset)
        value = bytes(self.packet[self.offset:end])
        self.offset = end + 1
        return value

    def get_null_str(self):
        """
        Extract a null string from the current packet position

        >>> target = "The brown dog did stuff"
        >>> Proto(Proto.build_null_str(target)).get_null_str()
        'The brown dog did stuff'
        """
        return _to_str(self.get_null_bytes())

    def get_eop_bytes(self):
        value = bytes(self.packet[self.offset:])
        self.offset = len(self.packet)
        return value

    def get_eop_str(self):
        """
        Extract a eop string from the current packet position

        >>> target = "The brown dog did stuff"
        >>> Proto(Proto.build_eop_str(target)).get_eop_str()
        'The brown dog did stuff'
        """
        return _to_str(self.get_eop_bytes())

    def get_lenenc_str(self):
        """
        Extract a length encoded string from the current packet position

        >>> target = "The brown dog did stuff"
        >>> Proto(Proto.build_lenenc_str(target)).get_lenenc_str()
        'The brown dog did stuff'
        """
        size = self.get_lenenc_int()
        return _to_str(self.get_lenenc_bytes(size))


def _to_bytes(value):
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _to_str(value):
    return value.decode("utf-8", "replace")


sha1_new = partial(hashlib.new, 'sha1')


# mysql_native_password
# https://dev.mysql.com/doc/internals/en/secure-password-authentication.html#packet-Authentication::Native41

def scramble_native_password(password, message):
    """
    Scramble used for mysql_native_password

    >>> scramble_native_password('', b'12345678901234567890')
    b''
    >>> len(scramble_native_password('repl1234', b'12345678901234567890'))
    20
    """
    if not password:
        return b''

    password = _to_bytes(password)

    stage1 = sha1_new(password).digest()
    stage2 = sha1_new(stage1).digest()
    s = sha1_new()
    s.update(bytes(message[:Flags.SCRAMBLE_LENGTH]))
    s.update(stage2)
    result = s.digest()
    return _my_crypt(result, stage1)


def _my_crypt(message1, message2):
    result = bytearray(message1)

    for i in range(len(result)):
        result[i] ^= message2[i]

    return bytes(result)


if __name__ == "__main__":
    import doctest
    doctest.testmod()
