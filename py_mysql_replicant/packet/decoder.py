# coding=utf-8
import logging
import zlib

from py_mysql_replicant.errors import MalformedEvent, TruncatedInput, MalformedInteger
from py_mysql_replicant.packet.binlog_event import QueryEvent, RotateEvent, StopEvent, IntvarEvent, XidEvent, \
    FormatDescriptionEvent, UnknownEvent
from py_mysql_replicant.packet.event_header import EventHeader, EVENT_HEADER_SIZE
from py_mysql_replicant.packet.table_map import TableMapEvent
from py_mysql_replicant.protocol import Flags
from py_mysql_replicant.protocol.proto import Proto

logger = logging.getLogger('py_mysql_replicant')

EVENT_CLASSES = {
    Flags.QUERY_EVENT: QueryEvent,
    Flags.STOP_EVENT: StopEvent,
    Flags.ROTATE_EVENT: RotateEvent,
    Flags.INTVAR_EVENT: IntvarEvent,
    Flags.FORMAT_DESCRIPTION_EVENT: FormatDescriptionEvent,
    Flags.XID_EVENT: XidEvent,
    Flags.TABLE_MAP_EVENT: TableMapEvent,
}


class BinlogDecoder(object):
    """
    Turns raw events into BinlogEvent objects.

    One decoder follows one stream (a connection or a file): it remembers the
    checksum algorithm announced by the last FORMAT_DESCRIPTION_EVENT so the
    CRC32 trailer of the events after it can be checked and cut off.
    """

    def __init__(self):
        self.checksum_alg = Flags.BINLOG_CHECKSUM_ALG_OFF

    def reset(self):
        self.checksum_alg = Flags.BINLOG_CHECKSUM_ALG_OFF

    def decode_event(self, data):
        header = EventHeader.loadFromPacket(data)
        return self.decode_event_body(header, data[EVENT_HEADER_SIZE:])

    def decode_event_body(self, header, body):
        if header.event_size < EVENT_HEADER_SIZE:
            raise MalformedEvent("event size %d is smaller than its header" % header.event_size)
        if len(body) < header.body_size:
            raise MalformedEvent("%s declares %d body bytes, only %d present" % (
                header.type_name, header.body_size, len(body)))
        body = bytes(body[:header.body_size])

        if header.event_type == Flags.FORMAT_DESCRIPTION_EVENT:
            return self._decode_format_description(header, body)

        if self.checksum_alg == Flags.BINLOG_CHECKSUM_ALG_CRC32:
            body = self._strip_checksum(header, body)

        event_class = EVENT_CLASSES.get(header.event_type)
        if event_class is None:
            return UnknownEvent(header, body)

        try:
            return event_class.loadFromPacket(header, body)
        except (TruncatedInput, MalformedInteger) as e:
            raise MalformedEvent("%s at pos %d: %s" % (header.type_name, header.log_pos, e))

    def _decode_format_description(self, header, body):
        try:
            event = FormatDescriptionEvent.loadFromPacket(header, body)
        except (TruncatedInput, MalformedInteger) as e:
            raise MalformedEvent("FORMAT_DESCRIPTION_EVENT: %s" % e)

        if event.checksum_alg == Flags.BINLOG_CHECKSUM_ALG_CRC32:
            self._strip_checksum(header, body)

        if event.checksum_alg in (Flags.BINLOG_CHECKSUM_ALG_OFF, Flags.BINLOG_CHECKSUM_ALG_UNDEF):
            self.checksum_alg = Flags.BINLOG_CHECKSUM_ALG_OFF
        else:
            self.checksum_alg = event.checksum_alg
        logger.debug("binlog from %s, checksum algorithm %d", event.server_version, event.checksum_alg)

        return event

    @staticmethod
    def _strip_checksum(header, body):
        if len(body) < Flags.BINLOG_CHECKSUM_LEN:
            raise MalformedEvent("%s is too short to carry a checksum" % header.type_name)
        payload = body[:-Flags.BINLOG_CHECKSUM_LEN]
        expected = Proto(body, len(payload)).get_fixed_int(Flags.BINLOG_CHECKSUM_LEN)
        actual = zlib.crc32(bytes(header.getPayload()) + payload) & 0xffffffff
        if actual != expected:
            raise MalformedEvent("%s at pos %d: checksum %08x, expected %08x" % (
                header.type_name, header.log_pos, actual, expected))
        return payload


def describe_event(event):
    """
    One log line for the header, plus whatever the event adds
    """
    header = event.header
    text = "timestamp = %d, type = %d (%s), server-id = %d, size = %d, pos = %d, flags = %04x" % (
        header.timestamp, header.event_type, header.type_name, header.server_id,
        header.event_size, header.log_pos, header.flags)
    details = event.describe()
    if details:
        text += "\n" + details
    return text


def log_event(event):
    if event.handled:
        logger.info(describe_event(event))
    else:
        logger.info("unhandled %s", describe_event(event))
