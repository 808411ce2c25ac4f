# coding=utf-8
"""
Decode binlog files from disk, no master needed.

https://dev.mysql.com/doc/internals/en/binlog-file.html
4              magic number [fe 'b' 'i' 'n']
then events back to back: a 19 byte header and event-size - 19 body bytes
"""
import logging

from py_mysql_replicant.errors import NotABinlogFile, TruncatedFile, MalformedEvent
from py_mysql_replicant.packet.decoder import BinlogDecoder, log_event
from py_mysql_replicant.packet.event_header import EventHeader, EVENT_HEADER_SIZE
from py_mysql_replicant.protocol import Flags
from py_mysql_replicant.protocol.packet import hexdump

logger = logging.getLogger('py_mysql_replicant')


class DecodeFailure(object):
    """
    An event whose framing was fine but whose body could not be decoded
    """
    __slots__ = ('offset', 'header', 'data', 'error')

    handled = False

    def __init__(self, offset, header, data, error):
        self.offset = offset
        self.header = header
        self.data = data
        self.error = error

    def __repr__(self):
        return "<DecodeFailure at %d: %s>" % (self.offset, self.error)


class BinlogFileReader(object):
    """
    Iterates the events of one binlog file.

    Yields a BinlogEvent per event, or a DecodeFailure when the body is bad
    and the scan can go on. When iteration stops, end_condition says why:
    TruncatedFile for the end of the file, MalformedEvent when the framing
    itself is broken.
    """

    def __init__(self, filename, decoder=None):
        self.filename = filename
        self.decoder = decoder or BinlogDecoder()
        self.end_condition = None
        self.events = 0
        self.failures = 0

    def __iter__(self):
        return self.read_events()

    def read_events(self):
        self.end_condition = None

        with open(self.filename, mode="rb") as fr:
            _file_header = fr.read(len(Flags.BINLOG_MAGIC))
            if _file_header != Flags.BINLOG_MAGIC:
                raise NotABinlogFile("%s: binlog-header should be: %s, got %s" % (
                    self.filename, Flags.BINLOG_MAGIC.hex(), _file_header.hex()))

            offset = len(Flags.BINLOG_MAGIC)
            while True:
                event_header = fr.read(EVENT_HEADER_SIZE)
                if len(event_header) < EVENT_HEADER_SIZE:
                    self.end_condition = TruncatedFile(
                        "%s: %d bytes left at offset %d, no room for an event header" % (
                            self.filename, len(event_header), offset), offset)
                    if event_header:
                        logger.warning("%s", self.end_condition)
                    return

                header = EventHeader.loadFromPacket(event_header)
                if header.event_size < EVENT_HEADER_SIZE:
                    self.end_condition = MalformedEvent("%s: event at offset %d declares size %d" % (
                        self.filename, offset, header.event_size))
                    logger.error("%s\n%s", self.end_condition, hexdump(event_header))
                    return

                event_body = fr.read(header.body_size)
                if len(event_body) < header.body_size:
                    self.end_condition = TruncatedFile("%s: event at offset %d needs %d body bytes, %d left" % (
                        self.filename, offset, header.body_size, len(event_body)), offset)
                    logger.warning("%s", self.end_condition)
                    return

                try:
                    event = self.decoder.decode_event(event_header + event_body)
                except MalformedEvent as e:
                    self.failures += 1
                    logger.error("%s: decoding %s at offset %d failed: %s\n%s", self.filename,
                                 header.type_name, offset, e, hexdump(event_body))
                    yield DecodeFailure(offset, header, event_header + event_body, e)
                else:
                    self.events += 1
                    yield event

                offset += header.event_size


def replay(filename, sink=None):
    """
    Decode every event of filename, handing each to sink (or the log)
    """
    reader = BinlogFileReader(filename)
    logger.info("reading binlog file %s", filename)

    for event in reader:
        if isinstance(event, DecodeFailure):
            continue
        (sink or log_event)(event)

    logger.info("%s: %d events, %d failures", filename, reader.events, reader.failures)
    return reader
