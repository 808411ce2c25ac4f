# coding=utf-8
from py_mysql_replicant.errors import MalformedEvent, TruncatedInput
from py_mysql_replicant.protocol.Flags import event_type_name
from py_mysql_replicant.protocol.proto import Proto

EVENT_HEADER_SIZE = 19


class EventHeader(object):
    '''
    https://dev.mysql.com/doc/internals/en/binlog-event-header.html
    4              timestamp
    1              event type
    4              server-id
    4              event-size
    4              log pos
    2              flags
    '''
    __slots__ = ('timestamp', 'event_type', 'server_id', 'event_size', 'log_pos', 'flags')

    def __init__(self, timestamp=0, event_type=0, server_id=0, event_size=EVENT_HEADER_SIZE, log_pos=0, flags=0):
        self.timestamp = timestamp
        self.event_type = event_type
        self.server_id = server_id
        self.event_size = event_size
        self.log_pos = log_pos
        self.flags = flags

    @property
    def body_size(self):
        return self.event_size - EVENT_HEADER_SIZE

    @property
    def type_name(self):
        return event_type_name(self.event_type) or "UNKNOWN(%d)" % self.event_type

    def getPayload(self):
        payload = bytearray()

        payload.extend(Proto.build_fixed_int(4, self.timestamp))
        payload.extend(Proto.build_fixed_int(1, self.event_type))
        payload.extend(Proto.build_fixed_int(4, self.server_id))
        payload.extend(Proto.build_fixed_int(4, self.event_size))
        payload.extend(Proto.build_fixed_int(4, self.log_pos))
        payload.extend(Proto.build_fixed_int(2, self.flags))

        return payload

    @staticmethod
    def loadFromPacket(packet, offset=0):
        if len(packet) - offset < EVENT_HEADER_SIZE:
            raise MalformedEvent("event header needs %d bytes, have %d" % (
                EVENT_HEADER_SIZE, max(0, len(packet) - offset)))

        proto = Proto(packet, offset)
        try:
            return EventHeader(timestamp=proto.get_fixed_int(4),
                               event_type=proto.get_fixed_int(1),
                               server_id=proto.get_fixed_int(4),
                               event_size=proto.get_fixed_int(4),
                               log_pos=proto.get_fixed_int(4),
                               flags=proto.get_fixed_int(2))
        except TruncatedInput as e:
            raise MalformedEvent(str(e))

    def __repr__(self):
        return "<EventHeader %s timestamp=%d server_id=%d size=%d pos=%d flags=%04x>" % (
            self.type_name, self.timestamp, self.server_id, self.event_size, self.log_pos, self.flags)


def decode_event_header(data):
    return EventHeader.loadFromPacket(data)
