# coding=utf-8
"""
Replication client state machine.

The machine never touches a socket. The host tells it when the connection
is up (connection_made), hands it whatever bytes arrive (receive_data), and
sends whatever it queued (data_to_send). Bytes can arrive in any split: a
state that needs a packet which is not complete yet simply does nothing and
is tried again on the next receive_data().

    CONNECTING -> AWAITING_HANDSHAKE -> SENDING_AUTH -> AWAITING_AUTH_RESULT
    -> SENDING_STATUS_QUERY -> AWAITING_STATUS_RESULT -> SENDING_DUMP_REQUEST
    -> DUMPING (until the connection goes away) -> CLOSED | ERROR
"""
import logging

from py_mysql_replicant.errors import ReplicantError, MalformedPacket, ServerError, AuthenticationFailed
from py_mysql_replicant.packet.challenge import Challenge
from py_mysql_replicant.packet.decoder import BinlogDecoder, log_event
from py_mysql_replicant.packet.binlog_event import RotateEvent
from py_mysql_replicant.packet.dump_pos import encode_binlog_dump
from py_mysql_replicant.packet.query import encode_query, SHOW_MASTER_STATUS
from py_mysql_replicant.packet.response import encode_auth_response
from py_mysql_replicant.protocol import Flags
from py_mysql_replicant.protocol.err import ERR
from py_mysql_replicant.protocol.packet import PacketQueue, NET_HEADER_SIZE, getType, dump
from py_mysql_replicant.protocol.resultset import is_err_packet, is_eof_packet, is_resultset_complete, \
    get_err_packet, parse_master_status

logger = logging.getLogger('py_mysql_replicant')


class ConnectionState(object):
    """
    Per connection replication state: the phase and the cached master status
    """
    __slots__ = ('phase', 'master_status')

    def __init__(self):
        self.phase = Flags.PHASE_ACQUIRING_POSITION
        self.master_status = None


class Replicant(object):

    def __init__(self, settings, sink=None):
        self.settings = settings
        self.sink = sink or log_event
        self.state = Flags.STATE_CONNECTING
        self.connection_state = None
        self.decoder = BinlogDecoder()
        self.recv_queue = PacketQueue()
        self.send_queue = PacketQueue()
        self.error = None
        self._challenge = None
        self._resultset = []

    @property
    def master_status(self):
        if self.connection_state is None:
            return None
        return self.connection_state.master_status

    @property
    def phase(self):
        if self.connection_state is None:
            return None
        return self.connection_state.phase

    @property
    def finished(self):
        return self.state in (Flags.STATE_CLOSED, Flags.STATE_ERROR)

    def connection_made(self):
        if self.state != Flags.STATE_CONNECTING:
            raise ReplicantError("connection_made() in state %s" % Flags.state_name(self.state))
        self.connection_state = ConnectionState()
        self._set_state(Flags.STATE_AWAITING_HANDSHAKE)
        self.advance()

    def connection_failed(self, exc):
        logger.error("connecting to the master failed: %s", exc)
        self.error = exc
        self._set_state(Flags.STATE_ERROR)
        self._release()

    def connection_lost(self):
        if not self.finished:
            logger.info("connection to the master lost in state %s", Flags.state_name(self.state))
        self.close()

    def receive_data(self, data):
        if self.finished:
            return
        self.recv_queue.append(data)
        self.advance()

    def data_to_send(self):
        return self.send_queue.drain()

    def close(self):
        if self.state != Flags.STATE_ERROR:
            self._set_state(Flags.STATE_CLOSED)
        self._release()

    def advance(self):
        """
        Run transitions until one has to wait for more bytes
        """
        try:
            while self._step():
                pass
        except ReplicantError as e:
            logger.error("replication aborted in state %s: %s", Flags.state_name(self.state), e)
            self.error = e
            self._set_state(Flags.STATE_ERROR)
            self._release()
            raise

    def _step(self):
        state = self.state

        if state == Flags.STATE_AWAITING_HANDSHAKE:
            return self._read_handshake()
        elif state == Flags.STATE_SENDING_AUTH:
            return self._send_auth()
        elif state == Flags.STATE_AWAITING_AUTH_RESULT:
            return self._read_auth_result()
        elif state == Flags.STATE_SENDING_STATUS_QUERY:
            return self._send_status_query()
        elif state == Flags.STATE_AWAITING_STATUS_RESULT:
            return self._read_status_result()
        elif state == Flags.STATE_SENDING_DUMP_REQUEST:
            return self._send_dump_request()
        elif state == Flags.STATE_DUMPING:
            return self._read_event()
        # CONNECTING, CLOSED and ERROR wait for the host
        return False

    def _set_state(self, state):
        logger.debug("state %s -> %s", Flags.state_name(self.state), Flags.state_name(state))
        self.state = state

    def _release(self):
        self.recv_queue.clear()
        self.send_queue.clear()
        self.connection_state = None
        self.decoder.reset()
        self._challenge = None
        self._resultset = []

    def _send(self, packet):
        dump(packet, 'Send')
        self.send_queue.append(packet)

    def _read_handshake(self):
        packet = self.recv_queue.peek_frame()
        if packet is None:
            return False

        # the master says nothing more until it has our auth response
        if self.recv_queue.pending() != len(packet):
            raise MalformedPacket("expected a single handshake packet, got %d extra bytes" % (
                self.recv_queue.pending() - len(packet)))
        self.recv_queue.consume_frame()
        dump(packet, 'Handshake')

        if is_err_packet(packet):
            err = ERR.loadFromPacket(packet)
            raise ServerError(err.errorCode, err.sqlState, err.errorMessage)

        self._challenge = Challenge.loadFromPacket(packet)
        logger.info("connected to MySQL %s, connection id %d",
                    self._challenge.serverVersion, self._challenge.connectionId)

        self._set_state(Flags.STATE_SENDING_AUTH)
        return True

    def _send_auth(self):
        self._send(encode_auth_response(self._challenge, self.settings.username, self.settings.password))
        self._challenge = None

        self._set_state(Flags.STATE_AWAITING_AUTH_RESULT)
        return True

    def _read_auth_result(self):
        packet = self.recv_queue.consume_frame()
        if packet is None:
            return False
        dump(packet, 'Auth result')

        if len(packet) <= NET_HEADER_SIZE:
            raise MalformedPacket("empty auth result packet")

        status = getType(packet)
        if status == Flags.ERR:
            err = ERR.loadFromPacket(packet)
            raise AuthenticationFailed(err.errorCode, err.sqlState, err.errorMessage)
        elif status != Flags.OK:
            raise MalformedPacket("packet should be (OK|ERR), got: %02x" % status)

        logger.info("authenticated as %s", self.settings.username)
        self._set_state(Flags.STATE_SENDING_STATUS_QUERY)
        return True

    def _send_status_query(self):
        self._resultset = []
        self._send(encode_query(SHOW_MASTER_STATUS))

        self._set_state(Flags.STATE_AWAITING_STATUS_RESULT)
        return True

    def _read_status_result(self):
        while not is_resultset_complete(self._resultset):
            packet = self.recv_queue.consume_frame()
            if packet is None:
                return False
            dump(packet, 'Result set')
            if len(packet) <= NET_HEADER_SIZE:
                raise MalformedPacket("empty packet in result set")
            self._resultset.append(packet)

        packets, self._resultset = self._resultset, []
        err_packet = get_err_packet(packets)
        if err_packet is not None:
            err = ERR.loadFromPacket(err_packet)
            raise ServerError(err.errorCode, err.sqlState, err.errorMessage)

        self.connection_state.master_status = parse_master_status(packets)
        logger.info("reading binlog from: binlog-file: %s, binlog-pos: %d",
                    self.master_status.binlog_file, self.master_status.binlog_pos)

        self._set_state(Flags.STATE_SENDING_DUMP_REQUEST)
        return True

    def _send_dump_request(self):
        status = self.master_status
        self._send(encode_binlog_dump(status.binlog_pos, self.settings.server_id, status.binlog_file,
                                      non_blocking=self.settings.non_blocking))
        self.connection_state.phase = Flags.PHASE_DUMPING

        self._set_state(Flags.STATE_DUMPING)
        return True

    def _read_event(self):
        packet = self.recv_queue.consume_frame()
        if packet is None:
            return False
        dump(packet, 'Binlog event')

        if len(packet) <= NET_HEADER_SIZE:
            raise MalformedPacket("empty packet in binlog stream")

        status = getType(packet)
        if status == Flags.ERR:
            err = ERR.loadFromPacket(packet)
            raise ServerError(err.errorCode, err.sqlState, err.errorMessage)
        elif is_eof_packet(packet):
            logger.info("binlog dump finished at %s:%d",
                        self.master_status.binlog_file, self.master_status.binlog_pos)
            self.close()
            return False
        elif status != Flags.OK:
            raise MalformedPacket("binlog packet should start with OK, got: %02x" % status)

        event = self.decoder.decode_event(packet[NET_HEADER_SIZE + 1:])
        self._track_position(event)

        self.sink(event)
        return True

    def _track_position(self, event):
        status = self.connection_state.master_status
        if isinstance(event, RotateEvent):
            self.connection_state.master_status = status._replace(binlog_file=event.next_binlog,
                                                                  binlog_pos=event.position)
        elif event.header.log_pos and event.event_type != Flags.HEARTBEAT_EVENT:
            self.connection_state.master_status = status._replace(binlog_pos=event.header.log_pos)
