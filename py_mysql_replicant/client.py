# coding=utf-8
import logging
import socket

from py_mysql_replicant.errors import ConnectionFailed
from py_mysql_replicant.protocol import Flags
from py_mysql_replicant.replicant import Replicant

logger = logging.getLogger('py_mysql_replicant')

RECV_BUFFER_SIZE = 65536


class ReplicantClient(object):
    """
    Blocking socket host for a Replicant: connects to the master, feeds the
    bytes it reads to the state machine and writes back what it queued.
    """

    def __init__(self, settings, sink=None):
        self._connection = None
        self._settings = settings
        self.replicant = Replicant(settings, sink)

    @property
    def master_status(self):
        return self.replicant.master_status

    def get_conn(self):
        host, port = self._settings.host, self._settings.port
        try:
            conn = socket.create_connection((host, port), timeout=self._settings.connect_timeout)
        except OSError as e:
            error = ConnectionFailed("connecting to %s:%d failed: %s" % (host, port, e), host, port)
            self.replicant.connection_failed(error)
            raise error
        # the binlog stream can be quiet for a long time
        conn.settimeout(None)
        self._connection = conn
        return conn

    def _send_packet(self, buff):
        if buff:
            self._connection.sendall(buff)

    def run(self):
        self.get_conn()
        try:
            self.replicant.connection_made()
            while True:
                self._send_packet(self.replicant.data_to_send())
                if self.replicant.finished:
                    break

                data = self._connection.recv(RECV_BUFFER_SIZE)
                if not data:
                    self.replicant.connection_lost()
                    break
                self.replicant.receive_data(data)
        except OSError as e:
            self.replicant.connection_lost()
            raise ConnectionFailed("connection to %s lost: %s" % (self._settings.master_address, e),
                                   self._settings.host, self._settings.port)
        finally:
            self.close()

        logger.info("replicant stopped in state %s", Flags.state_name(self.replicant.state))

    def close(self):
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        self.replicant.close()
