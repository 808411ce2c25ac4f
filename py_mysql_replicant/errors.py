# coding=utf-8
"""
Exceptions raised by the replicant codec, decoder and state machine.

TruncatedInput only means "not enough bytes yet" and is absorbed inside the
core. Everything else ends the connection or the file scan it happened in.
"""


class ReplicantError(Exception):
    """Base class for all replicant errors"""


class TruncatedInput(ReplicantError):
    """Fewer bytes are buffered than the layout needs"""


class MalformedPacket(ReplicantError):
    pass


class MalformedEvent(ReplicantError):
    pass


class MalformedResultSet(ReplicantError):
    pass


class MalformedInteger(ReplicantError):
    pass


class NotABinlogFile(ReplicantError):
    pass


class TruncatedFile(ReplicantError):
    """
    The file ended inside an event header or body.

    At a header boundary this is the normal end of a binlog file.
    """

    def __init__(self, message, offset=0):
        super(TruncatedFile, self).__init__(message)
        self.offset = offset


class ServerError(ReplicantError):
    """The master answered with an ERR packet"""

    def __init__(self, errorCode, sqlState, errorMessage):
        super(ServerError, self).__init__("[%s] (%s) %s" % (errorCode, sqlState, errorMessage))
        self.errorCode = errorCode
        self.sqlState = sqlState
        self.errorMessage = errorMessage


class AuthenticationFailed(ServerError):
    pass


class ConnectionFailed(ReplicantError):

    def __init__(self, message, host=None, port=None):
        super(ConnectionFailed, self).__init__(message)
        self.host = host
        self.port = port
