# coding=utf-8
from pymysql.constants.COMMAND import COM_QUERY

from py_mysql_replicant.protocol.packet import Packet
from py_mysql_replicant.protocol.proto import Proto

SHOW_MASTER_STATUS = "SHOW MASTER STATUS"


class Query(Packet):
    """
    https://dev.mysql.com/doc/internals/en/com-query.html
    1              [03] COM_QUERY
    string[EOF]    the query the server shall execute
    """
    __slots__ = ('query',) + Packet.__slots__

    def __init__(self, query=''):
        super(Query, self).__init__()
        self.sequenceId = 0
        self.query = query

    def getPayload(self):
        payload = bytearray()

        payload.extend(Proto.build_byte(COM_QUERY))
        payload.extend(Proto.build_eop_str(self.query))

        return payload


def encode_query(sql):
    return Query(sql).toPacket()
