# coding=utf-8
"""
Builders for the bytes a master (or a binlog file) would produce
"""
import zlib

from py_mysql_replicant.packet.binlog_event import CHECKSUM_VERSION, _version_tuple
from py_mysql_replicant.packet.challenge import Challenge
from py_mysql_replicant.packet.event_header import EventHeader, EVENT_HEADER_SIZE
from py_mysql_replicant.protocol import Flags
from py_mysql_replicant.protocol.err import ERR
from py_mysql_replicant.protocol.proto import Proto

SERVER_CAPABILITIES = (Flags.CLIENT_LONG_PASSWORD | Flags.CLIENT_FOUND_ROWS | Flags.CLIENT_LONG_FLAG |
                       Flags.CLIENT_CONNECT_WITH_DB | Flags.CLIENT_PROTOCOL_41 | Flags.CLIENT_TRANSACTIONS |
                       Flags.CLIENT_SECURE_CONNECTION | Flags.CLIENT_MULTI_STATEMENTS |
                       Flags.CLIENT_PLUGIN_AUTH | Flags.CLIENT_DEPRECATE_EOF)

CHALLENGE1 = b'\x3a\x21\x48\x5b\x0c\x70\x2f\x65'
CHALLENGE2 = b'\x1e\x33\x6d\x57\x01\x44\x4b\x2c\x66\x11\x7a\x63'


def frame(payload, sequence_id):
    payload = bytes(payload)
    return bytes(Proto.build_fixed_int(3, len(payload)) + Proto.build_fixed_int(1, sequence_id)) + payload


def make_challenge(server_version="5.7.30-log", capabilities=SERVER_CAPABILITIES, protocol_version=0x0a):
    challenge = Challenge()
    challenge.sequenceId = 0
    challenge.protocolVersion = protocol_version
    challenge.serverVersion = server_version
    challenge.connectionId = 7
    challenge.challenge1 = CHALLENGE1
    challenge.capabilityFlags = capabilities
    challenge.characterSet = Flags.CS_utf8_general_ci
    challenge.statusFlags = 0x0002
    challenge.authPluginDataLength = 21
    challenge.challenge2 = CHALLENGE2 + b'\x00'
    challenge.authPluginName = Flags.NATIVE_PASSWORD_PLUGIN
    return challenge


def make_handshake(**kwargs):
    return make_challenge(**kwargs).toPacket()


def make_ok(sequence_id=2):
    return frame(b'\x00\x00\x00\x02\x00\x00\x00', sequence_id)


def make_eof(sequence_id):
    return frame(b'\xfe\x00\x00\x02\x00', sequence_id)


def make_err(error_code, sql_state, message, sequence_id=2):
    err = ERR(error_code, sql_state, message)
    err.sequenceId = sequence_id
    return err.toPacket()


def make_resultset(columns, rows, first_sequence_id=1):
    """
    Text result set packets, None in a row is sent as NULL
    """
    packets = []
    seq = first_sequence_id

    packets.append(frame(Proto.build_lenenc_int(len(columns)), seq))
    seq += 1
    for name in columns:
        definition = (Proto.build_lenenc_str("def") + Proto.build_lenenc_str("") +
                      Proto.build_lenenc_str("") + Proto.build_lenenc_str("") +
                      Proto.build_lenenc_str(name) + Proto.build_lenenc_str(""))
        packets.append(frame(definition, seq))
        seq += 1
    packets.append(make_eof(seq))
    seq += 1

    for row in rows:
        payload = bytearray()
        for value in row:
            if value is None:
                payload.extend(Proto.build_byte(Flags.LENENC_NULL))
            else:
                payload.extend(Proto.build_lenenc_str(value))
        packets.append(frame(payload, seq))
        seq += 1
    packets.append(make_eof(seq))

    return packets


MASTER_STATUS_COLUMNS = ["File", "Position", "Binlog_Do_DB", "Binlog_Ignore_DB", "Executed_Gtid_Set"]


def make_master_status(binlog_file="mysql-bin.000012", binlog_pos="4096"):
    return make_resultset(MASTER_STATUS_COLUMNS, [[binlog_file, binlog_pos, "", "", None]])


def make_event(event_type, body, log_pos=0, server_id=1, timestamp=1571000000, checksum=False, flags=0):
    body = bytes(body)
    event_size = EVENT_HEADER_SIZE + len(body) + (Flags.BINLOG_CHECKSUM_LEN if checksum else 0)
    header = EventHeader(timestamp, event_type, server_id, event_size, log_pos, flags)
    data = bytes(header.getPayload()) + body
    if checksum:
        data += bytes(Proto.build_fixed_int(Flags.BINLOG_CHECKSUM_LEN, zlib.crc32(data) & 0xffffffff))
    return data


def make_fde(server_version="5.7.30-log", checksum_alg=Flags.BINLOG_CHECKSUM_ALG_CRC32, log_pos=0):
    body = bytearray()
    body.extend(Proto.build_fixed_int(2, 4))
    body.extend(Proto.build_fixed_str(50, server_version))
    body.extend(Proto.build_fixed_int(4, 0))
    body.extend(Proto.build_fixed_int(1, EVENT_HEADER_SIZE))
    body.extend(bytes(range(1, 39)))
    if _version_tuple(server_version) >= CHECKSUM_VERSION:
        body.extend(Proto.build_fixed_int(1, checksum_alg))
        return make_event(Flags.FORMAT_DESCRIPTION_EVENT, body, log_pos=log_pos, checksum=True)
    return make_event(Flags.FORMAT_DESCRIPTION_EVENT, body, log_pos=log_pos)


def query_body(query, db_name="test", thread_id=11, exec_time=0, status_vars=b'\x00\x00\x00\x00\x00'):
    body = bytearray()
    body.extend(Proto.build_fixed_int(4, thread_id))
    body.extend(Proto.build_fixed_int(4, exec_time))
    body.extend(Proto.build_fixed_int(1, len(db_name)))
    body.extend(Proto.build_fixed_int(2, 0))
    body.extend(Proto.build_fixed_int(2, len(status_vars)))
    body.extend(status_vars)
    body.extend(Proto.build_null_str(db_name))
    body.extend(Proto.build_eop_str(query))
    return body


def make_query(query, log_pos=0, checksum=False, **kwargs):
    return make_event(Flags.QUERY_EVENT, query_body(query, **kwargs), log_pos=log_pos, checksum=checksum)


def make_rotate(next_binlog, position=4, checksum=False):
    body = Proto.build_fixed_int(8, position) + Proto.build_eop_str(next_binlog)
    return make_event(Flags.ROTATE_EVENT, body, checksum=checksum)


def table_map_body(column_types, metadata, null_bitmap, db_name="test", table_name="t1", table_id=108):
    body = bytearray()
    body.extend(Proto.build_fixed_int(6, table_id))
    body.extend(Proto.build_fixed_int(2, 1))
    body.extend(Proto.build_fixed_int(1, len(db_name)))
    body.extend(Proto.build_null_str(db_name))
    body.extend(Proto.build_fixed_int(1, len(table_name)))
    body.extend(Proto.build_null_str(table_name))
    body.extend(Proto.build_lenenc_int(len(column_types)))
    body.extend(bytes(column_types))
    body.extend(Proto.build_lenenc_int(len(metadata)))
    body.extend(metadata)
    body.extend(null_bitmap)
    return body


def binlog_packet(event, sequence_id):
    """
    A binlog event as the master sends it during COM_BINLOG_DUMP
    """
    return frame(b'\x00' + event, sequence_id)
