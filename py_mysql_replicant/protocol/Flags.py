#!/usr/bin/env python
# coding=utf-8


# Transport not open yet
STATE_CONNECTING                        = 0
# Read the handshake from the master and process it
STATE_AWAITING_HANDSHAKE                = 1
# Build the auth response and queue it
STATE_SENDING_AUTH                      = 2
# Read the OK/ERR reply to the auth response
STATE_AWAITING_AUTH_RESULT              = 3
# Queue SHOW MASTER STATUS
STATE_SENDING_STATUS_QUERY              = 4
# Read the result set of SHOW MASTER STATUS
STATE_AWAITING_STATUS_RESULT            = 5
# Queue COM_BINLOG_DUMP
STATE_SENDING_DUMP_REQUEST              = 6
# Read and decode binlog events
STATE_DUMPING                           = 7
# Connection closed
STATE_CLOSED                            = 8
# Connection abandoned after an unrecoverable failure
STATE_ERROR                             = 9

# Replication phases
PHASE_ACQUIRING_POSITION                = 0
PHASE_DUMPING                           = 1

# Packet types
OK                                      = 0x00
ERR                                     = 0xff
EOF                                     = 0xfe
LOCAL_INFILE                            = 0xfb

# lenenc-int tags
LENENC_NULL                             = 0xfb
LENENC_INT16                            = 0xfc
LENENC_INT24                            = 0xfd
LENENC_INT64                            = 0xfe
LENENC_RESERVED                         = 0xff

CLIENT_LONG_PASSWORD                    = 0x0001
CLIENT_FOUND_ROWS                       = 0x0002
CLIENT_LONG_FLAG                        = 0x0004
CLIENT_CONNECT_WITH_DB                  = 0x0008
CLIENT_NO_SCHEMA                        = 0x0010
CLIENT_COMPRESS                         = 0x0020
CLIENT_ODBC                             = 0x0040
CLIENT_LOCAL_FILES                      = 0x0080
CLIENT_IGNORE_SPACE                     = 0x0100
CLIENT_PROTOCOL_41                      = 0x0200
CLIENT_INTERACTIVE                      = 0x0400
CLIENT_SSL                              = 0x0800
CLIENT_IGNORE_SIGPIPE                   = 0x1000
CLIENT_TRANSACTIONS                     = 0x2000
CLIENT_RESERVED                         = 0x4000
CLIENT_SECURE_CONNECTION                = 0x8000
CLIENT_MULTI_STATEMENTS                 = 0x00010000
CLIENT_MULTI_RESULTS                    = 0x00020000
CLIENT_PS_MULTI_RESULTS                 = 0x00040000
CLIENT_PLUGIN_AUTH                      = 0x00080000
CLIENT_CONNECT_ATTRS                    = 1 << 20
CLIENT_PLUGIN_AUTH_LENENC_CLIENT_DATA   = 1 << 21
CLIENT_DEPRECATE_EOF                    = 1 << 24

# What the replicant asks for; the master's offer is and-ed in
CLIENT_CAPABILITIES                     = (CLIENT_LONG_PASSWORD | CLIENT_LONG_FLAG |
                                           CLIENT_PROTOCOL_41 | CLIENT_TRANSACTIONS |
                                           CLIENT_SECURE_CONNECTION | CLIENT_PLUGIN_AUTH)

CS_utf8_general_ci                      = 33

MAX_PACKET_SIZE                         = 16777216
SCRAMBLE_LENGTH                         = 20
NATIVE_PASSWORD_PLUGIN                  = "mysql_native_password"

# COM_BINLOG_DUMP flags
BINLOG_DUMP_NON_BLOCK                   = 0x01

# Binlog event types
UNKNOWN_EVENT                           = 0
START_EVENT_V3                          = 1
QUERY_EVENT                             = 2
STOP_EVENT                              = 3
ROTATE_EVENT                            = 4
INTVAR_EVENT                            = 5
LOAD_EVENT                              = 6
SLAVE_EVENT                             = 7
CREATE_FILE_EVENT                       = 8
APPEND_BLOCK_EVENT                      = 9
EXEC_LOAD_EVENT                         = 10
DELETE_FILE_EVENT                       = 11
NEW_LOAD_EVENT                          = 12
RAND_EVENT                              = 13
USER_VAR_EVENT                          = 14
FORMAT_DESCRIPTION_EVENT                = 15
XID_EVENT                               = 16
BEGIN_LOAD_QUERY_EVENT                  = 17
EXECUTE_LOAD_QUERY_EVENT                = 18
TABLE_MAP_EVENT                         = 19
WRITE_ROWS_EVENT_V1                     = 23
UPDATE_ROWS_EVENT_V1                    = 24
DELETE_ROWS_EVENT_V1                    = 25
INCIDENT_EVENT                          = 26
HEARTBEAT_EVENT                         = 27
IGNORABLE_EVENT                         = 28
ROWS_QUERY_EVENT                        = 29
WRITE_ROWS_EVENT                        = 30
UPDATE_ROWS_EVENT                       = 31
DELETE_ROWS_EVENT                       = 32
GTID_EVENT                              = 33
ANONYMOUS_GTID_EVENT                    = 34
PREVIOUS_GTIDS_EVENT                    = 35

# Binlog checksum algorithms (FORMAT_DESCRIPTION_EVENT)
BINLOG_CHECKSUM_ALG_OFF                 = 0
BINLOG_CHECKSUM_ALG_CRC32               = 1
BINLOG_CHECKSUM_ALG_UNDEF               = 255
BINLOG_CHECKSUM_LEN                     = 4

BINLOG_MAGIC                            = b'\xfebin'

local_vars = locals()


def _lookup(val, prefix=None, names=None):
    for _var, _val in local_vars.items():
        if prefix and not _var.startswith(prefix):
            continue
        if names and _var not in names:
            continue
        if _val == val:
            return _var
    return ""


def header_name(val):
    return _lookup(val, names=("OK", "ERR", "EOF", "LOCAL_INFILE"))


def state_name(val):
    return _lookup(val, prefix="STATE_")[len("STATE_"):]


def event_type_name(val):
    return _lookup(val, names=[_var for _var in local_vars if _var.endswith("_EVENT")
                               or _var.endswith("_EVENT_V1") or _var.endswith("_EVENT_V3")])
