import os
import shutil
import tempfile
import unittest

from py_mysql_replicant.binlog_file import BinlogFileReader, DecodeFailure, replay
from py_mysql_replicant.errors import NotABinlogFile, TruncatedFile, MalformedEvent
from py_mysql_replicant.packet.binlog_event import FormatDescriptionEvent, QueryEvent, XidEvent, UnknownEvent
from py_mysql_replicant.packet.event_header import EventHeader
from py_mysql_replicant.protocol import Flags
from py_mysql_replicant.protocol.proto import Proto
from py_mysql_replicant.tests.helpers import make_fde, make_query, make_event

__all__ = ["TestBinlogFileReader"]


class TestBinlogFileReader(unittest.TestCase):

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def write_binlog(self, *chunks, **kwargs):
        path = os.path.join(self.tmp_dir, kwargs.get("name", "mysql-bin.000001"))
        with open(path, "wb") as fw:
            fw.write(kwargs.get("magic", Flags.BINLOG_MAGIC))
            for chunk in chunks:
                fw.write(chunk)
        return path

    def test_events_then_trailing_bytes(self):
        fde = make_fde()
        query = make_query("BEGIN", log_pos=4 + len(fde), checksum=True)
        xid = make_event(Flags.XID_EVENT, Proto.build_fixed_int(8, 77), checksum=True)
        path = self.write_binlog(fde, query, xid, b'\x01\x02\x03')

        reader = BinlogFileReader(path)
        events = list(reader)

        self.assertEqual([type(event) for event in events], [FormatDescriptionEvent, QueryEvent, XidEvent])
        self.assertEqual(events[1].query, "BEGIN")
        self.assertIsInstance(reader.end_condition, TruncatedFile)
        self.assertEqual(reader.end_condition.offset, 4 + len(fde) + len(query) + len(xid))
        self.assertEqual(reader.events, 3)
        self.assertEqual(reader.failures, 0)

    def test_clean_end(self):
        reader = BinlogFileReader(self.write_binlog(make_fde("5.5.62-log"), make_query("BEGIN")))
        self.assertEqual(len(list(reader)), 2)
        self.assertIsInstance(reader.end_condition, TruncatedFile)

    def test_bad_magic(self):
        path = self.write_binlog(make_query("BEGIN"), magic=b'\xfebim')
        with self.assertRaises(NotABinlogFile):
            list(BinlogFileReader(path))

    def test_empty_file(self):
        with self.assertRaises(NotABinlogFile):
            list(BinlogFileReader(self.write_binlog(magic=b'')))

    def test_unknown_event_does_not_stop_scan(self):
        path = self.write_binlog(make_event(Flags.WRITE_ROWS_EVENT, b'\x01\x02\x03'), make_query("COMMIT"))
        events = list(BinlogFileReader(path))
        self.assertIsInstance(events[0], UnknownEvent)
        self.assertIsInstance(events[1], QueryEvent)

    def test_decode_failure(self):
        path = self.write_binlog(make_event(Flags.TABLE_MAP_EVENT, b'\x01\x02'), make_query("COMMIT"))
        reader = BinlogFileReader(path)
        events = list(reader)

        self.assertIsInstance(events[0], DecodeFailure)
        self.assertFalse(events[0].handled)
        self.assertEqual(events[0].offset, 4)
        self.assertEqual(events[0].header.event_type, Flags.TABLE_MAP_EVENT)
        self.assertIsInstance(events[0].error, MalformedEvent)
        self.assertEqual(events[1].query, "COMMIT")
        self.assertEqual((reader.events, reader.failures), (1, 1))

    def test_truncated_body(self):
        reader = BinlogFileReader(self.write_binlog(make_query("BEGIN")[:-5]))
        self.assertEqual(list(reader), [])
        self.assertIsInstance(reader.end_condition, TruncatedFile)
        self.assertEqual(reader.end_condition.offset, 4)

    def test_event_size_below_header(self):
        header = bytes(EventHeader(0, Flags.QUERY_EVENT, 1, 7, 0, 0).getPayload())
        reader = BinlogFileReader(self.write_binlog(header, b'\x00' * 16, make_query("COMMIT")))
        self.assertEqual(list(reader), [])
        self.assertIsInstance(reader.end_condition, MalformedEvent)

    def test_replay(self):
        path = self.write_binlog(make_fde(), make_query("BEGIN", checksum=True),
                                 make_event(Flags.TABLE_MAP_EVENT, b'\x01\x02', checksum=True))
        events = []
        reader = replay(path, sink=events.append)
        self.assertEqual([type(event) for event in events], [FormatDescriptionEvent, QueryEvent])
        self.assertEqual(reader.failures, 1)

    def test_replay_logs(self):
        path = self.write_binlog(make_query("BEGIN"))
        with self.assertLogs('py_mysql_replicant', level='INFO') as logs:
            replay(path)
        self.assertTrue(any("query = BEGIN" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
