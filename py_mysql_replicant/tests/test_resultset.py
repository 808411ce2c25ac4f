import unittest

from py_mysql_replicant.errors import MalformedResultSet
from py_mysql_replicant.protocol.resultset import MasterStatus, parse_master_status, is_resultset_complete, \
    read_text_row, is_eof_packet, skip_field_definitions, get_err_packet
from py_mysql_replicant.tests.helpers import make_master_status, make_resultset, make_err, frame, \
    MASTER_STATUS_COLUMNS

__all__ = ["TestResultSet", "TestMasterStatus"]


class TestResultSet(unittest.TestCase):

    def test_complete_only_after_last_eof(self):
        packets = make_master_status()
        for count in range(len(packets)):
            self.assertFalse(is_resultset_complete(packets[:count]))
        self.assertTrue(is_resultset_complete(packets))

    def test_err_is_complete(self):
        self.assertTrue(is_resultset_complete([make_err(1227, '42000', 'Access denied', 1)]))

    def test_err_after_field_definitions_is_complete(self):
        head = make_master_status()[:7]
        self.assertFalse(is_resultset_complete(head))
        self.assertIsNone(get_err_packet(head))

        err = make_err(1105, 'HY000', 'Unknown error', 8)
        self.assertTrue(is_resultset_complete(head + [err]))
        self.assertEqual(get_err_packet(head + [err]), err)

    def test_eof_detection(self):
        self.assertTrue(is_eof_packet(frame(b'\xfe\x00\x00\x02\x00', 3)))
        # a lenenc-int with an 8 byte value is not an EOF
        self.assertFalse(is_eof_packet(frame(b'\xfe' + bytes(8), 3)))
        self.assertFalse(is_eof_packet(frame(b'', 3)))

    def test_text_row(self):
        packets = make_resultset(["a", "b", "c"], [["x", None, ""]])
        row = read_text_row(packets[skip_field_definitions(packets)], 3)
        self.assertEqual(row, [b'x', None, b''])

    def test_short_row(self):
        packets = make_resultset(["a", "b"], [["x", "y"]])
        with self.assertRaises(MalformedResultSet):
            read_text_row(packets[skip_field_definitions(packets)], 3)


class TestMasterStatus(unittest.TestCase):

    def test_extra_columns(self):
        status = parse_master_status(make_master_status("mysql-bin.000012", "4096"))
        self.assertEqual(status, MasterStatus("mysql-bin.000012", 4096))
        self.assertEqual(status.binlog_file, "mysql-bin.000012")
        self.assertEqual(status.binlog_pos, 4096)

    def test_two_columns(self):
        packets = make_resultset(["File", "Position"], [["mysql-bin.000001", "154"]])
        self.assertEqual(parse_master_status(packets), MasterStatus("mysql-bin.000001", 154))

    def test_no_rows(self):
        with self.assertRaises(MalformedResultSet):
            parse_master_status(make_resultset(MASTER_STATUS_COLUMNS, []))

    def test_first_row_wins(self):
        packets = make_resultset(["File", "Position"], [["mysql-bin.000003", "4"], ["mysql-bin.000004", "8"]])
        self.assertEqual(parse_master_status(packets), MasterStatus("mysql-bin.000003", 4))

    def test_bad_position(self):
        with self.assertRaises(MalformedResultSet):
            parse_master_status(make_master_status("mysql-bin.000012", "12ab"))
        with self.assertRaises(MalformedResultSet):
            parse_master_status(make_master_status("mysql-bin.000012", "-4"))

    def test_empty_file(self):
        with self.assertRaises(MalformedResultSet):
            parse_master_status(make_master_status("", "4096"))

    def test_null_position(self):
        packets = make_resultset(["File", "Position"], [["mysql-bin.000001", None]])
        with self.assertRaises(MalformedResultSet):
            parse_master_status(packets)

    def test_single_column(self):
        with self.assertRaises(MalformedResultSet):
            parse_master_status(make_resultset(["File"], [["mysql-bin.000001"]]))


if __name__ == "__main__":
    unittest.main()
