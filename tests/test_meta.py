from __future__ import annotations

import unittest

from sheet_viewer.meta import (
    extract_meta,
    is_meta_row,
    lookup_meta,
    lookup_meta_rows,
    lookup_meta_values,
    mode_value,
)
from sheet_viewer.shared import META_SCAN_LIMIT, parse_token_list


SCHEDULE_ROWS = [
    ["模式", "行程"],
    ["備註", "x"],
    ["時刻表", "地點"],
    ["09:00", "A"],
]


class MetaBlockTests(unittest.TestCase):
    def test_contiguous_meta_block(self):
        block = extract_meta(SCHEDULE_ROWS)
        self.assertEqual(block.values, {"模式": "行程", "備註": "x"})
        self.assertEqual(block.cursor, 2)

    def test_non_meta_first_row_stops_immediately(self):
        rows = [["名稱", "類型"], ["模式", "行程"], ["A", "B"]]
        block = extract_meta(rows)
        self.assertEqual(block.values, {})
        self.assertEqual(block.cursor, 0)

    def test_values_join_non_empty_cells_with_newlines(self):
        block = extract_meta([["備註", "第一行", "", "第二行"], ["a", "b"]])
        self.assertEqual(block.values["備註"], "第一行\n第二行")

    def test_repeated_key_appends(self):
        block = extract_meta([["備註", "一"], ["備註", "二"], ["a", "b"]])
        self.assertEqual(block.values["備註"], "一\n二")
        self.assertEqual(block.cursor, 2)

    def test_label_row_with_no_values_still_advances_cursor(self):
        block = extract_meta([["日期"], ["a", "b"]])
        self.assertEqual(block.values, {})
        self.assertEqual(block.cursor, 1)

    def test_meta_scan_stops_at_lookahead_limit(self):
        rows = [["備註", str(idx)] for idx in range(META_SCAN_LIMIT + 5)] + [["名稱", "類型"]]
        block = extract_meta(rows)
        self.assertEqual(block.cursor, META_SCAN_LIMIT)
        self.assertEqual(block.values["備註"].split("\n"), [str(idx) for idx in range(META_SCAN_LIMIT)])

    def test_labels_match_case_insensitively_but_keep_literal_key(self):
        block = extract_meta([["Mode", "Schedule"], ["x", "y"]])
        self.assertEqual(block.values, {"Mode": "Schedule"})
        self.assertEqual(mode_value(block.values), "Schedule")

    def test_agenda_rows_keep_raw_cells(self):
        rows = [["相關議程", "111", "", "https://example.com/x"], ["相關議程", "222"], ["a", "b"]]
        block = extract_meta(rows)
        self.assertEqual(block.raw_rows["相關議程"], ["111", "", "https://example.com/x", "222"])
        self.assertEqual(block.values["相關議程"], "111\nhttps://example.com/x\n222")

    def test_non_agenda_rows_have_no_raw_cells(self):
        block = extract_meta(SCHEDULE_ROWS)
        self.assertEqual(block.raw_rows, {})

    def test_is_meta_row(self):
        self.assertTrue(is_meta_row(["日程表", "1,2"]))
        self.assertTrue(is_meta_row([" days ", "1"]))
        self.assertFalse(is_meta_row(["時刻表"]))
        self.assertFalse(is_meta_row([]))
        self.assertFalse(is_meta_row(None))


class LookupMetaTests(unittest.TestCase):
    def test_alias_order_and_empty_values(self):
        meta = {"日程表": "", "行程表": "1 2", "days": "9"}
        self.assertEqual(lookup_meta(meta, "days"), "1 2")

    def test_english_alias_case_insensitive(self):
        self.assertEqual(lookup_meta({"TITLE": "Trip"}, "title"), "Trip")

    def test_missing_key_returns_none(self):
        self.assertIsNone(lookup_meta({}, "date"))
        self.assertIsNone(lookup_meta(None, "date"))
        self.assertEqual(mode_value({}), "")

    def test_unknown_canonical_key_raises(self):
        with self.assertRaises(KeyError):
            lookup_meta({"x": "y"}, "nope")

    def test_lookup_meta_rows(self):
        rows = {"Related Agenda": ["1", "2"]}
        self.assertEqual(lookup_meta_rows(rows, "related_agenda"), ["1", "2"])
        self.assertIsNone(lookup_meta_rows(rows, "master_agenda"))

    def test_lookup_meta_rows_merges_every_alias_row(self):
        rows = {"相關議程": ["111"], "Related Agenda": ["222", ""]}
        self.assertEqual(lookup_meta_rows(rows, "related_agenda"), ["111", "222", ""])

    def test_lookup_meta_values_keeps_every_alias(self):
        meta = {"相關議程": "111", "備註": "x", "related agenda": "222", "RELATED AGENDA": ""}
        self.assertEqual(lookup_meta_values(meta, "related_agenda"), ["111", "222"])
        self.assertEqual(lookup_meta_values(None, "related_agenda"), [])


class TokenListTests(unittest.TestCase):
    def test_mixed_delimiters(self):
        self.assertEqual(parse_token_list("1, 2，3、4;5；6\n7  8"), ["1", "2", "3", "4", "5", "6", "7", "8"])

    def test_empty(self):
        self.assertEqual(parse_token_list(None), [])
        self.assertEqual(parse_token_list("  "), [])


if __name__ == "__main__":
    unittest.main()
