from __future__ import annotations

import unittest

from sheet_viewer.header_locator import (
    DEFAULT_WEIGHTS,
    HeaderScoreWeights,
    locate_header,
    locate_header_heuristic,
    score_row,
)


class ScheduleHeaderTests(unittest.TestCase):
    def test_keyword_row_in_schedule_mode(self):
        rows = [["模式", "行程"], ["備註", "x"], ["時刻表", "地點"], ["09:00", "A"]]
        self.assertEqual(locate_header(rows, 2, "行程"), 2)

    def test_keyword_scan_is_case_insensitive_and_starts_at_top(self):
        rows = [["mode", "schedule"], ["notes"], ["Time / SCHEDULE", "Place"], ["09:00", "A"]]
        # The meta row itself mentions "schedule"; the scan starts at row 0.
        self.assertEqual(locate_header(rows, 1, "schedule"), 0)

    def test_schedule_mode_without_keyword_falls_back_to_heuristic(self):
        rows = [["模式", "行程"], ["時間", "名稱", "地點"], ["09:00", "A", "B"]]
        self.assertEqual(locate_header(rows, 1, "行程"), 1)


class HeuristicHeaderTests(unittest.TestCase):
    def test_text_row_beats_url_row(self):
        rows = [["A", "B", "http://x.com/img.png"], ["名稱", "類型", "備註"], ["地點A", "餐廳", "好吃"]]
        self.assertEqual(locate_header_heuristic(rows, 0), 1)
        self.assertEqual(locate_header(rows, 0, ""), 1)

    def test_rows_with_fewer_than_two_cells_are_skipped(self):
        rows = [["標題"], ["名稱", "金額"], ["A", "100"]]
        self.assertEqual(locate_header_heuristic(rows, 0), 1)

    def test_numeric_and_time_rows_score_lower(self):
        rows = [["09:00", "100", "200"], ["time", "price", "qty"]]
        self.assertEqual(locate_header_heuristic(rows, 0), 1)

    def test_empty_window_returns_start(self):
        self.assertEqual(locate_header_heuristic([], 0), 0)
        self.assertEqual(locate_header_heuristic([["only"]], 0), 0)
        self.assertEqual(locate_header_heuristic([["a", "b"]], 5), 5)

    def test_scan_starts_at_cursor(self):
        rows = [["模式", "grid"], ["名稱", "類型", "備註"], ["A", "B", "C"]]
        self.assertEqual(locate_header(rows, 1, "grid"), 1)

    def test_window_is_limited(self):
        rows = [["1", "2"]] * 3 + [["名稱", "類型"]]
        self.assertEqual(locate_header_heuristic(rows, 0, max_check=3), 0)
        self.assertEqual(locate_header_heuristic(rows, 0, max_check=4), 3)

    def test_custom_weights(self):
        rows = [["1", "2", "3"], ["名稱", "類型", "x"]]
        flipped = HeaderScoreWeights(numeric_only=10.0)
        self.assertEqual(locate_header_heuristic(rows, 0, weights=flipped), 0)

    def test_score_components(self):
        self.assertEqual(score_row(["名稱", ""]), DEFAULT_WEIGHTS.non_empty + DEFAULT_WEIGHTS.textish)
        self.assertAlmostEqual(score_row(["12"]), DEFAULT_WEIGHTS.non_empty + DEFAULT_WEIGHTS.numeric_only)
        self.assertAlmostEqual(
            score_row(["09:30"]),
            DEFAULT_WEIGHTS.non_empty + DEFAULT_WEIGHTS.time_like,
        )


if __name__ == "__main__":
    unittest.main()
