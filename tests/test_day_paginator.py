from __future__ import annotations

import unittest

from sheet_viewer.day_paginator import DayNavState, current_index, navigate, parse_day_gids, show_for_view
from sheet_viewer.mode_router import ViewId

GIDS = ["111", "222", "333"]


class DayGidTests(unittest.TestCase):
    def test_numeric_tokens_only(self):
        self.assertEqual(parse_day_gids({"日程表": "111, 222，abc\n333 https://x/y"}), GIDS)

    def test_first_non_empty_alias(self):
        self.assertEqual(parse_day_gids({"日程表": "", "days": "5;6"}), ["5", "6"])

    def test_missing(self):
        self.assertEqual(parse_day_gids({}), [])
        self.assertEqual(parse_day_gids(None), [])


class NavigateTests(unittest.TestCase):
    def test_idempotent_at_current(self):
        self.assertEqual(navigate(GIDS, current_index(GIDS, GIDS[0]), 0), GIDS[0])

    def test_clamped_both_ends(self):
        self.assertEqual(navigate(GIDS, 0, -1), "111")
        self.assertEqual(navigate(GIDS, 2, 1), "333")
        self.assertEqual(navigate(GIDS, 1, 5), "333")

    def test_step(self):
        self.assertEqual(navigate(GIDS, 1, -1), "111")
        self.assertEqual(navigate(GIDS, 1, 1), "333")

    def test_empty_list(self):
        self.assertEqual(navigate([], 0, 1), "")

    def test_current_index_defaults_to_zero(self):
        self.assertEqual(current_index(GIDS, "222"), 1)
        self.assertEqual(current_index(GIDS, "999"), 0)
        self.assertEqual(current_index(GIDS, None), 0)


class DayNavStateTests(unittest.TestCase):
    def test_middle_day(self):
        state = DayNavState.from_meta({"日程表": "111,222,333"}, "222")
        self.assertTrue(state.enabled)
        self.assertEqual(state.index, 1)
        self.assertTrue(state.has_prev)
        self.assertTrue(state.has_next)
        self.assertEqual(state.prev_gid, "111")
        self.assertEqual(state.next_gid, "333")
        self.assertEqual(state.day_labels(), ("第1天", "第3天", "第2天 / 共3天"))

    def test_first_and_last_day(self):
        first = DayNavState.from_meta({"days": "111 222 333"}, "")
        self.assertFalse(first.has_prev)
        self.assertEqual(first.prev_gid, "111")
        last = DayNavState.from_meta({"days": "111 222 333"}, "333")
        self.assertFalse(last.has_next)
        self.assertEqual(last.day_labels()[2], "第3天 / 共3天")

    def test_disabled_without_days(self):
        state = DayNavState.from_meta({"模式": "行程"}, "1")
        self.assertFalse(state.enabled)
        self.assertFalse(state.has_prev)
        self.assertFalse(state.has_next)
        self.assertEqual(state.day_labels(), ("", "", ""))

    def test_pager_hidden_on_grid(self):
        self.assertFalse(show_for_view(ViewId.GRID))
        self.assertTrue(show_for_view(ViewId.SCHEDULE))
        self.assertTrue(show_for_view(ViewId.RAW))


if __name__ == "__main__":
    unittest.main()
