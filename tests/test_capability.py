from __future__ import annotations

import unittest

from sheet_viewer.capability import DEFAULT_PERSONAL_CODE, DEFAULT_RESTRICTED_CODE, has_capability, parse_codes


class CapabilityTests(unittest.TestCase):
    def test_parse_codes_separators(self):
        self.assertEqual(parse_codes("1912, 666，7 8"), frozenset({"1912", "666", "7", "8"}))
        self.assertEqual(parse_codes(["1912", "666"]), frozenset({"1912", "666"}))
        self.assertEqual(parse_codes(None), frozenset())
        self.assertEqual(parse_codes(""), frozenset())
        self.assertEqual(parse_codes("1912、666;7"), frozenset({"1912", "666", "7"}))

    def test_has_capability(self):
        codes = parse_codes("1912")
        self.assertTrue(has_capability(codes, DEFAULT_PERSONAL_CODE))
        self.assertFalse(has_capability(codes, DEFAULT_RESTRICTED_CODE))
        self.assertFalse(has_capability(None, DEFAULT_PERSONAL_CODE))

    def test_empty_required_code_never_grants(self):
        self.assertFalse(has_capability(frozenset({""}), ""))


if __name__ == "__main__":
    unittest.main()
