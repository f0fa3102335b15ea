from __future__ import annotations

import json
import os
import unittest
from unittest import mock

from pydantic import ValidationError

from sheet_viewer.config import DEFAULT_DOC_ID, Settings
from sheet_viewer.contracts import CONTRACT_VERSIONS, build_contract, build_run_summary, utc_now_iso
from sheet_viewer.loader import build_app_state, load_sample_text, parse_sheet


class ContractTests(unittest.TestCase):
    def test_known_contracts(self):
        for name, version in CONTRACT_VERSIONS.items():
            self.assertEqual(build_contract(name), {"name": name, "version": version})
        with self.assertRaises(KeyError):
            build_contract("sheet_viewer.unknown")

    def test_run_summary_wraps_app_state(self):
        state = build_app_state(parse_sheet(load_sample_text()), gid="222")
        summary = build_run_summary(
            command="sample",
            source="sample.csv",
            contract="sheet_viewer.app_state",
            payload=state.to_dict(),
            gid=state.gid,
            stamp="20260301T010203Z",
        )
        self.assertEqual(summary["contract"]["name"], "sheet_viewer.app_state")
        self.assertEqual(summary["generated_at"], "20260301T010203Z")
        self.assertEqual(summary["gid"], "222")
        self.assertEqual(summary["warnings_count"], 0)
        self.assertEqual(summary["result"]["view"]["current"], "schedule")
        json.dumps(summary, ensure_ascii=False)

    def test_explicit_stamp_wins(self):
        self.assertEqual(utc_now_iso("fixed"), "fixed")

    def test_stamp_is_not_read_from_environment(self):
        with mock.patch.dict(os.environ, {"SHEET_VIEWER_OUTPUT_STAMP": "fixed"}):
            self.assertNotEqual(utc_now_iso(), "fixed")
            self.assertEqual(utc_now_iso(Settings(_env_file=None).output_stamp), "fixed")

    def test_default_stamp_is_utc_iso(self):
        stamp = utc_now_iso()
        self.assertTrue(stamp.endswith("Z"))
        self.assertNotIn("+00:00", stamp)


def settings_from(environ: dict[str, str]) -> Settings:
    with mock.patch.dict(os.environ, environ, clear=True):
        return Settings(_env_file=None)


class SettingsTests(unittest.TestCase):
    def test_defaults(self):
        settings = settings_from({})
        self.assertEqual(settings.doc_id, DEFAULT_DOC_ID)
        self.assertEqual(settings.timeout, 30)
        self.assertEqual(settings.personal_code, "1912")
        self.assertEqual(settings.restricted_code, "666")
        self.assertEqual(settings.exchange_rates, {})
        self.assertIsNone(settings.output_stamp)

    def test_overrides(self):
        settings = settings_from(
            {
                "SHEET_VIEWER_DOC_ID": "abc",
                "SHEET_VIEWER_TIMEOUT": "5.5",
                "SHEET_VIEWER_PERSONAL_CODE": "p",
                "SHEET_VIEWER_RESTRICTED_CODE": "r",
                "SHEET_VIEWER_EXCHANGE_RATES": '{"jpy": 0.21, "usd": "32"}',
                "SHEET_VIEWER_OUTPUT_STAMP": "stamp",
            }
        )
        self.assertEqual(settings.doc_id, "abc")
        self.assertEqual(settings.timeout, 5.5)
        self.assertEqual(settings.personal_code, "p")
        self.assertEqual(settings.restricted_code, "r")
        self.assertEqual(settings.exchange_rates, {"JPY": 0.21, "USD": 32.0})
        self.assertEqual(settings.output_stamp, "stamp")

    def test_blank_values_fall_back_to_defaults(self):
        settings = settings_from(
            {"SHEET_VIEWER_DOC_ID": "  ", "SHEET_VIEWER_PERSONAL_CODE": "", "SHEET_VIEWER_OUTPUT_STAMP": ""}
        )
        self.assertEqual(settings.doc_id, DEFAULT_DOC_ID)
        self.assertEqual(settings.personal_code, "1912")
        self.assertIsNone(settings.output_stamp)

    def test_invalid_values_are_rejected(self):
        for environ in (
            {"SHEET_VIEWER_TIMEOUT": "-3"},
            {"SHEET_VIEWER_TIMEOUT": "soon"},
            {"SHEET_VIEWER_EXCHANGE_RATES": '{"JPY": "bad"}'},
            {"SHEET_VIEWER_EXCHANGE_RATES": "[1]"},
        ):
            with self.subTest(environ=environ), self.assertRaises(ValidationError):
                settings_from(environ)

    def test_settings_are_frozen(self):
        settings = settings_from({})
        with self.assertRaises(ValidationError):
            settings.timeout = 1


if __name__ == "__main__":
    unittest.main()
