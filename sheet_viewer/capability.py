"""
Shared-secret URL codes.

A ``?code=`` query value unlocks the personal agenda bucket and rows marked
with the restricted display flag. This is a soft link-sharing gate: anyone
holding the link can read the code, so it must never guard real secrets.
"""

from __future__ import annotations

from typing import Iterable

from sheet_viewer.shared import parse_token_list

DEFAULT_PERSONAL_CODE = "1912"
DEFAULT_RESTRICTED_CODE = "666"


def parse_codes(raw: object) -> frozenset[str]:
    if raw is None:
        return frozenset()
    if isinstance(raw, (list, tuple, set, frozenset)):
        raw = ",".join(str(item) for item in raw)
    return frozenset(parse_token_list(raw))


def has_capability(codes: Iterable[str] | None, code: str) -> bool:
    if not code:
        return False
    return code in set(codes or ())
