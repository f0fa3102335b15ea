from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from sheet_viewer.shared import cell_text

DISPLAY_MODE_CANDIDATES = ("顯示模式", "display mode", "display_mode", "mode")
DISPLAY_FLAG_SPLIT_RE = re.compile(r"[,，\s]+")


class DisplayFlag(Enum):
    """Per-row display markers authored in the sheet's display-mode column."""

    HIDDEN = "0"
    STRIKE = "1"
    GRAY_DEPRIORITIZED = "2"
    RESTRICTED_VISIBILITY = "3"


NO_FLAGS: frozenset[DisplayFlag] = frozenset()
_FLAG_BY_CODE = {flag.value: flag for flag in DisplayFlag}


@dataclass(frozen=True)
class Records:
    header: list[str] = field(default_factory=list)
    data: list[dict[str, str]] = field(default_factory=list)
    row_flags: list[frozenset[DisplayFlag]] = field(default_factory=list)
    display_mode_key: str | None = None


def parse_display_flags(value: object) -> frozenset[DisplayFlag]:
    text = cell_text(value)
    if not text:
        return NO_FLAGS
    parts = [part for part in DISPLAY_FLAG_SPLIT_RE.split(text) if part]
    return frozenset(_FLAG_BY_CODE[part] for part in parts if part in _FLAG_BY_CODE)


def pick_field(header: Iterable[str], candidates: Iterable[str]) -> str | None:
    """
    Find the header name that best matches any of ``candidates``.

    Candidates are tried in order; for each, an exact case-insensitive match
    wins over a substring match.
    """
    keys = [cell_text(name) for name in header]
    lowered = [key.lower() for key in keys]
    for candidate in candidates:
        needle = str(candidate).lower()
        if needle in lowered:
            return keys[lowered.index(needle)]
        for idx, key in enumerate(lowered):
            if needle in key:
                return keys[idx]
    return None


def build_header(row: list[str] | None) -> list[str]:
    return [cell_text(cell) or f"col{idx}" for idx, cell in enumerate(row or [])]


def assemble(rows: list[list[str]], header_index: int) -> Records:
    if header_index < 0 or header_index >= len(rows):
        return Records()

    header = build_header(rows[header_index])
    display_mode_key = pick_field(header, DISPLAY_MODE_CANDIDATES)

    data: list[dict[str, str]] = []
    row_flags: list[frozenset[DisplayFlag]] = []
    for row in rows[header_index + 1 :]:
        row = row or []
        record: dict[str, str] = {}
        for idx, name in enumerate(header):
            # Duplicate header names: the later column wins.
            record[name] = cell_text(row[idx]) if idx < len(row) else ""
        if not any(record.values()):
            continue
        data.append(record)
        row_flags.append(parse_display_flags(record.get(display_mode_key)) if display_mode_key else NO_FLAGS)

    return Records(header=header, data=data, row_flags=row_flags, display_mode_key=display_mode_key)


def is_row_visible(flags: frozenset[DisplayFlag], restricted_allowed: bool) -> bool:
    if DisplayFlag.HIDDEN in flags:
        return False
    if DisplayFlag.RESTRICTED_VISIBILITY in flags and not restricted_allowed:
        return False
    return True
