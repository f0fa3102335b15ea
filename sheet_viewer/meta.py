from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from sheet_viewer.shared import (
    AGENDA_LABELS,
    META_ALIASES,
    META_LABELS,
    META_SCAN_LIMIT,
    cell_text,
    normalise_label,
)


@dataclass(frozen=True)
class MetaBlock:
    values: dict[str, str] = field(default_factory=dict)
    raw_rows: dict[str, list[str]] = field(default_factory=dict)
    cursor: int = 0


def is_meta_row(row: list[str] | None) -> bool:
    if not row:
        return False
    label = normalise_label(row[0])
    return bool(label) and label in META_LABELS


def extract_meta(rows: list[list[str]]) -> MetaBlock:
    """
    Fold the contiguous block of leading label rows into a key/value map.

    Scanning stops at the first row whose first cell is not a recognised
    label, so meta rows must sit at the very top of the sheet. Values from
    repeated labels are appended on a new line. Agenda rows also keep their
    raw cell list, empty slots included, for later token parsing.
    """
    values: dict[str, str] = {}
    raw_rows: dict[str, list[str]] = {}
    cursor = 0

    for idx in range(min(len(rows), META_SCAN_LIMIT)):
        row = rows[idx]
        if not is_meta_row(row):
            break
        key = cell_text(row[0])
        cells = [cell_text(cell) for cell in row[1:]]
        joined = "\n".join(cell for cell in cells if cell)
        if joined:
            values[key] = f"{values[key]}\n{joined}" if values.get(key) else joined
        if key.lower() in AGENDA_LABELS:
            raw_rows.setdefault(key, []).extend(cells)
        cursor = idx + 1

    return MetaBlock(values=values, raw_rows=raw_rows, cursor=cursor)


def meta_aliases(canonical_key: str) -> tuple[str, ...]:
    try:
        return META_ALIASES[canonical_key]
    except KeyError:
        raise KeyError(f"Unknown meta key '{canonical_key}'. Known: {sorted(META_ALIASES)}") from None


def lookup_meta(meta: Mapping[str, str] | None, canonical_key: str) -> str | None:
    """Return the first non-empty value stored under any alias of ``canonical_key``."""
    if not meta:
        return None
    aliases = meta_aliases(canonical_key)
    folded = {str(key).strip().lower(): value for key, value in meta.items()}
    for alias in aliases:
        value = cell_text(folded.get(alias.lower()))
        if value:
            return value
    return None


def lookup_meta_values(meta: Mapping[str, str] | None, canonical_key: str) -> list[str]:
    """Every non-empty value stored under any alias of ``canonical_key``, in sheet order."""
    if not meta:
        return []
    aliases = {alias.lower() for alias in meta_aliases(canonical_key)}
    values = []
    for key, value in meta.items():
        text = cell_text(value)
        if text and str(key).strip().lower() in aliases:
            values.append(text)
    return values


def lookup_meta_rows(
    meta_rows: Mapping[str, list[str]] | None,
    canonical_key: str,
) -> list[str] | None:
    """Raw cells of every alias row of ``canonical_key`` concatenated in sheet order."""
    if not meta_rows:
        return None
    aliases = {alias.lower() for alias in meta_aliases(canonical_key)}
    cells: list[str] | None = None
    for key, row_cells in meta_rows.items():
        if str(key).strip().lower() in aliases:
            cells = (cells or []) + list(row_cells)
    return cells


def mode_value(meta: Mapping[str, str] | None) -> str:
    return lookup_meta(meta, "mode") or ""
