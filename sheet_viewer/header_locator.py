from __future__ import annotations

import re
from dataclasses import dataclass

from sheet_viewer.shared import (
    HEADER_SCAN_LIMIT,
    HTTP_URL_RE,
    SCHEDULE_MODE_LABELS,
    cell_text,
)

SCHEDULE_HEADER_RE = re.compile(r"時刻表|schedule", re.IGNORECASE)
NUMERIC_ONLY_RE = re.compile(r"^\d+(?:[.,]\d+)?$")
TIME_LIKE_RE = re.compile(r"^\d{1,2}:\d{2}")
TEXTISH_RE = re.compile(r"[A-Za-z\u4e00-\u9fff]")
LONG_CELL_LENGTH = 20


@dataclass(frozen=True)
class HeaderScoreWeights:
    # Empirically tuned against real itinerary and catalog sheets, not
    # analytically derived.
    non_empty: float = 2.0
    textish: float = 1.0
    numeric_only: float = -1.2
    url_like: float = -1.5
    long_cell: float = -0.3
    time_like: float = -1.0


DEFAULT_WEIGHTS = HeaderScoreWeights()


def is_schedule_mode(mode: str | None) -> bool:
    return cell_text(mode).lower() in SCHEDULE_MODE_LABELS


def score_row(cells: list[str], weights: HeaderScoreWeights = DEFAULT_WEIGHTS) -> float:
    non_empty = textish = numeric = urlish = longish = time_like = 0
    for cell in cells:
        value = cell_text(cell)
        if not value:
            continue
        non_empty += 1
        if NUMERIC_ONLY_RE.match(value):
            numeric += 1
        if HTTP_URL_RE.match(value):
            urlish += 1
        if TIME_LIKE_RE.match(value):
            time_like += 1
        if TEXTISH_RE.search(value):
            textish += 1
        if len(value) >= LONG_CELL_LENGTH:
            longish += 1

    return (
        non_empty * weights.non_empty
        + textish * weights.textish
        + numeric * weights.numeric_only
        + urlish * weights.url_like
        + longish * weights.long_cell
        + time_like * weights.time_like
    )


def locate_header_heuristic(
    rows: list[list[str]],
    start: int = 0,
    max_check: int = HEADER_SCAN_LIMIT,
    weights: HeaderScoreWeights = DEFAULT_WEIGHTS,
) -> int:
    """
    Pick the row in ``rows[start:start + max_check]`` that looks most like a header.

    Rows with fewer than two filled cells or with any absolute URL cell are
    never candidates. Ties keep the earliest row; an empty window returns
    ``start``.
    """
    best_idx = start
    best_score: float | None = None
    end = min(len(rows), start + max_check)

    for idx in range(max(0, start), end):
        cells = [cell_text(cell) for cell in (rows[idx] or [])]
        if sum(1 for cell in cells if cell) < 2:
            continue
        if any(HTTP_URL_RE.match(cell) for cell in cells):
            continue
        score = score_row(cells, weights)
        if best_score is None or score > best_score:
            best_score = score
            best_idx = idx

    return best_idx


def locate_schedule_header(rows: list[list[str]]) -> int | None:
    for idx, row in enumerate(rows):
        if any(SCHEDULE_HEADER_RE.search(cell_text(cell)) for cell in (row or [])):
            return idx
    return None


def locate_header(
    rows: list[list[str]],
    cursor: int,
    mode: str | None,
    weights: HeaderScoreWeights = DEFAULT_WEIGHTS,
) -> int:
    if is_schedule_mode(mode):
        found = locate_schedule_header(rows)
        if found is not None:
            return found
        return locate_header_heuristic(rows, 0, weights=weights)
    return locate_header_heuristic(rows, cursor, weights=weights)
