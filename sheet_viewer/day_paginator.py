"""
day_paginator.py — paging between sibling sheet tabs that hold one day each.

The days cell of the meta block lists tab gids; this module only computes
which gid to load next. Fetching is left to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from sheet_viewer.meta import lookup_meta
from sheet_viewer.mode_router import ViewId
from sheet_viewer.shared import GID_RE, cell_text, parse_token_list


def parse_day_gids(meta: Mapping[str, str] | None) -> list[str]:
    raw = lookup_meta(meta, "days") or ""
    return [token for token in parse_token_list(raw) if GID_RE.match(token)]


def current_index(gids: list[str] | tuple[str, ...], active_gid: str | None) -> int:
    active = cell_text(active_gid)
    try:
        return list(gids).index(active)
    except ValueError:
        return 0


def navigate(gids: list[str] | tuple[str, ...], index: int, delta: int) -> str:
    if not gids:
        return ""
    target = max(0, min(index + delta, len(gids) - 1))
    return gids[target]


def show_for_view(view: ViewId) -> bool:
    return view != ViewId.GRID


@dataclass(frozen=True)
class DayNavState:
    gids: tuple[str, ...] = ()
    index: int = 0

    @classmethod
    def from_meta(cls, meta: Mapping[str, str] | None, active_gid: str | None) -> "DayNavState":
        gids = tuple(parse_day_gids(meta))
        return cls(gids=gids, index=current_index(gids, active_gid) if gids else 0)

    @property
    def enabled(self) -> bool:
        return bool(self.gids)

    @property
    def total(self) -> int:
        return len(self.gids)

    @property
    def has_prev(self) -> bool:
        return self.enabled and self.index > 0

    @property
    def has_next(self) -> bool:
        return self.enabled and self.index < self.total - 1

    @property
    def prev_gid(self) -> str:
        return navigate(self.gids, self.index, -1)

    @property
    def next_gid(self) -> str:
        return navigate(self.gids, self.index, 1)

    def day_labels(self) -> tuple[str, str, str]:
        """Return (previous, next, current) pager captions."""
        if not self.enabled:
            return "", "", ""
        prev_label = f"第{self.index}天"
        next_label = f"第{self.index + 2}天" if self.has_next else f"第{self.total}天"
        current_label = f"第{self.index + 1}天 / 共{self.total}天"
        return prev_label, next_label, current_label
