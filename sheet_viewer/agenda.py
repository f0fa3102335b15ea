from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Iterable, Mapping

from sheet_viewer.meta import lookup_meta_rows, lookup_meta_values
from sheet_viewer.shared import (
    AGENDA_META_KEYS,
    GID_PARAM_RE,
    GID_RE,
    HTTP_URL_RE,
    cell_text,
    parse_token_list,
)

PERSONAL = "personal"
NOTE = "note"
SHOPPING = "shopping"

PERSONAL_MARKER = "個人"
NOTE_MARKER = "注意"
SHOPPING_MARKERS = ("採購", "購物", "shopping")


@dataclass(frozen=True)
class AgendaItem:
    key: str
    gid: str = ""
    url: str = ""


@dataclass(frozen=True)
class AgendaEntry:
    key: str
    gid: str = ""
    url: str = ""
    title: str = ""
    mode: str = ""


@dataclass(frozen=True)
class AgendaBucket:
    personal: AgendaEntry | None = None
    note: AgendaEntry | None = None
    shopping: AgendaEntry | None = None
    other: tuple[AgendaEntry, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.personal or self.note or self.shopping or self.other)


def parse_agenda_token(token: str) -> AgendaItem | None:
    token = cell_text(token)
    if GID_RE.match(token):
        return AgendaItem(key=token, gid=token)
    if HTTP_URL_RE.match(token):
        match = GID_PARAM_RE.search(token)
        return AgendaItem(key=token, gid=match.group(1) if match else "", url=token)
    return None


def parse_agenda_items(
    meta: Mapping[str, str] | None,
    meta_rows: Mapping[str, list[str]] | None = None,
) -> list[AgendaItem]:
    """
    Collect agenda references from every agenda-type meta key, in order.

    Raw cells are preferred when the extractor kept them; otherwise the
    joined meta value is tokenized. Duplicate gids/URLs are dropped.
    """
    items: list[AgendaItem] = []
    seen: set[str] = set()

    for key in AGENDA_META_KEYS:
        cells = lookup_meta_rows(meta_rows, key)
        if cells is None:
            cells = lookup_meta_values(meta, key)
        for cell in cells:
            for token in parse_token_list(cell):
                item = parse_agenda_token(token)
                if item is None or item.key in seen:
                    continue
                seen.add(item.key)
                items.append(item)

    return items


def classify_mode(mode: str | None) -> str:
    text = cell_text(mode).lower()
    if PERSONAL_MARKER in text and NOTE_MARKER in text:
        return PERSONAL
    if any(marker in text for marker in SHOPPING_MARKERS):
        return SHOPPING
    # Unknown or empty modes fall back to note so the tab is never dropped.
    return NOTE


def classify(
    items: Iterable[AgendaItem],
    mode_of: Callable[[AgendaItem], str],
    title_of: Callable[[AgendaItem], str] | None = None,
) -> AgendaBucket:
    slots: dict[str, AgendaEntry | None] = {PERSONAL: None, NOTE: None, SHOPPING: None}
    other: list[AgendaEntry] = []

    for item in items:
        mode = cell_text(mode_of(item))
        title = cell_text(title_of(item)) if title_of else ""
        entry = AgendaEntry(key=item.key, gid=item.gid, url=item.url, title=title, mode=mode)
        kind = classify_mode(mode)
        if slots[kind] is None:
            slots[kind] = entry
        else:
            other.append(entry)

    return AgendaBucket(
        personal=slots[PERSONAL],
        note=slots[NOTE],
        shopping=slots[SHOPPING],
        other=tuple(other),
    )


def gate_personal(bucket: AgendaBucket, allowed: bool) -> AgendaBucket:
    if allowed or bucket.personal is None:
        return bucket
    return replace(bucket, personal=None)
