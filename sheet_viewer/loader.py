"""
loader.py — one "load" of a sheet tab, from CSV text to an immutable AppState.

Public API:
    sheet = parse_sheet(csv_text)
    state = load_app_state(LoadRequest(gid="123"), settings)

parse_sheet runs the pure inference pipeline:
    tokenize -> extract_meta -> locate_header -> assemble

load_app_state adds the I/O: it fetches the requested tab, then shallowly
fetches every agenda tab the sheet references to classify it. A new load
always yields a new AppState; nothing here is mutated in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from functools import partial
from importlib import resources
from typing import Callable, Mapping

from sheet_viewer.agenda import (
    PERSONAL,
    AgendaBucket,
    AgendaItem,
    classify,
    classify_mode,
    gate_personal,
    parse_agenda_items,
)
from sheet_viewer.capability import has_capability, parse_codes
from sheet_viewer.config import Settings
from sheet_viewer.csv_tokenizer import tokenize
from sheet_viewer.day_paginator import DayNavState
from sheet_viewer.errors import EmptySheetError, SheetViewerError
from sheet_viewer.header_locator import locate_header
from sheet_viewer.meta import extract_meta, lookup_meta, mode_value
from sheet_viewer.mode_router import ViewId, ViewState, parse_view, route, route_agenda
from sheet_viewer.records import DisplayFlag, assemble, is_row_visible
from sheet_viewer.shared import cell_text
from sheet_viewer.sources import build_export_url, export_url_for_link, fetch_csv_text, resolve_doc_id, resolve_gid

logger = logging.getLogger(__name__)

SAMPLE_RESOURCE = "sample.csv"
AGENDA_FLAG_VALUES = frozenset({"1", "true", "yes"})
PERSONAL_CONTENT_MESSAGE = "此頁為「個人」視圖，請在網址帶入 ?code= 存取碼才會顯示內容。"


@dataclass(frozen=True)
class ParsedSheet:
    header: list[str] = field(default_factory=list)
    data: list[dict[str, str]] = field(default_factory=list)
    meta: dict[str, str] = field(default_factory=dict)
    meta_rows: dict[str, list[str]] = field(default_factory=dict)
    row_flags: list[frozenset[DisplayFlag]] = field(default_factory=list)
    header_index: int = 0

    @property
    def mode(self) -> str:
        return mode_value(self.meta)

    @property
    def title(self) -> str:
        return lookup_meta(self.meta, "title") or ""

    def to_dict(self) -> dict:
        return {
            "header": list(self.header),
            "data": [dict(record) for record in self.data],
            "meta": dict(self.meta),
            "meta_rows": {key: list(cells) for key, cells in self.meta_rows.items()},
            "row_flags": [sorted(flag.name.lower() for flag in flags) for flags in self.row_flags],
            "header_index": self.header_index,
        }


def parse_sheet(text: str) -> ParsedSheet:
    rows = tokenize(text)
    if not rows:
        raise EmptySheetError("CSV is empty")

    block = extract_meta(rows)
    header_index = locate_header(rows, block.cursor, mode_value(block.values))
    records = assemble(rows, header_index)
    return ParsedSheet(
        header=records.header,
        data=records.data,
        meta=block.values,
        meta_rows=block.raw_rows,
        row_flags=records.row_flags,
        header_index=header_index,
    )


def probe_meta(text: str) -> dict[str, str]:
    """Meta block only; enough to classify a referenced agenda tab."""
    return extract_meta(tokenize(text)).values


def visible_rows(
    sheet: ParsedSheet,
    codes: frozenset[str] | None,
    restricted_code: str,
) -> list[tuple[dict[str, str], frozenset[DisplayFlag]]]:
    allowed = has_capability(codes, restricted_code)
    return [
        (record, flags)
        for record, flags in zip(sheet.data, sheet.row_flags)
        if is_row_visible(flags, allowed)
    ]


def load_sample_text() -> str:
    return resources.files("sheet_viewer").joinpath("data").joinpath(SAMPLE_RESOURCE).read_text(encoding="utf-8")


def to_dataframe(sheet: ParsedSheet, rows: list[dict[str, str]] | None = None):
    """Tabular view of the records, one column per distinct header name."""
    import pandas as pd

    columns = list(dict.fromkeys(sheet.header))
    return pd.DataFrame(sheet.data if rows is None else rows, columns=columns)


# ══════════════════════════════════════════════════════════════════════════════
# REQUEST / STATE
# ══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LoadRequest:
    gid: str = ""
    doc_id: str = ""
    pasted: str = ""
    view: ViewId | None = None
    codes: frozenset[str] = frozenset()
    # Opened from a note/personal agenda link; such tabs get the note route.
    agenda: bool = False

    @classmethod
    def from_query(cls, params: Mapping[str, object]) -> "LoadRequest":
        def first(name: str) -> str:
            value = params.get(name)
            if isinstance(value, (list, tuple)):
                value = value[0] if value else ""
            return cell_text(value)

        return cls(
            gid=first("gid"),
            doc_id=first("docId") or first("doc"),
            view=parse_view(first("view")),
            codes=parse_codes(first("code")),
            agenda=first("agenda").lower() in AGENDA_FLAG_VALUES,
        )


@dataclass(frozen=True)
class AppState:
    parsed_sheet: ParsedSheet
    view_state: ViewState
    day_nav: DayNavState
    agenda: AgendaBucket
    gid: str = ""
    doc_id: str = ""
    codes: frozenset[str] = frozenset()
    personal_hidden: bool = False
    agenda_tab: bool = False
    # The tab itself is personal and the personal code is missing.
    content_hidden: bool = False

    def rows(self, restricted_code: str) -> list[tuple[dict[str, str], frozenset[DisplayFlag]]]:
        if self.content_hidden:
            return []
        return visible_rows(self.parsed_sheet, self.codes, restricted_code)

    def switch_view(self, view: ViewId | str) -> "AppState":
        return replace(self, view_state=self.view_state.switch(view))

    def with_all_days(self, enabled: bool) -> "AppState":
        return replace(self, view_state=self.view_state.with_all_days(enabled))

    def to_query_params(self) -> dict[str, str]:
        params = {"gid": self.gid, "view": self.view_state.current_view.value}
        if self.agenda_tab:
            params["agenda"] = "1"
        return {key: value for key, value in params.items() if value}

    def to_dict(self) -> dict:
        agenda = self.agenda
        return {
            "gid": self.gid,
            "doc_id": self.doc_id,
            "sheet": self._sheet_dict(),
            "view": {
                "available": [view.value for view in self.view_state.available_views],
                "current": self.view_state.current_view.value,
                "all_days": self.view_state.all_days,
            },
            "days": {"gids": list(self.day_nav.gids), "index": self.day_nav.index},
            "agenda": {
                "personal": _entry_dict(agenda.personal),
                "note": _entry_dict(agenda.note),
                "shopping": _entry_dict(agenda.shopping),
                "other": [_entry_dict(entry) for entry in agenda.other],
            },
            "personal_hidden": self.personal_hidden,
            "agenda_tab": self.agenda_tab,
            "content_hidden": self.content_hidden,
        }

    def _sheet_dict(self) -> dict:
        payload = self.parsed_sheet.to_dict()
        if self.content_hidden:
            payload.update(data=[], row_flags=[])
        return payload


def _entry_dict(entry) -> dict | None:
    if entry is None:
        return None
    return {"key": entry.key, "gid": entry.gid, "url": entry.url, "title": entry.title, "mode": entry.mode}


def build_app_state(
    sheet: ParsedSheet,
    *,
    gid: str = "",
    doc_id: str = "",
    requested_view: ViewId | None = None,
    agenda: AgendaBucket | None = None,
    codes: frozenset[str] = frozenset(),
    personal_code: str = "",
    agenda_tab: bool = False,
) -> AppState:
    bucket = agenda or AgendaBucket()
    route_ = route_agenda() if agenda_tab else route(sheet.mode)
    allowed = has_capability(codes, personal_code)
    gated = gate_personal(bucket, allowed)
    return AppState(
        parsed_sheet=sheet,
        view_state=ViewState.initial(route_, requested_view),
        day_nav=DayNavState.from_meta(sheet.meta, gid),
        agenda=gated,
        gid=gid,
        doc_id=doc_id,
        codes=codes,
        personal_hidden=bucket.personal is not None and not allowed,
        agenda_tab=agenda_tab,
        content_hidden=classify_mode(sheet.mode) == PERSONAL and not allowed,
    )


# ══════════════════════════════════════════════════════════════════════════════
# I/O
# ══════════════════════════════════════════════════════════════════════════════

def agenda_url(item: AgendaItem, doc_id: str) -> str:
    if item.url:
        return export_url_for_link(item.url)
    return build_export_url(doc_id, item.gid)


def classify_agenda(
    sheet: ParsedSheet,
    doc_id: str,
    fetch: Callable[[str], str],
) -> AgendaBucket:
    """
    Fetch each referenced agenda tab once and bucket it by its own mode.

    A tab that cannot be fetched or parsed resolves to an empty mode and so
    lands in the note bucket instead of disappearing.
    """
    items = parse_agenda_items(sheet.meta, sheet.meta_rows)
    if not items:
        return AgendaBucket()

    probes: dict[str, dict[str, str]] = {}

    def probe(item: AgendaItem) -> dict[str, str]:
        if item.key not in probes:
            url = agenda_url(item, doc_id)
            try:
                probes[item.key] = probe_meta(fetch(url))
            except SheetViewerError as exc:
                logger.warning("agenda tab %s unavailable: %s", item.key, exc)
                probes[item.key] = {}
        return probes[item.key]

    return classify(
        items,
        mode_of=lambda item: mode_value(probe(item)),
        title_of=lambda item: lookup_meta(probe(item), "title") or "",
    )


def load_app_state(
    request: LoadRequest,
    settings: Settings | None = None,
    *,
    fetch: Callable[[str], str] | None = None,
    with_agenda: bool = True,
) -> AppState:
    settings = settings or Settings()
    fetch = fetch or partial(fetch_csv_text, timeout=settings.timeout)

    doc_id = resolve_doc_id(request.doc_id, request.pasted, settings.doc_id)
    gid = resolve_gid(request.gid, request.pasted)
    url = build_export_url(doc_id, gid)
    logger.debug("load start: doc_id=%s gid=%s", doc_id, gid or "(empty)")

    sheet = parse_sheet(fetch(url))
    agenda = classify_agenda(sheet, doc_id, fetch) if with_agenda else AgendaBucket()
    state = build_app_state(
        sheet,
        gid=gid,
        doc_id=doc_id,
        requested_view=request.view,
        agenda=agenda,
        codes=request.codes,
        personal_code=settings.personal_code,
        agenda_tab=request.agenda,
    )
    logger.info(
        "loaded %d rows (header row %d, mode %r, view %s)",
        len(sheet.data),
        sheet.header_index,
        sheet.mode,
        state.view_state.current_view.value,
    )
    return state


def load_sample_state(request: LoadRequest | None = None, settings: Settings | None = None) -> AppState:
    request = request or LoadRequest()
    settings = settings or Settings()
    return build_app_state(
        parse_sheet(load_sample_text()),
        gid=request.gid,
        doc_id=settings.doc_id,
        requested_view=request.view,
        codes=request.codes,
        personal_code=settings.personal_code,
        agenda_tab=request.agenda,
    )
