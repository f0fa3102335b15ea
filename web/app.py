#!/usr/bin/env python3
from __future__ import annotations

from typing import Callable

import streamlit as st
from pydantic import ValidationError

from sheet_viewer.agenda import SHOPPING, classify_mode
from sheet_viewer.config import Settings
from sheet_viewer.day_paginator import show_for_view
from sheet_viewer.errors import SheetViewerError
from sheet_viewer.loader import (
    PERSONAL_CONTENT_MESSAGE,
    AppState,
    LoadRequest,
    ParsedSheet,
    load_app_state,
    load_sample_state,
    parse_sheet,
    to_dataframe,
    visible_rows,
)
from sheet_viewer.meta import lookup_meta
from sheet_viewer.mode_router import VIEW_LABELS, ViewId
from sheet_viewer.money import display_price_cell, set_exchange_rates
from sheet_viewer.records import DisplayFlag
from sheet_viewer.sources import build_export_url, edit_url, fetch_csv_text
from sheet_viewer.view_keys import (
    ViewKeys,
    order_note_rows,
    order_schedule_rows,
    view_keys_for,
)

GRID_COLUMNS = 3


@st.cache_data(ttl=120, show_spinner=False)
def cached_fetch(url: str, timeout: float) -> str:
    return fetch_csv_text(url, timeout=timeout)


def fetcher(settings: Settings) -> Callable[[str], str]:
    return lambda url: cached_fetch(url, settings.timeout)


def ensure_state() -> None:
    st.session_state.setdefault("use_sample", False)


def current_request() -> LoadRequest:
    return LoadRequest.from_query(st.query_params.to_dict())


def write_query(state: AppState) -> None:
    for key, value in state.to_query_params().items():
        if st.query_params.get(key) != value:
            st.query_params[key] = value


def go_to_gid(gid: str, *, agenda: bool = False) -> None:
    st.query_params["gid"] = gid
    if agenda:
        st.query_params["agenda"] = "1"
    elif "agenda" in st.query_params:
        del st.query_params["agenda"]
    st.session_state["use_sample"] = False
    st.rerun()


# ══════════════════════════════════════════════════════════════════════════════
# CARDS
# ══════════════════════════════════════════════════════════════════════════════

def field(record: dict[str, str], key: str | None) -> str:
    return record.get(key, "") if key else ""


def render_card(record: dict[str, str], flags: frozenset[DisplayFlag], keys: ViewKeys) -> None:
    name = field(record, keys.name) or "(未命名)"
    time_text = field(record, keys.time)
    heading = f"{time_text}  {name}" if time_text else name
    if DisplayFlag.STRIKE in flags:
        heading = f"~~{heading}~~"

    with st.container(border=True):
        if DisplayFlag.GRAY_DEPRIORITIZED in flags:
            st.caption(heading)
        else:
            st.markdown(f"**{heading}**")

        details = []
        for label, key in (("類型", keys.type), ("地點", keys.location_alias), ("地址", keys.location), ("營業時間", keys.hours)):
            value = field(record, key)
            if value:
                details.append(f"{label}: {value}")
        price = display_price_cell(field(record, keys.price), field(record, keys.price_nt))
        if price:
            details.append("金額: " + price.replace("\n", " / "))
        if details:
            st.markdown("  \n".join(details))

        for key in (keys.summary, keys.note):
            value = field(record, key)
            if value:
                st.write(value)
        for key in keys.reviews:
            value = field(record, key)
            if value:
                st.caption(value)

        image = field(record, keys.image)
        if image.startswith("http"):
            st.image(image, width=240)
        site = field(record, keys.site)
        if site.startswith("http"):
            st.link_button("官網", site)


def render_cards(sheet: ParsedSheet, state: AppState, settings: Settings, view: ViewId) -> None:
    keys = view_keys_for(view, sheet.header)
    rows = visible_rows(sheet, state.codes, settings.restricted_code)
    if keys is None:
        return
    if view == ViewId.SCHEDULE:
        rows = order_schedule_rows(rows, keys)
    elif view == ViewId.NOTE:
        rows = order_note_rows(rows, keys)
    if not rows:
        st.info("這個分頁沒有可顯示的資料列。")
        return
    for record, flags in rows:
        render_card(record, flags, keys)


def render_grid(sheet: ParsedSheet, state: AppState, settings: Settings) -> None:
    keys = view_keys_for(ViewId.NOTE, sheet.header)
    rows = visible_rows(sheet, state.codes, settings.restricted_code)
    columns = st.columns(GRID_COLUMNS)
    for idx, (record, _flags) in enumerate(rows):
        with columns[idx % GRID_COLUMNS]:
            image = field(record, keys.image)
            if image.startswith("http"):
                st.image(image)
            st.caption(field(record, keys.name) or "-")


# ══════════════════════════════════════════════════════════════════════════════
# PAGE SECTIONS
# ══════════════════════════════════════════════════════════════════════════════

def render_header(state: AppState) -> None:
    sheet = state.parsed_sheet
    st.title(sheet.title or "sheet-viewer")
    date = lookup_meta(sheet.meta, "date")
    if date:
        st.caption(date)
    note = lookup_meta(sheet.meta, "note")
    if note:
        st.info(note)


def render_view_switcher(state: AppState) -> AppState:
    views = state.view_state.available_views
    choice = st.radio(
        "檢視",
        options=[view.value for view in views],
        index=views.index(state.view_state.current_view),
        format_func=lambda value: VIEW_LABELS[ViewId(value)],
        horizontal=True,
    )
    state = state.switch_view(choice)
    if state.view_state.current_view == ViewId.SCHEDULE and state.day_nav.enabled:
        state = state.with_all_days(st.toggle("全部天數", value=state.view_state.all_days))
    return state


def render_day_nav(state: AppState) -> None:
    day_nav = state.day_nav
    if not day_nav.enabled or not show_for_view(state.view_state.current_view) or state.view_state.all_days:
        return
    prev_label, next_label, current_label = day_nav.day_labels()
    left, middle, right = st.columns([1, 2, 1])
    if left.button(f"← {prev_label}", disabled=not day_nav.has_prev, width="stretch"):
        go_to_gid(day_nav.prev_gid)
    middle.markdown(f"<div style='text-align:center'>{current_label}</div>", unsafe_allow_html=True)
    if right.button(f"{next_label} →", disabled=not day_nav.has_next, width="stretch"):
        go_to_gid(day_nav.next_gid)


def render_agenda(state: AppState) -> None:
    agenda = state.agenda
    if agenda.is_empty and not state.personal_hidden:
        return
    st.markdown("**相關議程**")
    entries = [
        ("個人注意事項", agenda.personal),
        ("注意事項", agenda.note),
        ("採購清單", agenda.shopping),
    ] + [("其他", entry) for entry in agenda.other]
    for label, entry in entries:
        if entry is None:
            continue
        caption = f"{label}: {entry.title or entry.key}"
        if entry.gid and not entry.url:
            if st.button(caption, key=f"agenda_{entry.key}"):
                go_to_gid(entry.gid, agenda=classify_mode(entry.mode) != SHOPPING)
        else:
            st.link_button(caption, entry.url or edit_url(state.doc_id, entry.gid))
    if state.personal_hidden:
        st.caption("個人注意事項需要存取碼才能顯示。")


def render_all_days(state: AppState, settings: Settings) -> None:
    fetch = fetcher(settings)
    for idx, gid in enumerate(state.day_nav.gids):
        st.subheader(f"第{idx + 1}天")
        if gid == state.gid:
            sheet = state.parsed_sheet
        else:
            try:
                sheet = parse_sheet(fetch(build_export_url(state.doc_id, gid)))
            except SheetViewerError as exc:
                st.warning(f"第{idx + 1}天無法載入: {exc}")
                continue
        render_cards(sheet, state, settings, ViewId.SCHEDULE)


def render_body(state: AppState, settings: Settings) -> None:
    if state.content_hidden:
        st.warning(PERSONAL_CONTENT_MESSAGE)
        return
    sheet = state.parsed_sheet
    view = state.view_state.current_view
    if view == ViewId.SCHEDULE and state.view_state.all_days:
        render_all_days(state, settings)
    elif view in (ViewId.SCHEDULE, ViewId.SHOPPING, ViewId.NOTE):
        render_cards(sheet, state, settings, view)
    elif view == ViewId.GRID:
        render_grid(sheet, state, settings)
    elif view == ViewId.LIST:
        rows = [record for record, _flags in state.rows(settings.restricted_code)]
        st.dataframe(to_dataframe(sheet, rows), width="stretch", hide_index=True)
    else:
        st.json({"meta": sheet.meta, "header_index": sheet.header_index})
        st.dataframe(to_dataframe(sheet), width="stretch", hide_index=True)


def load_state(settings: Settings) -> AppState | None:
    request = current_request()
    if st.session_state["use_sample"]:
        return load_sample_state(request, settings)
    try:
        with st.spinner("載入中..."):
            return load_app_state(request, settings, fetch=fetcher(settings))
    except SheetViewerError as exc:
        st.error(f"無法載入試算表: {exc}")
        st.caption(f"來源: {edit_url(request.doc_id or settings.doc_id, request.gid)}")
        if st.button("載入範例資料", type="primary"):
            st.session_state["use_sample"] = True
            st.rerun()
        return None


def main() -> None:
    st.set_page_config(page_title="sheet-viewer", layout="centered")
    ensure_state()
    try:
        settings = Settings()
    except ValidationError as exc:
        st.error(f"設定錯誤: {exc}")
        return
    set_exchange_rates(settings.exchange_rates)

    state = load_state(settings)
    if state is None:
        return

    render_header(state)
    state = render_view_switcher(state)
    write_query(state)
    render_day_nav(state)
    render_agenda(state)
    render_body(state, settings)


if __name__ == "__main__":
    main()
