"""
Column mapping and row ordering handed to the card-style renderers.

Renderers for the schedule, shopping and note views look columns up by
role (time, name, price, ...) rather than by literal header text. The alias
lists below are the header spellings seen in real sheets, Chinese first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from sheet_viewer.mode_router import ViewId
from sheet_viewer.records import DISPLAY_MODE_CANDIDATES, NO_FLAGS, DisplayFlag, pick_field
from sheet_viewer.shared import cell_text

TYPE_CANDIDATES = ("類型", "type", "分類", "category")
SITE_CANDIDATES = ("官網", "網站", "官方網站", "website", "official", "url")
PRICE_CANDIDATES = ("金額", "price", "費用")
PRICE_NT_CANDIDATES = (
    "換算金額(NT)", "換算金額", "換算金額nt", "換算金額(nt)",
    "換算金額twd", "twd", "ntd", "converted", "converted nt", "converted ntd",
)
IMAGE_CANDIDATES = ("圖片", "圖片網址", "照片", "image", "img", "thumbnail", "photo", "pic", "圖")
NOTE_CANDIDATES = ("備註", "note")
INDEX_CANDIDATES = ("index", "序", "順序", "編號", "no", "序號")
UNKNOWN_TIMES = frozenset({"?", "？"})
REVIEW_NUMBERED_RE = re.compile(r"^(?:評論|review)\d+$", re.IGNORECASE)


@dataclass(frozen=True)
class ViewKeys:
    display_mode: str | None = None
    time: str | None = None
    index: str | None = None
    type: str | None = None
    name: str | None = None
    location: str | None = None
    location_alias: str | None = None
    site: str | None = None
    price: str | None = None
    price_nt: str | None = None
    hours: str | None = None
    reviews: tuple[str, ...] = field(default_factory=tuple)
    image: str | None = None
    summary: str | None = None
    note: str | None = None


def collect_review_keys(header: list[str]) -> tuple[str, ...]:
    out: list[str] = []
    for key in (cell_text(name) for name in header):
        if not key:
            continue
        lowered = key.lower()
        if key == "評論" or REVIEW_NUMBERED_RE.match(key) or "review" in lowered:
            if key not in out:
                out.append(key)
    return tuple(out)


def _fallback_name(header: list[str]) -> str | None:
    if len(header) > 1:
        return header[1]
    return header[0] if header else None


def schedule_keys(header: list[str]) -> ViewKeys:
    return ViewKeys(
        display_mode=pick_field(header, DISPLAY_MODE_CANDIDATES),
        time=header[0] if header else None,
        type=pick_field(header, TYPE_CANDIDATES),
        name=pick_field(header, ("名稱", "name", "title", "主題", "景點")) or _fallback_name(header),
        location=pick_field(header, ("地址", "address")),
        location_alias=pick_field(header, ("地點別稱", "地點", "location", "別稱", "alias", "location alias")),
        site=pick_field(header, SITE_CANDIDATES),
        price=pick_field(header, PRICE_CANDIDATES),
        price_nt=pick_field(header, PRICE_NT_CANDIDATES),
        hours=pick_field(header, ("營業時間", "營業時段", "hours", "opening hours", "open hours")),
        reviews=collect_review_keys(header),
        image=pick_field(header, IMAGE_CANDIDATES),
        summary=pick_field(header, ("摘要", "summary")),
        note=pick_field(header, NOTE_CANDIDATES),
    )


def shopping_keys(header: list[str]) -> ViewKeys:
    return ViewKeys(
        display_mode=pick_field(header, DISPLAY_MODE_CANDIDATES),
        time=header[0] if header else None,
        type=pick_field(header, TYPE_CANDIDATES),
        name=pick_field(header, ("名稱", "name", "title", "品項", "商品")) or _fallback_name(header),
        location=pick_field(header, ("地點", "location", "店家", "店名", "地址", "address")),
        location_alias=pick_field(header, ("地點別稱", "別稱", "alias", "location alias")),
        site=pick_field(header, SITE_CANDIDATES),
        price=pick_field(header, PRICE_CANDIDATES),
        price_nt=pick_field(header, PRICE_NT_CANDIDATES),
        hours=pick_field(header, ("營業時間", "hours", "資訊", "info")),
        reviews=collect_review_keys(header),
        image=pick_field(header, IMAGE_CANDIDATES),
        summary=pick_field(header, ("摘要", "summary", "內容", "content")),
        note=pick_field(header, NOTE_CANDIDATES),
    )


def note_keys(header: list[str]) -> ViewKeys:
    return ViewKeys(
        display_mode=pick_field(header, DISPLAY_MODE_CANDIDATES),
        index=pick_field(header, INDEX_CANDIDATES),
        type=pick_field(header, TYPE_CANDIDATES),
        name=pick_field(header, ("名稱", "name", "title", "主題", "事項")) or _fallback_name(header),
        location=pick_field(header, ("地址", "address")),
        location_alias=pick_field(header, ("地點別稱", "地點", "location", "別稱", "alias", "location alias")),
        site=pick_field(header, SITE_CANDIDATES),
        reviews=collect_review_keys(header),
        image=pick_field(header, IMAGE_CANDIDATES),
        summary=pick_field(header, ("摘要", "summary", "內容", "content")),
        note=pick_field(header, NOTE_CANDIDATES),
        hours=pick_field(header, ("資訊", "info", "營業時間", "hours")),
    )


def view_keys_for(view: ViewId, header: list[str]) -> ViewKeys | None:
    if view == ViewId.SCHEDULE:
        return schedule_keys(header)
    if view == ViewId.SHOPPING:
        return shopping_keys(header)
    if view == ViewId.NOTE:
        return note_keys(header)
    return None


def schedule_rank(time_text: str, flags: frozenset[DisplayFlag]) -> int:
    if DisplayFlag.GRAY_DEPRIORITIZED in flags:
        return 2
    if cell_text(time_text) in UNKNOWN_TIMES:
        return 1
    return 0


def order_schedule_rows(
    rows: list[tuple[dict[str, str], frozenset[DisplayFlag]]],
    keys: ViewKeys,
) -> list[tuple[dict[str, str], frozenset[DisplayFlag]]]:
    """Known times first, then "?" times, then gray rows; ties by time text."""

    def sort_key(item: tuple[dict[str, str], frozenset[DisplayFlag]]) -> tuple[int, str]:
        record, flags = item
        time_text = cell_text(record.get(keys.time or "", ""))
        return schedule_rank(time_text, flags or NO_FLAGS), time_text

    return sorted(rows, key=sort_key)


def _parse_index(value: object) -> int | None:
    match = re.match(r"^\s*-?\d+", cell_text(value))
    return int(match.group(0)) if match else None


def order_note_rows(
    rows: list[tuple[dict[str, str], frozenset[DisplayFlag]]],
    keys: ViewKeys,
) -> list[tuple[dict[str, str], frozenset[DisplayFlag]]]:
    if not keys.index:
        return list(rows)

    def sort_key(item: tuple[dict[str, str], frozenset[DisplayFlag]]) -> tuple[int, int]:
        parsed = _parse_index(item[0].get(keys.index or ""))
        return (0, parsed) if parsed is not None else (1, 0)

    return sorted(rows, key=sort_key)
