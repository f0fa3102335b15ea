from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from sheet_viewer.shared import SCHEDULE_MODE_LABELS, SHOPPING_MODE_LABELS, cell_text


class ViewId(str, Enum):
    GRID = "grid"
    LIST = "list"
    SCHEDULE = "schedule"
    SHOPPING = "shopping"
    NOTE = "note"
    RAW = "raw"


VIEW_LABELS = {
    ViewId.GRID: "圖片9宮格",
    ViewId.LIST: "詳細清單",
    ViewId.SCHEDULE: "行程",
    ViewId.SHOPPING: "採購清單",
    ViewId.NOTE: "注意事項",
    ViewId.RAW: "原始讀取",
}


@dataclass(frozen=True)
class Route:
    views: tuple[ViewId, ...]
    default: ViewId


SCHEDULE_ROUTE = Route((ViewId.SCHEDULE, ViewId.LIST, ViewId.RAW), ViewId.SCHEDULE)
SHOPPING_ROUTE = Route((ViewId.SHOPPING, ViewId.LIST, ViewId.RAW), ViewId.SHOPPING)
GRID_ROUTE = Route((ViewId.GRID, ViewId.LIST, ViewId.RAW), ViewId.GRID)
NOTE_ROUTE = Route((ViewId.NOTE, ViewId.LIST, ViewId.RAW), ViewId.NOTE)


def route(mode_value: str | None) -> Route:
    mode = cell_text(mode_value).lower()
    if mode in SCHEDULE_MODE_LABELS:
        return SCHEDULE_ROUTE
    if mode in SHOPPING_MODE_LABELS:
        return SHOPPING_ROUTE
    return GRID_ROUTE


def route_agenda() -> Route:
    """Route used when a note/personal agenda tab is opened on its own."""
    return NOTE_ROUTE


def parse_view(value: object) -> ViewId | None:
    if isinstance(value, ViewId):
        return value
    text = cell_text(value).lower()
    try:
        return ViewId(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class ViewState:
    available_views: tuple[ViewId, ...]
    current_view: ViewId
    # "All days on one page" aggregate; only meaningful on the schedule view.
    all_days: bool = False

    @classmethod
    def initial(cls, route_: Route, requested: ViewId | None = None) -> "ViewState":
        current = requested if requested in route_.views else route_.default
        return cls(available_views=route_.views, current_view=current)

    def switch(self, view: ViewId | str) -> "ViewState":
        target = parse_view(view)
        if target is None or target not in self.available_views:
            return self
        all_days = self.all_days if target == ViewId.SCHEDULE else False
        return replace(self, current_view=target, all_days=all_days)

    def with_all_days(self, enabled: bool) -> "ViewState":
        if self.current_view != ViewId.SCHEDULE:
            return replace(self, all_days=False)
        return replace(self, all_days=enabled)

    @property
    def label(self) -> str:
        return VIEW_LABELS[self.current_view]
