from __future__ import annotations

import re

# Canonical meta keys and the literal first-cell labels that map to them.
# Order matters: lookup returns the first non-empty alias.
META_ALIASES: dict[str, tuple[str, ...]] = {
    "mode": ("模式", "mode"),
    "note": ("備註", "note"),
    "date": ("日期", "date"),
    "days": ("日程表", "行程表", "days"),
    "title": ("標題", "title"),
    "master_agenda": ("總議程", "master agenda"),
    "related_agenda": ("相關議程", "related agenda"),
    "related_agendas": ("多相關議程", "related agendas"),
}

AGENDA_META_KEYS = ("master_agenda", "related_agenda", "related_agendas")

META_LABELS = frozenset(
    alias.lower() for aliases in META_ALIASES.values() for alias in aliases
)
AGENDA_LABELS = frozenset(
    alias.lower() for key in AGENDA_META_KEYS for alias in META_ALIASES[key]
)

META_SCAN_LIMIT = 30
HEADER_SCAN_LIMIT = 30

# Delimiters used inside a single spreadsheet cell that lists gids or URLs.
TOKEN_SPLIT_RE = re.compile(r"[\s,，、;；]+")
GID_RE = re.compile(r"^\d+$")
HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
GID_PARAM_RE = re.compile(r"[?&#]gid=([0-9]+)", re.IGNORECASE)

SCHEDULE_MODE_LABELS = frozenset({"行程", "schedule"})
SHOPPING_MODE_LABELS = frozenset({"採購清單", "shopping"})


def cell_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_token_list(raw: object) -> list[str]:
    """Split a delimited cell value (gids, URLs, codes) into trimmed tokens."""
    text = cell_text(raw)
    if not text:
        return []
    return [token.strip() for token in TOKEN_SPLIT_RE.split(text) if token.strip()]


def normalise_label(value: object) -> str:
    return cell_text(value).lower()
