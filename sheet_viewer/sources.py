"""
sources.py — Google Sheets CSV export URLs and fetching.

Public API:
    url  = build_export_url(doc_id, gid)
    text = fetch_csv_text(url)

fetch_csv_text raises FetchError for HTTP errors, network failures, and
payloads that are HTML (login/permission redirects) or otherwise not CSV.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import quote

import requests

from sheet_viewer.errors import FetchError
from sheet_viewer.shared import GID_PARAM_RE, cell_text

logger = logging.getLogger(__name__)

EXPORT_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{doc_id}/export?format=csv"
EDIT_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{doc_id}/edit"
DOC_ID_RE = re.compile(r"/spreadsheets/d/([^/?#]+)")
CSV_CONTENT_TYPE_RE = re.compile(r"(^|;)\s*text/csv\s*(;|$)")
HTML_HEAD_RE = re.compile(r"^\s*<(?:!doctype html|html)", re.IGNORECASE)
DEFAULT_TIMEOUT = 30
SNIFF_BYTES = 4096


# ══════════════════════════════════════════════════════════════════════════════
# URL RESOLUTION
# ══════════════════════════════════════════════════════════════════════════════

def extract_gid(text: object) -> str:
    match = GID_PARAM_RE.search(cell_text(text))
    return match.group(1) if match else ""


def extract_doc_id(text: object) -> str:
    match = DOC_ID_RE.search(cell_text(text))
    return match.group(1) if match else ""


def resolve_doc_id(explicit: str | None, pasted: str | None, default: str) -> str:
    """Explicit id first, then an id found in a pasted Sheets URL, then ``default``."""
    return cell_text(explicit) or extract_doc_id(pasted) or default


def resolve_gid(explicit: str | None, pasted: str | None) -> str:
    return cell_text(explicit) or extract_gid(pasted)


def build_export_url(doc_id: str, gid: str | None = None) -> str:
    base = EXPORT_URL_TEMPLATE.format(doc_id=doc_id)
    gid = cell_text(gid)
    return f"{base}&gid={quote(gid)}" if gid else base


def edit_url(doc_id: str, gid: str | None = None) -> str:
    base = EDIT_URL_TEMPLATE.format(doc_id=doc_id)
    gid = cell_text(gid)
    return f"{base}#gid={quote(gid)}" if gid else base


def export_url_for_link(url: str) -> str:
    """Turn a pasted spreadsheet link into its CSV export; other URLs pass through."""
    doc_id = extract_doc_id(url)
    if "docs.google.com" in url.lower() and doc_id:
        return build_export_url(doc_id, extract_gid(url))
    return url


# ══════════════════════════════════════════════════════════════════════════════
# PAYLOAD CHECKS
# ══════════════════════════════════════════════════════════════════════════════

def looks_like_delimited(text: str) -> bool:
    """At least two non-empty lines, one of which contains a comma or tab."""
    if not text:
        return False
    lines = [line for line in re.split(r"\r?\n", text[:SNIFF_BYTES]) if line]
    if len(lines) < 2:
        return False
    return any("," in line or "\t" in line for line in lines)


def looks_like_html(text: str) -> bool:
    return bool(HTML_HEAD_RE.match(text)) or "<html" in text.lower()


def decode_payload(raw: bytes) -> str:
    """
    Decode a CSV payload.

    Sheets exports are UTF-8, so that is tried first; chardet only steps in
    for payloads that are not valid UTF-8.
    """
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass

    import chardet

    detected = chardet.detect(raw).get("encoding") or "utf-8"
    try:
        return raw.decode(detected, errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


def validate_csv_payload(text: str, content_type: str) -> str:
    if CSV_CONTENT_TYPE_RE.search(content_type.lower()) or looks_like_delimited(text):
        return text
    if looks_like_html(text):
        raise FetchError("Received HTML instead of CSV (sign-in/permission page or not a CSV endpoint)")
    raise FetchError(f"Received non-CSV content (content-type: {content_type or '[missing]'})")


# ══════════════════════════════════════════════════════════════════════════════
# FETCH
# ══════════════════════════════════════════════════════════════════════════════

def fetch_csv_text(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    session: requests.Session | None = None,
) -> str:
    http = session or requests
    logger.debug("fetch start: %s", url)
    try:
        response = http.get(url, timeout=timeout, allow_redirects=True)
    except requests.RequestException as exc:
        raise FetchError(f"Could not reach {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    logger.debug(
        "fetch response: final=%s status=%s content-type=%s",
        getattr(response, "url", url) or url,
        response.status_code,
        content_type,
    )
    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        raise FetchError(f"HTTP {response.status_code} fetching {url}") from exc

    text = decode_payload(response.content)
    logger.debug("fetch text head: %r", text[:400])
    return validate_csv_payload(text, content_type)
