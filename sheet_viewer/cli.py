from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from sheet_viewer import __version__ as TOOL_VERSION
from sheet_viewer.capability import parse_codes
from sheet_viewer.config import Settings
from sheet_viewer.contracts import build_run_summary
from sheet_viewer.day_paginator import show_for_view
from sheet_viewer.errors import EmptySheetError, FetchError
from sheet_viewer.loader import (
    PERSONAL_CONTENT_MESSAGE,
    AppState,
    LoadRequest,
    build_app_state,
    load_app_state,
    load_sample_text,
    parse_sheet,
)
from sheet_viewer.mode_router import ViewId, parse_view
from sheet_viewer.money import display_price_cell, set_exchange_rates
from sheet_viewer.sources import decode_payload, edit_url

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_FETCH_FAILED = 3

VIEW_CHOICES = [view.value for view in ViewId]


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class SheetViewerArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def configure_logging(args: argparse.Namespace) -> None:
    if getattr(args, "verbose", False):
        level = logging.DEBUG
    elif getattr(args, "quiet", False):
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, FetchError):
        return EXIT_FETCH_FAILED
    if isinstance(exc, (EmptySheetError, UnicodeDecodeError)):
        return EXIT_PARSE_FAILED
    return EXIT_COMMAND_ERROR


def load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as exc:
        raise CliError(f"Invalid configuration: {exc}", EXIT_COMMAND_ERROR) from exc


def read_input_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.exists():
        raise CliError(f"Input not found: {path}", EXIT_COMMAND_ERROR)
    if path.is_dir():
        raise CliError(f"Input is a directory: {path}", EXIT_COMMAND_ERROR)
    return decode_payload(path.read_bytes())


# ══════════════════════════════════════════════════════════════════════════════
# RENDERING
# ══════════════════════════════════════════════════════════════════════════════

def render_state_text(state: AppState, settings: Settings) -> str:
    sheet = state.parsed_sheet
    view_state = state.view_state
    shown = state.rows(settings.restricted_code)

    views = ", ".join(
        f"[{view.value}]" if view == view_state.current_view else view.value
        for view in view_state.available_views
    )
    lines = [
        f"Title: {sheet.title or '(untitled)'}",
        f"Mode: {sheet.mode or '(none)'}",
        f"Header row: {sheet.header_index}",
        f"Columns: {', '.join(sheet.header) if sheet.header else '(none)'}",
        f"Rows: {len(sheet.data)} ({len(shown)} visible)",
        f"Views: {views}  -> {view_state.label}",
    ]
    if state.content_hidden:
        lines.append(PERSONAL_CONTENT_MESSAGE)

    day_nav = state.day_nav
    if day_nav.enabled and show_for_view(view_state.current_view):
        prev_label, next_label, current_label = day_nav.day_labels()
        lines.append(f"Days: {current_label}")
        if day_nav.has_prev:
            lines.append(f"  prev {prev_label}: gid={day_nav.prev_gid}")
        if day_nav.has_next:
            lines.append(f"  next {next_label}: gid={day_nav.next_gid}")

    agenda = state.agenda
    if not agenda.is_empty:
        lines.append("Agenda:")
        for label, entry in (
            ("personal", agenda.personal),
            ("note", agenda.note),
            ("shopping", agenda.shopping),
        ):
            if entry is not None:
                lines.append(f"  {label}: {entry.title or entry.key} ({entry.url or edit_url(state.doc_id, entry.gid)})")
        for entry in agenda.other:
            lines.append(f"  other: {entry.title or entry.key} ({entry.url or edit_url(state.doc_id, entry.gid)})")
    if state.personal_hidden:
        lines.append("Personal agenda hidden (add the personal code to ?code= to show it)")
    return "\n".join(lines)


def emit_state(args: argparse.Namespace, state: AppState, settings: Settings, *, command: str, source: str) -> None:
    if args.json:
        payload = build_run_summary(
            command=command,
            source=source,
            contract="sheet_viewer.app_state",
            payload=state.to_dict(),
            gid=state.gid,
            stamp=settings.output_stamp,
        )
        print(json_dumps(payload))
    else:
        emit_human(render_state_text(state, settings), quiet=args.quiet)


# ══════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ══════════════════════════════════════════════════════════════════════════════

def add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    parser.add_argument("--view", choices=VIEW_CHOICES, help="Requested view (ignored if the mode does not offer it)")
    parser.add_argument("--code", default="", help="Access codes, comma separated")
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")


def build_parser() -> argparse.ArgumentParser:
    parser = SheetViewerArgumentParser(prog="sheet-viewer", description="Infer and navigate Google Sheets CSV exports.")
    subparsers = parser.add_subparsers(dest="command", required=True, parser_class=SheetViewerArgumentParser)

    parse_cmd = subparsers.add_parser("parse", help="Parse a local CSV file ('-' for stdin).")
    parse_cmd.add_argument("input", help="CSV path or '-'")
    parse_cmd.add_argument("--gid", default="", help="gid of this tab, for day navigation context")
    add_common_flags(parse_cmd)

    fetch = subparsers.add_parser("fetch", help="Fetch a sheet tab and load it.")
    fetch.add_argument("--gid", default="", help="Tab gid")
    fetch.add_argument("--doc-id", dest="doc_id", default="", help="Spreadsheet id")
    fetch.add_argument("--url", default="", help="Pasted spreadsheet URL (doc id and gid are read from it)")
    fetch.add_argument("--no-agenda", dest="no_agenda", action="store_true", help="Skip fetching referenced agenda tabs")
    add_common_flags(fetch)

    sample = subparsers.add_parser("sample", help="Parse the bundled sample itinerary.")
    sample.add_argument("--gid", default="", help="gid to treat as active")
    add_common_flags(sample)

    price = subparsers.add_parser("price", help="Show how a price cell is displayed.")
    price.add_argument("text", help="Price cell text")
    price.add_argument("--converted", default=None, help="Author-supplied NT$ figure")

    subparsers.add_parser("version", help="Print version")
    return parser


def request_from_args(args: argparse.Namespace) -> LoadRequest:
    return LoadRequest(
        gid=getattr(args, "gid", "") or "",
        doc_id=getattr(args, "doc_id", "") or "",
        pasted=getattr(args, "url", "") or "",
        view=parse_view(args.view),
        codes=parse_codes(args.code),
    )


def run_parse(args: argparse.Namespace, settings: Settings) -> int:
    try:
        text = read_input_text(args.input)
        request = request_from_args(args)
        state = build_app_state(
            parse_sheet(text),
            gid=request.gid,
            doc_id=settings.doc_id,
            requested_view=request.view,
            codes=request.codes,
            personal_code=settings.personal_code,
        )
        emit_state(args, state, settings, command="parse", source=args.input)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_fetch(args: argparse.Namespace, settings: Settings) -> int:
    try:
        request = request_from_args(args)
        state = load_app_state(request, settings, with_agenda=not args.no_agenda)
        emit_state(args, state, settings, command="fetch", source=edit_url(state.doc_id, state.gid))
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_sample(args: argparse.Namespace, settings: Settings) -> int:
    try:
        request = request_from_args(args)
        state = build_app_state(
            parse_sheet(load_sample_text()),
            gid=request.gid,
            doc_id=settings.doc_id,
            requested_view=request.view,
            codes=request.codes,
            personal_code=settings.personal_code,
        )
        emit_state(args, state, settings, command="sample", source="sample.csv")
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_price(args: argparse.Namespace) -> int:
    print(display_price_cell(args.text, args.converted))
    return EXIT_SUCCESS


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        configure_logging(args)
        settings = load_settings()
        set_exchange_rates(settings.exchange_rates)
        if args.command == "parse":
            return run_parse(args, settings)
        if args.command == "fetch":
            return run_fetch(args, settings)
        if args.command == "sample":
            return run_sample(args, settings)
        if args.command == "price":
            return run_price(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
