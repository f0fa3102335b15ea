"""Shared versioned contracts for sheet-viewer JSON outputs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

CONTRACT_VERSIONS = {
    "sheet_viewer.parsed_sheet": "1.0.0",
    "sheet_viewer.app_state": "1.0.0",
}


def utc_now_iso(stamp: str | None = None) -> str:
    if stamp:
        return stamp
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_contract(name: str) -> dict[str, str]:
    version = CONTRACT_VERSIONS[name]
    return {"name": name, "version": version}


def build_run_summary(
    *,
    command: str,
    source: str,
    contract: str,
    payload: dict[str, Any],
    status: str = "ok",
    gid: str = "",
    warnings: list[str] | None = None,
    stamp: str | None = None,
) -> dict[str, Any]:
    return {
        "contract": build_contract(contract),
        "command": command,
        "status": status,
        "generated_at": utc_now_iso(stamp),
        "source": source,
        "gid": gid or None,
        "warnings_count": len(warnings or []),
        "warnings": list(warnings or []),
        "result": payload,
    }
