"""
money.py — currency detection and approximate NT$ conversion for price cells.

Only lines that name an explicitly foreign currency are converted. Lines in
NT$ or with no currency marker at all are returned exactly as written.

Public API:
    display_price("¥1000")                  -> "¥1000(約NT$200)"
    display_price("$100", "NT$3000")        -> "$100(約NT$3,000)"
    display_price_cell("RMB 10\\nUSD 2")    -> one converted line per input line
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Mapping

DEFAULT_RATES_TO_NTD: dict[str, float] = {
    "USD": 31.5,
    "JPY": 0.2,
    "CNY": 4.4,
    "KRW": 0.024,
    "HKD": 4.0,
    "NTD": 1.0,
}
SUPPORTED_CURRENCIES = frozenset(DEFAULT_RATES_TO_NTD)

_RATE_OVERRIDES: dict[str, float] = {}

NTD_WORD_RE = re.compile(r"\b(?:ntd|twd)\b", re.ASCII)
NT_PREFIX_RE = re.compile(r"\bnt\s*\$?\b", re.IGNORECASE | re.ASCII)
LEADING_DOLLAR_RE = re.compile(r"^\s*\$")
NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
UNIT_SUFFIX_RE = re.compile(r"((?:/|／)\s*(?:\d+\s*)?人)\s*$")
MONEY_LINE_SPLIT_RE = re.compile(r"\r?\n|；|;|、")


@dataclass(frozen=True)
class MoneyLine:
    amount: float
    currency: str
    unit_suffix: str


# ══════════════════════════════════════════════════════════════════════════════
# EXCHANGE RATES
# ══════════════════════════════════════════════════════════════════════════════

def _valid_rate(value: object) -> float | None:
    try:
        rate = float(value)
    except (TypeError, ValueError):
        return None
    if math.isfinite(rate) and rate > 0:
        return rate
    return None


def set_exchange_rates(overrides: Mapping[str, object] | None) -> dict[str, float]:
    """
    Replace the process-wide rate overrides.

    Unknown currencies and non-positive or non-numeric rates are ignored.
    Passing ``None`` clears every override. Returns the effective table.
    """
    _RATE_OVERRIDES.clear()
    for code, value in (overrides or {}).items():
        code = str(code).upper()
        rate = _valid_rate(value)
        if code in SUPPORTED_CURRENCIES and rate is not None:
            _RATE_OVERRIDES[code] = rate
    return exchange_rates()


def exchange_rates(overrides: Mapping[str, object] | None = None) -> dict[str, float]:
    rates = dict(DEFAULT_RATES_TO_NTD)
    rates.update(_RATE_OVERRIDES)
    for code, value in (overrides or {}).items():
        code = str(code).upper()
        rate = _valid_rate(value)
        if code in SUPPORTED_CURRENCIES and rate is not None:
            rates[code] = rate
    return rates


# ══════════════════════════════════════════════════════════════════════════════
# DETECTION / PARSING
# ══════════════════════════════════════════════════════════════════════════════

def detect_currency(raw: object) -> str:
    text = str(raw or "").strip()
    if not text:
        return ""
    lowered = text.lower()

    if NTD_WORD_RE.search(lowered) or NT_PREFIX_RE.search(text) or "台幣" in text:
        return "NTD"
    if any(marker in lowered for marker in ("hkd", "hk$", "港幣", "港元")):
        return "HKD"
    if any(marker in lowered for marker in ("krw", "₩", "韓幣", "韓元")):
        return "KRW"
    if any(marker in lowered for marker in ("rmb", "cny", "人民幣")):
        return "CNY"
    if any(marker in lowered for marker in ("usd", "us$", "美金", "美元")):
        return "USD"
    if any(marker in lowered for marker in ("jpy", "円", "日幣", "日圓", "日元")):
        return "JPY"
    if "¥" in text or "￥" in text:
        return "JPY"
    if LEADING_DOLLAR_RE.match(text):
        return "USD"
    return ""


def parse_number_loose(raw: object) -> float | None:
    text = str(raw or "").strip()
    if not text:
        return None
    match = NUMBER_RE.search(text.replace(",", ""))
    return float(match.group(0)) if match else None


def format_ntd(value: float | None) -> str:
    if value is None or not math.isfinite(value):
        return ""
    # Round half up, matching how the figures were shown historically.
    return f"NT${int(math.floor(value + 0.5)):,}"


def extract_unit_suffix(line: str) -> tuple[str, str]:
    """Split a trailing per-person suffix such as "/人" or "／2人" off ``line``."""
    match = UNIT_SUFFIX_RE.search(line)
    if not match:
        return line, ""
    return line[: match.start()].rstrip(), match.group(1).rstrip()


def split_money_lines(raw: object) -> list[str]:
    text = str(raw or "").strip()
    if not text:
        return []
    return [part.strip() for part in MONEY_LINE_SPLIT_RE.split(text) if part.strip()]


def parse_money_line(line: str) -> MoneyLine | None:
    amount = parse_number_loose(line)
    if amount is None:
        return None
    _, suffix = extract_unit_suffix(line.strip())
    return MoneyLine(amount=amount, currency=detect_currency(line), unit_suffix=suffix)


# ══════════════════════════════════════════════════════════════════════════════
# DISPLAY
# ══════════════════════════════════════════════════════════════════════════════

def display_price(
    raw_line: object,
    preferred_converted_line: object = None,
    rates: Mapping[str, object] | None = None,
) -> str:
    line = str(raw_line or "").strip()
    if not line:
        return ""

    parsed = parse_money_line(line)
    if parsed is None or parsed.currency in ("NTD", ""):
        return line

    converted = parse_number_loose(preferred_converted_line)
    if converted is None:
        rate = exchange_rates(rates).get(parsed.currency)
        if rate is None:
            return line
        converted = parsed.amount * rate

    ntd_text = format_ntd(converted)
    if not ntd_text:
        return line

    suffix = parsed.unit_suffix
    if suffix:
        base, _ = extract_unit_suffix(line)
        return f"{base}{suffix}(約{ntd_text}{suffix})"
    return f"{line}(約{ntd_text})"


def display_price_cell(
    raw: object,
    converted_raw: object = None,
    rates: Mapping[str, object] | None = None,
) -> str:
    lines = split_money_lines(raw)
    if not lines:
        return ""
    converted_lines = split_money_lines(converted_raw)

    out = []
    for idx, line in enumerate(lines):
        converted = ""
        if converted_lines:
            converted = converted_lines[idx] if idx < len(converted_lines) else converted_lines[0]
        out.append(display_price(line, converted, rates))
    return "\n".join(out)
