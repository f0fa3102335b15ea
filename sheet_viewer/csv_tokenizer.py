"""
csv_tokenizer.py — quote-aware CSV tokenizer for Google Sheets exports.

Only the subset of CSV that Sheets actually emits is handled: comma
separators, double-quoted fields, doubled quotes as escapes, and embedded
newlines inside quotes. Malformed quoting never raises; the scanner simply
stays in whichever quote state it reached.
"""

from __future__ import annotations


def tokenize(text: str) -> list[list[str]]:
    if not text or not isinstance(text, str):
        return []

    rows: list[list[str]] = []
    row: list[str] = []
    field: list[str] = []
    in_quotes = False
    i = 0
    length = len(text)

    while i < length:
        char = text[i]
        if in_quotes:
            if char == '"':
                if i + 1 < length and text[i + 1] == '"':
                    field.append('"')
                    i += 1
                else:
                    in_quotes = False
            else:
                field.append(char)
        elif char == '"':
            in_quotes = True
        elif char == ",":
            row.append("".join(field))
            field = []
        elif char == "\r":
            pass
        elif char == "\n":
            row.append("".join(field))
            rows.append(row)
            row = []
            field = []
        else:
            field.append(char)
        i += 1

    if field or row:
        row.append("".join(field))
        rows.append(row)

    return rows
