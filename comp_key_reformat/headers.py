"""
Header cleanup for comp-key exports

Spreadsheet exports wrap long headers across several lines, pad them with
spaces and sometimes leave the CSV quotes in place. normalize_header() turns
all of those variants into one comparable string; comparison itself is
case-insensitive and goes through header_key().
"""

from __future__ import annotations

import re
from typing import Any, Iterable

WHITESPACE_RUN_RE = re.compile(r"\s+")


def _clean_once(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        text = text[1:-1]
    text = text.replace("\n", " ")
    text = WHITESPACE_RUN_RE.sub(" ", text)
    return text.strip()


def normalize_header(raw: Any) -> str:
    """
    Trim, unquote and collapse whitespace in a raw header.

    Case is preserved. One pass removes a single pair of wrapping quotes, so
    the pass is repeated until nothing changes; this keeps
    normalize_header(normalize_header(x)) == normalize_header(x) for headers
    like '" "Term" "'.
    """
    text = "" if raw is None else str(raw)
    while True:
        cleaned = _clean_once(text)
        if cleaned == text:
            return cleaned
        text = cleaned


def header_key(raw: Any) -> str:
    """Comparison form of a header: normalized and case-folded."""
    return normalize_header(raw).lower()


def headers_equal(left: Any, right: Any) -> bool:
    return header_key(left) == header_key(right)


def source_header_set(headers: Iterable[Any]) -> list[dict[str, str]]:
    """
    Pair each source header with its normalized form, keeping input order.

    Position matters: the AI mapping refers to source headers by index.
    """
    return [
        {"raw": str(header), "normalized": normalize_header(header)}
        for header in headers
    ]
