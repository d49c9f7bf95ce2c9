"""
loader.py — read a comp-key export into header → value rows

Supports: .csv .tsv .txt .xlsx .xlsm

Public API:
    result = load_rows("path/to/export.csv")
    rows   = result["rows"]

Result dict keys:
    rows              — list of {source header: cell text}, file order
    headers           — source headers in column order
    detected_format   — "csv", "tsv", "txt", "xlsx" or "xlsm"
    detected_encoding — encoding name for text files; None for workbooks
    delimiter         — delimiter char for text files; None otherwise
    sheet_name        — sheet that was read for workbooks; None otherwise
    warnings          — list of warning strings
"""

from __future__ import annotations

import csv
import io
import warnings as _warnings
from collections import Counter
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import chardet
import pandas as pd

from .errors import EmptyInput, InputNotFound, UnsupportedFormat

# ── Format groups ──────────────────────────────────────────────────────────────
TEXT_FORMATS  = {".csv", ".tsv", ".txt"}
EXCEL_FORMATS = {".xlsx", ".xlsm"}
ALL_FORMATS   = TEXT_FORMATS | EXCEL_FORMATS

SAMPLE_CHARS = 65_536


# ══════════════════════════════════════════════════════════════════════════════
# ENCODING
# ══════════════════════════════════════════════════════════════════════════════

def detect_encoding(raw: bytes) -> tuple[str, float]:
    result = chardet.detect(raw[:200_000])
    detected = result.get("encoding") or "utf-8"
    return detected, round(result.get("confidence") or 0.0, 2)


def read_text_safely(raw: bytes, preferred_encoding: str) -> str:
    """
    Decode raw bytes line-by-line.

    Strategy per line:
      1. Try UTF-8
      2. Try preferred_encoding (chardet result)
      3. Try latin-1
      4. CP1252 with replace (never crashes)

    Also drops a leading byte-order mark and embedded null bytes.
    """
    decoded_lines: list[str] = []
    for raw_line in raw.split(b"\n"):
        decoded: str | None = None
        for enc in ("utf-8", preferred_encoding, "latin-1"):
            if not enc:
                continue
            try:
                decoded = raw_line.decode(enc)
                break
            except (LookupError, UnicodeDecodeError):
                continue
        if decoded is None:
            decoded = raw_line.decode("cp1252", errors="replace")
        decoded_lines.append(decoded.replace("\x00", ""))
    return "\n".join(decoded_lines).lstrip("\ufeff")


# ══════════════════════════════════════════════════════════════════════════════
# DELIMITER DETECTION
# ══════════════════════════════════════════════════════════════════════════════

def _sample_rows(text: str, delimiter: str, limit: int = 200) -> list[list[str]]:
    """Parse up to limit non-empty records; quoted cells may span lines."""
    rows: list[list[str]] = []
    for row in csv.reader(io.StringIO(text[:SAMPLE_CHARS]), delimiter=delimiter):
        if any(cell.strip() for cell in row):
            rows.append(row)
        if len(rows) >= limit:
            break
    return rows


def detect_delimiter(text: str) -> str:
    """
    Infer the delimiter by scoring each candidate on column-count consistency
    and column width. Ties go to the comma.
    """
    best_delim = ","
    best_score = float("-inf")

    for delim in (",", ";", "\t", "|"):
        try:
            rows = _sample_rows(text, delim)
        except csv.Error:
            continue
        if not rows:
            continue
        widths = [len(row) for row in rows]
        mode_width, mode_count = Counter(widths).most_common(1)[0]
        score = (mode_width * 2.0) + (mode_count / len(widths)) * mode_width
        if len(rows[0]) == mode_width:
            score += 1.0
        if mode_width == 1:
            score -= 10.0
        if score > best_score:
            best_score = score
            best_delim = delim

    return best_delim


# ══════════════════════════════════════════════════════════════════════════════
# LOADERS
# ══════════════════════════════════════════════════════════════════════════════

def cell_text(value: Any) -> str:
    """
    Text for one cell. Dates keep only their date part unless a time of day
    is set, so workbook dates read like the sheet shows them.
    """
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


def _frame_to_rows(df: pd.DataFrame) -> tuple[list[str], list[dict[str, str]]]:
    df.columns = [str(column) for column in df.columns]
    headers = list(df.columns)
    rows = [
        {header: cell_text(value) for header, value in zip(headers, values)}
        for values in df.itertuples(index=False, name=None)
    ]
    return headers, rows


def _load_text(path: Path, suffix: str) -> dict:
    raw = path.read_bytes()
    if not raw.strip():
        raise EmptyInput(f"Input file is empty: {path}")
    encoding, confidence = detect_encoding(raw)
    text = read_text_safely(raw, encoding)

    delimiter = "\t" if suffix == ".tsv" else detect_delimiter(text)
    warnings: list[str] = []
    if confidence and confidence < 0.5:
        warnings.append(f"Encoding guess {encoding} has low confidence ({confidence})")

    # index_col=False: a trailing delimiter must not turn the first column
    # into the index. Extra fields are dropped and pandas reports a
    # ParserWarning when they held data.
    with _warnings.catch_warnings(record=True) as caught:
        _warnings.simplefilter("always", pd.errors.ParserWarning)
        try:
            df = pd.read_csv(
                io.StringIO(text),
                dtype=str,
                keep_default_na=False,
                sep=delimiter,
                engine="python",
                index_col=False,
            )
        except pd.errors.EmptyDataError:
            raise EmptyInput(f"Input file has no header row: {path}") from None
        except Exception as exc:
            raise ValueError(f"Could not parse {suffix} file: {exc}") from exc

    for caught_warning in caught:
        if issubclass(caught_warning.category, pd.errors.ParserWarning):
            warnings.append("Some rows have more fields than the header; the extra fields were dropped")
        else:
            _warnings.warn(caught_warning.message, caught_warning.category)

    headers, rows = _frame_to_rows(df)
    return {
        "rows":              rows,
        "headers":           headers,
        "detected_format":   suffix.lstrip("."),
        "detected_encoding": encoding,
        "delimiter":         delimiter,
        "sheet_name":        None,
        "warnings":          warnings,
    }


def _load_excel(path: Path, suffix: str) -> dict:
    try:
        sheets = pd.read_excel(path, sheet_name=None, dtype=object, keep_default_na=False, engine="openpyxl")
    except Exception as exc:
        raise ValueError(f"Could not read workbook {path.name}: {exc}") from exc
    if not sheets:
        raise EmptyInput(f"Workbook has no sheets: {path}")

    sheet_name, df = next(iter(sheets.items()))
    warnings: list[str] = []
    if len(sheets) > 1:
        warnings.append(f"Workbook has {len(sheets)} sheets; only '{sheet_name}' was reformatted")

    headers, rows = _frame_to_rows(df)
    return {
        "rows":              rows,
        "headers":           headers,
        "detected_format":   suffix.lstrip("."),
        "detected_encoding": None,
        "delimiter":         None,
        "sheet_name":        sheet_name,
        "warnings":          warnings,
    }


def load_rows(path: "str | Path") -> dict:
    """
    Load an export into rows keyed by source header.

    Raises:
        InputNotFound      if the file does not exist.
        UnsupportedFormat  if the extension is not a supported format.
        EmptyInput         if the file has no header or no data rows.
        ValueError         if the file cannot be parsed.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if not path.is_file():
        raise InputNotFound(f"File not found: {path}")

    if suffix not in ALL_FORMATS:
        supported = ", ".join(sorted(ALL_FORMATS))
        raise UnsupportedFormat(f"Unsupported format '{suffix or '[missing extension]'}'. Supported: {supported}")

    if suffix in TEXT_FORMATS:
        result = _load_text(path, suffix)
    else:
        result = _load_excel(path, suffix)

    if not result["rows"]:
        raise EmptyInput(f"Input file has no data rows: {path}")
    return result
