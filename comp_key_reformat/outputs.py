"""Where the reformatted file and the backup go, and how they are written."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from .errors import OutputWriteError
from .loader import EXCEL_FORMATS

REFORMATTED_SUFFIX = "_REFORMATTED"
BACKUP_SUFFIX = "_BACKUP"


def reformatted_path(input_path: Path) -> Path:
    suffix = input_path.suffix
    if suffix.lower() in EXCEL_FORMATS:
        suffix = ".xlsx"
    return input_path.with_name(f"{input_path.stem}{REFORMATTED_SUFFIX}{suffix}")


def backup_path(input_path: Path) -> Path:
    return input_path.with_name(f"{input_path.stem}{BACKUP_SUFFIX}{input_path.suffix}")


def output_paths(input_path: "str | Path") -> tuple[Path, Path]:
    input_path = Path(input_path)
    return reformatted_path(input_path), backup_path(input_path)


def write_rows(
    rows: Sequence[dict[str, str]],
    columns: Sequence[str],
    path: Path,
    *,
    delimiter: Optional[str] = ",",
) -> Path:
    """
    Write rows with exactly the given columns, in order.

    .xlsx paths get a single Sheet1 workbook; anything else is delimited UTF-8
    text using delimiter.
    """
    df = pd.DataFrame(list(rows), columns=list(columns))
    try:
        if path.suffix.lower() in EXCEL_FORMATS:
            df.to_excel(path, index=False, sheet_name="Sheet1", engine="openpyxl")
        else:
            df.to_csv(path, index=False, sep=delimiter or ",", encoding="utf-8")
    except OSError as exc:
        raise OutputWriteError(f"Could not write {path}: {exc}") from exc
    return path


def write_backup(input_path: Path, path: Path) -> Path:
    """Byte-for-byte copy of the untouched input."""
    try:
        shutil.copyfile(input_path, path)
    except OSError as exc:
        raise OutputWriteError(f"Could not write backup {path}: {exc}") from exc
    return path
