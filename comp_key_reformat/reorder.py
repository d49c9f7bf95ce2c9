"""
Put every row into canonical column order

Pipeline used by the CLI:

    load rows → source headers → mapping (AI, else exact) → materialize
              → write reformatted file → copy backup

The input file itself is never written.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from .headers import source_header_set
from .loader import load_rows
from .mapping import HeaderMapping, resolve_mapping
from .oracle import OracleClient
from .outputs import output_paths, write_backup, write_rows
from .schema import CANONICAL_COLUMNS, validate_schema


def materialize(
    rows: Sequence[dict[str, str]],
    mapping: HeaderMapping,
    source_headers: Sequence[str],
    canonical: Sequence[str],
) -> list[dict[str, str]]:
    """
    One output row per input row, keyed by every canonical header in order.

    Unmapped columns, and rows missing the mapped header, get "".
    """
    lookups = [source_headers[idx] if idx is not None else None for idx in mapping]
    reordered: list[dict[str, str]] = []
    for row in rows:
        out: dict[str, str] = {}
        for expected, source in zip(canonical, lookups):
            value = row.get(source) if source is not None else None
            out[expected] = "" if value is None else value
        reordered.append(out)
    return reordered


def reformat_file(
    input_path: "str | Path",
    *,
    canonical: Sequence[str] = CANONICAL_COLUMNS,
    client: Optional[OracleClient] = None,
    dry_run: bool = False,
) -> dict:
    """
    Reformat one export and write its outputs beside it.

    Returns a dict with keys:
        input_path, output_path, backup_path
        rows             : reordered rows
        canonical        : canonical columns as a tuple
        source_headers   : raw source headers, first-row order
        normalized_headers
        mapping          : HeaderMapping used
        strategy         : "oracle" or "exact"
        detected_format, delimiter, sheet_name
        warnings
        written          : False for dry runs
    """
    input_path = Path(input_path)
    canonical = validate_schema(canonical)

    loaded = load_rows(input_path)
    header_set = source_header_set(loaded["headers"])
    source_headers = [entry["raw"] for entry in header_set]

    resolved = resolve_mapping(source_headers, canonical, client)
    reordered = materialize(loaded["rows"], resolved["mapping"], source_headers, canonical)

    output_path, backup = output_paths(input_path)
    if not dry_run:
        write_rows(reordered, canonical, output_path, delimiter=loaded["delimiter"])
        write_backup(input_path, backup)

    return {
        "input_path":         input_path,
        "output_path":        output_path,
        "backup_path":        backup,
        "rows":               reordered,
        "canonical":          canonical,
        "source_headers":     source_headers,
        "normalized_headers": [entry["normalized"] for entry in header_set],
        "mapping":            resolved["mapping"],
        "strategy":           resolved["strategy"],
        "detected_format":    loaded["detected_format"],
        "delimiter":          loaded["delimiter"],
        "sheet_name":         loaded["sheet_name"],
        "warnings":           [*loaded["warnings"], *resolved["warnings"]],
        "written":            not dry_run,
    }
