"""Versioned JSON contract for comp-key-reformat run summaries."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from . import __version__ as TOOL_VERSION
from .mapping import describe_mapping

CONTRACT_VERSIONS = {
    "comp_key_reformat.run": "1.0.0",
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_contract(name: str) -> dict[str, str]:
    version = CONTRACT_VERSIONS[name]
    return {"name": name, "version": version}


def build_run_summary(
    *,
    input_path: Path,
    status: str = "ok",
    output_path: Path | None = None,
    backup_path: Path | None = None,
    metrics: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "tool": "comp-key-reformat",
        "status": status,
        "generated_at": utc_now_iso(),
        "input_file": str(input_path),
        "output_file": str(output_path) if output_path else None,
        "backup_file": str(backup_path) if backup_path else None,
        "warnings_count": len(warnings or []),
        "warnings": list(warnings or []),
        "metrics": metrics or {},
    }


def build_reformat_report(result: dict[str, Any]) -> dict[str, Any]:
    """JSON-ready report for a reformat_file() result."""
    mapping = result["mapping"]
    mapped = sum(1 for idx in mapping if idx is not None)
    written = result["written"]
    return {
        "contract": build_contract("comp_key_reformat.run"),
        "tool_version": TOOL_VERSION,
        "run_summary": build_run_summary(
            input_path=result["input_path"],
            status="ok" if written else "dry_run",
            output_path=result["output_path"] if written else None,
            backup_path=result["backup_path"] if written else None,
            warnings=result["warnings"],
            metrics={
                "rows": len(result["rows"]),
                "source_columns": len(result["source_headers"]),
                "canonical_columns": len(mapping),
                "mapped_columns": mapped,
                "unmapped_columns": len(mapping) - mapped,
                "strategy": result["strategy"],
            },
        ),
        "mapping": describe_mapping(mapping, result["source_headers"], result["canonical"]),
    }
