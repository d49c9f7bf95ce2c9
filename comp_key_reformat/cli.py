from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any

from comp_key_reformat import __version__ as TOOL_VERSION
from comp_key_reformat.contracts import build_reformat_report
from comp_key_reformat.env import DEFAULT_ENV_FILE, build_oracle_settings, load_env_file
from comp_key_reformat.errors import (
    EmptyInput,
    InputNotFound,
    OutputWriteError,
    UnsupportedFormat,
)
from comp_key_reformat.mapping import describe_mapping, unused_source_headers
from comp_key_reformat.oracle import GeminiClient
from comp_key_reformat.reorder import reformat_file

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_WRITE_FAILED = 3


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class ReformatArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, (InputNotFound, UnsupportedFormat)):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, OutputWriteError):
        return EXIT_WRITE_FAILED
    if isinstance(exc, (EmptyInput, UnicodeDecodeError, ValueError)):
        return EXIT_PARSE_FAILED
    if isinstance(exc, OSError):
        return EXIT_WRITE_FAILED
    return EXIT_COMMAND_ERROR


def build_client(args: argparse.Namespace):
    if args.no_ai:
        return None
    env_path = Path(args.env_file) if args.env_file else Path.cwd() / DEFAULT_ENV_FILE
    if args.env_file and not env_path.is_file():
        raise CliError(f"Env file not found: {env_path}", EXIT_COMMAND_ERROR)
    try:
        settings = build_oracle_settings(load_env_file(env_path), os.environ, model=args.model)
    except ValueError as exc:
        raise CliError(str(exc), EXIT_COMMAND_ERROR) from exc
    if settings is None:
        return None
    return GeminiClient(settings)


def render_mapping_table(result: dict[str, Any]) -> str:
    lines = ["Column mapping:"]
    for i, entry in enumerate(describe_mapping(result["mapping"], result["source_headers"], result["canonical"]), start=1):
        source = entry["source"] if entry["source"] is not None else "[no match]"
        lines.append(f"   {i}. {entry['canonical']}  <-  {source}")
    unused = unused_source_headers(result["mapping"], result["source_headers"])
    if unused:
        lines.append(f"Unused source columns ({len(unused)}): {', '.join(unused)}")
    return "\n".join(lines)


def render_summary(result: dict[str, Any]) -> str:
    mapped = sum(1 for idx in result["mapping"] if idx is not None)
    strategy = "AI mapping" if result["strategy"] == "oracle" else "exact header matching"
    lines = [
        f"Rows: {len(result['rows'])}",
        f"Source columns: {len(result['source_headers'])}",
        f"Columns: {len(result['canonical'])} ({mapped} matched using {strategy})",
    ]
    if result["written"]:
        lines.extend(
            [
                f"Reformatted file written to: {result['output_path']}",
                f"Backup created: {result['backup_path']}",
                "Original file preserved. To replace the original, run:",
                f'   mv "{result["output_path"]}" "{result["input_path"]}"',
            ]
        )
    else:
        lines.append("Dry run: no files written.")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = ReformatArgumentParser(
        prog="comp-key-reformat",
        description="Reorder a comp-key export into the canonical column layout.",
    )
    parser.add_argument("input", help="Input file path (.csv, .tsv, .txt, .xlsx, .xlsm)")
    parser.add_argument("--env-file", help=f"KEY=value file holding GEMINI_API_KEY (default: ./{DEFAULT_ENV_FILE})")
    parser.add_argument("--no-ai", action="store_true", help="Skip the AI mapping and use exact header matching")
    parser.add_argument("--model", help="Gemini model name")
    parser.add_argument("--dry-run", action="store_true", help="Compute the mapping without writing outputs")
    parser.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show headers and the full column mapping")
    parser.add_argument("--version", action="version", version=TOOL_VERSION)
    return parser


def run_reformat(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    quiet = args.quiet or args.json
    try:
        client = build_client(args)
        emit_human(f"Reading {input_path}...", quiet=quiet)
        if client is not None:
            emit_human("Using Gemini to analyze column mapping...", quiet=quiet)
        result = reformat_file(input_path, client=client, dry_run=args.dry_run)
    except Exception as exc:
        eprint(f"Error: {exc}")
        return classify_exception(exc)

    for warning in result["warnings"]:
        emit_human(f"Warning: {warning}", quiet=args.json)
    if args.verbose and not quiet:
        emit_human("Normalized headers:")
        for i, header in enumerate(result["normalized_headers"], start=1):
            emit_human(f"   {i}. {header}")
        emit_human(render_mapping_table(result))
    if args.json:
        print(json_dumps(build_reformat_report(result)))
    else:
        emit_human(render_summary(result), quiet=args.quiet)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        return run_reformat(args)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
