from __future__ import annotations

import csv
import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

from comp_key_reformat.schema import CANONICAL_COLUMNS


ROOT = Path(__file__).resolve().parents[1]
CLI = [sys.executable, "-m", "comp_key_reformat.cli"]
EXPORT = 'ST,"Account\n**CARRIER**",Term,Junk\nCA,Zayo,36,x\nNY,Lumen,24,y\n'


def run_cli(*args: str, cwd: Path | None = None, env: dict[str, str] | None = None) -> subprocess.CompletedProcess[str]:
    merged_env = {
        key: value
        for key, value in os.environ.items()
        if key not in {"GEMINI_API_KEY", "API_KEY", "GEMINI_MODEL", "GEMINI_BASE_URL", "GEMINI_TIMEOUT"}
    }
    merged_env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(ROOT), os.environ.get("PYTHONPATH")]))
    if env:
        merged_env.update(env)
    return subprocess.run(
        [*CLI, *args],
        cwd=cwd or ROOT,
        capture_output=True,
        text=True,
        env=merged_env,
    )


class ReformatCliTests(unittest.TestCase):
    def write_export(self, tmpdir: str) -> Path:
        path = Path(tmpdir) / "comp_key.csv"
        path.write_text(EXPORT, encoding="utf-8")
        return path

    def test_reformat_writes_output_and_backup(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self.write_export(tmpdir)
            proc = run_cli(str(path), cwd=Path(tmpdir))

            self.assertEqual(proc.returncode, 0, proc.stderr)
            self.assertIn("Reformatted file written to:", proc.stderr)
            self.assertIn("Backup created:", proc.stderr)
            self.assertIn("exact header matching", proc.stderr)
            self.assertIn("mv ", proc.stderr)

            output = Path(tmpdir) / "comp_key_REFORMATTED.csv"
            with output.open(newline="", encoding="utf-8") as handle:
                rows = list(csv.reader(handle))
            self.assertEqual(rows[0], list(CANONICAL_COLUMNS))
            self.assertEqual(len(rows), 3)
            self.assertEqual((Path(tmpdir) / "comp_key_BACKUP.csv").read_bytes(), path.read_bytes())

    def test_json_stdout_contains_only_json(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self.write_export(tmpdir)
            proc = run_cli(str(path), "--json", "--no-ai")

        self.assertEqual(proc.returncode, 0, proc.stderr)
        self.assertEqual(proc.stderr.strip(), "")
        report = json.loads(proc.stdout)
        self.assertEqual(report["contract"]["name"], "comp_key_reformat.run")
        self.assertEqual(report["run_summary"]["metrics"]["rows"], 2)
        self.assertEqual(report["run_summary"]["metrics"]["mapped_columns"], 3)
        self.assertEqual(report["run_summary"]["metrics"]["strategy"], "exact")

    def test_unreachable_ai_falls_back_with_warning(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self.write_export(tmpdir)
            env_file = Path(tmpdir) / "creds.env"
            env_file.write_text(
                "GEMINI_API_KEY=dummy\nGEMINI_BASE_URL=http://127.0.0.1:9\nGEMINI_TIMEOUT=5\n",
                encoding="utf-8",
            )
            proc = run_cli(str(path), "--env-file", str(env_file), "--dry-run")

        self.assertEqual(proc.returncode, 0, proc.stderr)
        self.assertIn("Warning: AI mapping failed, using exact header matching", proc.stderr)
        self.assertIn("Dry run: no files written.", proc.stderr)
        self.assertNotIn("dummy", proc.stderr)

    def test_verbose_prints_mapping_table(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self.write_export(tmpdir)
            proc = run_cli(str(path), "--no-ai", "--dry-run", "-v")

        self.assertEqual(proc.returncode, 0, proc.stderr)
        self.assertIn("2. Account **CARRIER**", proc.stderr)
        self.assertIn("Account **CARRIER**  <-  Account **CARRIER**", proc.stderr)
        self.assertIn("Quantity  <-  [no match]", proc.stderr)
        self.assertIn("Unused source columns (1): Junk", proc.stderr)

    def test_missing_input_returns_exit_1(self):
        proc = run_cli("does-not-exist.csv", "--no-ai")
        self.assertEqual(proc.returncode, 1)
        self.assertIn("File not found", proc.stderr)

    def test_empty_input_returns_exit_2(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "empty.csv"
            path.write_text("ST,Term\n", encoding="utf-8")
            proc = run_cli(str(path), "--no-ai")
            self.assertEqual(proc.returncode, 2)
            self.assertIn("no data rows", proc.stderr)
            self.assertFalse((Path(tmpdir) / "empty_REFORMATTED.csv").exists())

    def test_unsupported_format_returns_exit_1(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "export.pdf"
            path.write_bytes(b"%PDF")
            proc = run_cli(str(path), "--no-ai")
        self.assertEqual(proc.returncode, 1)
        self.assertIn("Unsupported format", proc.stderr)

    def test_missing_env_file_is_a_command_error(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self.write_export(tmpdir)
            proc = run_cli(str(path), "--env-file", str(Path(tmpdir) / "nope.env"))
        self.assertEqual(proc.returncode, 1)
        self.assertIn("Env file not found", proc.stderr)

    def test_bad_arguments_return_exit_1(self):
        proc = run_cli()
        self.assertEqual(proc.returncode, 1)
        self.assertIn("required", proc.stderr)

    def test_version(self):
        proc = run_cli("--version")
        self.assertEqual(proc.returncode, 0)
        self.assertRegex(proc.stdout.strip(), r"^\d+\.\d+\.\d+$")


if __name__ == "__main__":
    unittest.main()
