import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from comp_key_reformat.env import (
    DEFAULT_MODEL,
    OracleSettings,
    build_oracle_settings,
    load_env_file,
)


class LoadEnvFileTests(unittest.TestCase):
    def test_parses_key_value_lines(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / ".env.local"
            path.write_text(
                "# credentials\nGEMINI_API_KEY=abc123\nGEMINI_MODEL = gemini-2.0-flash\nBARE_KEY\nEMPTY=\n",
                encoding="utf-8",
            )
            values = load_env_file(path)

        self.assertEqual(values["GEMINI_API_KEY"], "abc123")
        self.assertEqual(values["GEMINI_MODEL"], "gemini-2.0-flash")
        self.assertIsNone(values["BARE_KEY"])
        self.assertEqual(values["EMPTY"], "")
        self.assertNotIn("# credentials", values)

    def test_values_are_not_expanded_from_the_environment(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / ".env.local"
            path.write_text("GEMINI_API_KEY=${HOME_KEY}\nAPI_KEY=pre$HOME_KEY\n", encoding="utf-8")
            with mock.patch.dict(os.environ, {"HOME_KEY": "leaked"}):
                values = load_env_file(path)

        self.assertEqual(values["GEMINI_API_KEY"], "${HOME_KEY}")
        self.assertEqual(values["API_KEY"], "pre$HOME_KEY")

    def test_missing_file_is_empty(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            self.assertEqual(load_env_file(Path(tmpdir) / "nope.env"), {})


class OracleSettingsTests(unittest.TestCase):
    def test_no_key_means_no_settings(self):
        self.assertIsNone(build_oracle_settings({}, {}))
        self.assertIsNone(build_oracle_settings({"GEMINI_API_KEY": "  ", "API_KEY": None}, {}))

    def test_gemini_key_preferred_over_api_key(self):
        settings = build_oracle_settings({"GEMINI_API_KEY": "g", "API_KEY": "a"})
        self.assertEqual(settings, OracleSettings(api_key="g"))

    def test_api_key_fallback_and_defaults(self):
        settings = build_oracle_settings({"API_KEY": "a"})
        self.assertEqual(settings.api_key, "a")
        self.assertEqual(settings.model, DEFAULT_MODEL)
        self.assertEqual(settings.temperature, 0.1)
        self.assertEqual(settings.timeout, 60.0)

    def test_file_values_win_over_environment(self):
        settings = build_oracle_settings(
            {"GEMINI_API_KEY": "from-file"},
            {"GEMINI_API_KEY": "from-env", "GEMINI_MODEL": "env-model", "GEMINI_TIMEOUT": "12"},
        )
        self.assertEqual(settings.api_key, "from-file")
        self.assertEqual(settings.model, "env-model")
        self.assertEqual(settings.timeout, 12.0)

    def test_explicit_model_overrides_configured_one(self):
        settings = build_oracle_settings({"API_KEY": "a", "GEMINI_MODEL": "file-model"}, model="cli-model")
        self.assertEqual(settings.model, "cli-model")

    def test_bad_timeout_is_rejected(self):
        with self.assertRaisesRegex(ValueError, "GEMINI_TIMEOUT"):
            build_oracle_settings({"API_KEY": "a", "GEMINI_TIMEOUT": "soon"})


if __name__ == "__main__":
    unittest.main()
