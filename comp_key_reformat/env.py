"""
Credential file and AI settings

The credential file is a plain KEY=value file (.env.local by default). It is
read once at start-up with python-dotenv and the resulting mapping is passed
around explicitly; nothing here touches os.environ.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values

DEFAULT_ENV_FILE = ".env.local"
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TEMPERATURE = 0.1
DEFAULT_TIMEOUT = 60.0
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

API_KEY_NAMES = ("GEMINI_API_KEY", "API_KEY")


@dataclass(frozen=True)
class OracleSettings:
    api_key: str
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    timeout: float = DEFAULT_TIMEOUT
    base_url: str = DEFAULT_BASE_URL


def load_env_file(path: "str | Path") -> dict[str, Optional[str]]:
    """
    Parse KEY=value lines. A key written without a value maps to None.

    A missing file is not an error: the AI mapping is optional, so the result
    is simply empty.
    """
    path = Path(path)
    if not path.is_file():
        return {}
    return dict(dotenv_values(path, interpolate=False))


def lookup(sources: "list[Mapping[str, Optional[str]]]", *names: str) -> Optional[str]:
    """First non-blank value for any of names, searching sources in order."""
    for source in sources:
        for name in names:
            value = source.get(name)
            if value is not None and value.strip():
                return value.strip()
    return None


def build_oracle_settings(
    file_values: Mapping[str, Optional[str]],
    environ: Optional[Mapping[str, Optional[str]]] = None,
    *,
    model: Optional[str] = None,
) -> Optional[OracleSettings]:
    """
    Settings for the AI mapping, or None when no API key is configured.

    Values in the credential file win over the process environment.
    """
    sources = [file_values, environ or {}]
    api_key = lookup(sources, *API_KEY_NAMES)
    if api_key is None:
        return None

    timeout_text = lookup(sources, "GEMINI_TIMEOUT")
    try:
        timeout = float(timeout_text) if timeout_text else DEFAULT_TIMEOUT
    except ValueError:
        raise ValueError(f"GEMINI_TIMEOUT must be a number of seconds, got {timeout_text!r}") from None

    return OracleSettings(
        api_key=api_key,
        model=model or lookup(sources, "GEMINI_MODEL") or DEFAULT_MODEL,
        timeout=timeout,
        base_url=lookup(sources, "GEMINI_BASE_URL") or DEFAULT_BASE_URL,
    )
