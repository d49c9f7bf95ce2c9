"""
AI-assisted header matching through the Gemini REST API

The model is asked to pair each source header with a canonical header. Its
answer is best-effort: parse_oracle_response() rejects anything that is not a
well-formed index mapping, and callers fall back to exact matching when it
does.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional, Protocol, Sequence

import requests

from .env import OracleSettings
from .errors import OracleError

FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)
INDEX_RE = re.compile(r"^\d+$")


class OracleClient(Protocol):
    def generate_json(self, prompt: str) -> str:
        """Return the model's raw text answer for prompt."""


def _numbered(headers: Sequence[str]) -> str:
    return "\n".join(f'{i}. "{header}"' for i, header in enumerate(headers, start=1))


def build_mapping_prompt(source_headers: Sequence[str], canonical: Sequence[str]) -> str:
    """Prompt listing both header sets. Only header text is sent, never cell values."""
    return f"""
I need to map CSV headers to their correct order. Here are the current headers and the expected order.

Current Headers ({len(source_headers)} columns):
{_numbered(source_headers)}

Expected Column Order ({len(canonical)} columns):
{_numbered(canonical)}

Please analyze and return a JSON object mapping current header indices to expected header indices.
Indices are zero-based: the header labelled 1 above has index 0.
Format: {{ "currentIndex": expectedIndex, ... }}
Example: {{ "0": 0, "1": 1, "2": null }}
If a current header doesn't match any expected header, use null.
""".strip()


def parse_oracle_response(text: str, n_source: int, n_canonical: int) -> dict[int, Optional[int]]:
    """
    Validate the model's answer and return {source index: canonical index or None}.

    Every key must be a source index in range and every value null or a
    canonical index in range; anything else raises OracleError.
    """
    if not isinstance(text, str) or not text.strip():
        raise OracleError("AI response was empty")
    fenced = FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        payload = json.loads(text)
    except ValueError as exc:
        raise OracleError(f"AI response is not valid JSON: {exc}") from None
    if not isinstance(payload, dict):
        raise OracleError(f"AI response must be a JSON object, got {type(payload).__name__}")

    result: dict[int, Optional[int]] = {}
    for key, value in payload.items():
        key_text = str(key).strip()
        if not INDEX_RE.match(key_text):
            raise OracleError(f"AI response key {key!r} is not a column index")
        source_idx = int(key_text)
        if source_idx >= n_source:
            raise OracleError(f"AI response refers to source column {source_idx}, only {n_source} exist")
        if value is None:
            result[source_idx] = None
            continue
        if isinstance(value, bool) or not isinstance(value, int):
            raise OracleError(f"AI response value for column {source_idx} is not an index or null")
        if not 0 <= value < n_canonical:
            raise OracleError(f"AI response maps column {source_idx} to {value}, outside 0..{n_canonical - 1}")
        result[source_idx] = value
    return result


class GeminiClient:
    """Minimal generateContent client asking for a JSON-only answer."""

    def __init__(self, settings: OracleSettings, session: Optional[requests.Session] = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.settings.base_url.rstrip('/')}/models/{self.settings.model}:generateContent"

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "temperature": self.settings.temperature,
            },
        }

    def generate_json(self, prompt: str) -> str:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.settings.api_key,
        }
        try:
            response = self.session.post(
                self.endpoint,
                headers=headers,
                json=self.build_payload(prompt),
                timeout=self.settings.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else "?"
            raise OracleError(f"Gemini request failed with HTTP {status}") from None
        except requests.RequestException as exc:
            raise OracleError(f"Gemini request failed: {exc.__class__.__name__}") from None
        except ValueError:
            raise OracleError("Gemini returned a non-JSON body") from None
        return extract_text(data)


def extract_text(data: Any) -> str:
    try:
        parts = data["candidates"][0]["content"]["parts"]
        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    except (KeyError, IndexError, TypeError):
        raise OracleError("Gemini response has no candidate text") from None
    if not text.strip():
        raise OracleError("Gemini response has no candidate text")
    return text
