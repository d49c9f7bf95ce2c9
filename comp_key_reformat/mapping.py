"""
Match source headers to the canonical columns

A header mapping is a list with one slot per canonical column, holding the
index of the source header that fills it or None. Two strategies produce one:

    map_deterministic  exact match on normalized, case-folded header text
    map_via_oracle     ask the AI model, then reconcile its answer

resolve_mapping() tries the AI first when a client is configured and falls
back to exact matching on any OracleError.
"""

from __future__ import annotations

from typing import Optional, Sequence

from .errors import OracleError
from .headers import header_key, normalize_header
from .oracle import OracleClient, build_mapping_prompt, parse_oracle_response

HeaderMapping = list[Optional[int]]

STRATEGY_ORACLE = "oracle"
STRATEGY_EXACT = "exact"


def map_deterministic(source_headers: Sequence[str], canonical: Sequence[str]) -> HeaderMapping:
    """
    First source header whose comparison key equals each canonical header's.

    Matches are not consumed: a source column may fill more than one canonical
    slot, and source columns matching nothing are simply left out.
    """
    source_keys = [header_key(header) for header in source_headers]
    mapping: HeaderMapping = []
    for expected in canonical:
        expected_key = header_key(expected)
        match = next((i for i, key in enumerate(source_keys) if key == expected_key), None)
        mapping.append(match)
    return mapping


def reconcile_oracle_answer(answer: dict[int, Optional[int]], n_canonical: int) -> HeaderMapping:
    """Invert {source: canonical} into per-canonical slots, lowest source index first."""
    mapping: HeaderMapping = [None] * n_canonical
    for source_idx in sorted(answer):
        target = answer[source_idx]
        if target is not None and mapping[target] is None:
            mapping[target] = source_idx
    return mapping


def map_via_oracle(
    source_headers: Sequence[str],
    canonical: Sequence[str],
    client: OracleClient,
) -> HeaderMapping:
    """Raises OracleError when the model cannot be reached or its answer is unusable."""
    prompt = build_mapping_prompt([normalize_header(h) for h in source_headers], list(canonical))
    try:
        text = client.generate_json(prompt)
    except OracleError:
        raise
    except Exception as exc:
        raise OracleError(f"AI client failed: {exc.__class__.__name__}") from None
    answer = parse_oracle_response(text, len(source_headers), len(canonical))
    return reconcile_oracle_answer(answer, len(canonical))


def resolve_mapping(
    source_headers: Sequence[str],
    canonical: Sequence[str],
    client: Optional[OracleClient] = None,
) -> dict:
    """
    Pick the best available mapping.

    Returns a dict with keys:
        mapping  : HeaderMapping, one slot per canonical column
        strategy : "oracle" or "exact"
        warnings : list of warning strings (AI failures end up here)
    """
    warnings: list[str] = []
    if client is not None:
        try:
            mapping = map_via_oracle(source_headers, canonical, client)
            return {"mapping": mapping, "strategy": STRATEGY_ORACLE, "warnings": warnings}
        except OracleError as exc:
            warnings.append(f"AI mapping failed, using exact header matching: {exc}")

    mapping = map_deterministic(source_headers, canonical)
    return {"mapping": mapping, "strategy": STRATEGY_EXACT, "warnings": warnings}


def describe_mapping(
    mapping: HeaderMapping,
    source_headers: Sequence[str],
    canonical: Sequence[str],
) -> list[dict]:
    return [
        {
            "canonical": expected,
            "source": normalize_header(source_headers[idx]) if idx is not None else None,
            "source_index": idx,
        }
        for expected, idx in zip(canonical, mapping)
    ]


def unused_source_headers(mapping: HeaderMapping, source_headers: Sequence[str]) -> list[str]:
    used = {idx for idx in mapping if idx is not None}
    return [normalize_header(h) for i, h in enumerate(source_headers) if i not in used]
