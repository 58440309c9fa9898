"""Reference resolution — data:[key] tokens against a base-data pool.

Preset input parameters may point into a shared pool of named values
(the base data) with tokens of the form:

  data:[key]            the referenced value
  data:[key][3-7]       items 3..7 (inclusive) of a referenced list
  data:[key][0:10-0:20] captions overlapping 10s..20s

Three walks over arbitrary JSON-shaped values:
  - resolve_all: a string that IS a token becomes the referenced value
    with its shape preserved; a string that CONTAINS tokens is a
    template and each token becomes a printable projection.
  - resolve_flexible: only whole-string tokens are resolved, each to a
    private copy of the referenced value; templates are left as text.
  - validate_references: report keys missing from the pool.

Inputs are never mutated. Missing keys and bad ranges are soft
failures: the token text stays in place and a Diagnostic is recorded.
"""

import json
import logging

from .common import (
    TOKEN_PATTERN, deep_copy, is_plain_object, iter_tokens, parse_token, token_parts,
)
from .diagnostics import REFERENCE_NOT_FOUND, report
from .ranges import apply_range

logger = logging.getLogger(__name__)


REFERENCE_TYPES = {
    "media", "medias", "captions", "string", "number", "boolean", "object", "objects",
}


# ── Base data ─────────────────────────────────────────────────────


def build_base_data(references: list[dict]) -> dict:
    """Flatten a list of reference items ({key, type, value}) to key -> value.

    Later items overwrite earlier ones with the same key.
    """
    base_data = {}
    for ref in references or []:
        base_data[ref["key"]] = ref.get("value")
    return base_data


# ── Shared helpers ────────────────────────────────────────────────


def _missing(key: str, diagnostics) -> None:
    report(
        diagnostics, logger, REFERENCE_NOT_FOUND,
        f"Reference '{key}' not found in base data",
        key=key,
    )


def _whole_value(key: str, range_str, base_data: dict, diagnostics):
    """Referenced value with its shape preserved, sliced when a range is given."""
    value = deep_copy(base_data[key])
    if range_str is not None:
        return apply_range(value, range_str, diagnostics)
    return value


def _printable(key: str, range_str, base_data: dict, diagnostics) -> str:
    """Project a referenced value to text for template substitution.

    Tried in order: src, metadata.src, filePath, title, text, the
    captions list, the list itself, the raw value. Non-string results
    are JSON-encoded, so ["a", "b"] renders as '["a", "b"]' rather than
    the comma-joined 'a,b' of plain string coercion.
    """
    value = base_data[key]
    projected = value
    if is_plain_object(value):
        metadata = value.get("metadata")
        if value.get("src"):
            projected = value["src"]
        elif is_plain_object(metadata) and metadata.get("src"):
            projected = metadata["src"]
        elif value.get("filePath"):
            projected = value["filePath"]
        elif value.get("title"):
            projected = value["title"]
        elif value.get("text"):
            projected = value["text"]
        elif isinstance(value.get("captions"), list):
            projected = value["captions"]
            if range_str is not None:
                projected = apply_range(projected, range_str, diagnostics)
    elif isinstance(value, list) and range_str is not None:
        projected = apply_range(value, range_str, diagnostics)

    if isinstance(projected, str):
        return projected
    return json.dumps(projected, ensure_ascii=False)


# ── resolve_all ───────────────────────────────────────────────────


def _resolve_string(text: str, base_data: dict, diagnostics):
    token = parse_token(text)
    if token is not None:
        key, range_str = token
        if key not in base_data:
            _missing(key, diagnostics)
            return text
        return _whole_value(key, range_str, base_data, diagnostics)

    if "data:[" not in text:
        return text

    def _substitute(match):
        key, range_str = token_parts(match)
        if key not in base_data:
            _missing(key, diagnostics)
            return match.group(0)
        return _printable(key, range_str, base_data, diagnostics)

    return TOKEN_PATTERN.sub(_substitute, text)


def _resolve_all(value, base_data: dict, diagnostics):
    if isinstance(value, str):
        return _resolve_string(value, base_data, diagnostics)
    if isinstance(value, list):
        return [_resolve_all(item, base_data, diagnostics) for item in value]
    if isinstance(value, dict):
        return {k: _resolve_all(v, base_data, diagnostics) for k, v in value.items()}
    return value


def resolve_all(value, base_data: dict, diagnostics: list | None = None):
    """Substitute every data:[...] token in value.

    A string that is exactly one token becomes the referenced value
    (numbers stay numbers, objects stay objects). A string with tokens
    embedded in other text keeps being a string, with each token
    replaced by its printable projection.

    Args:
        value: Any JSON-shaped value.
        base_data: key -> value pool (see build_base_data).
        diagnostics: Optional list that receives a Diagnostic per
            missing reference or rejected range.

    Returns:
        A new value; the input is not modified.
    """
    return _resolve_all(deep_copy(value), base_data or {}, diagnostics)


# ── resolve_flexible ──────────────────────────────────────────────


def _flexible_token(text: str, base_data: dict, diagnostics):
    """Resolve a bare token string, or return the text unchanged."""
    token = parse_token(text)
    if token is None:
        return text
    key, range_str = token
    if key not in base_data:
        _missing(key, diagnostics)
        return text
    return _whole_value(key, range_str, base_data, diagnostics)


def _resolve_flexible(value, base_data: dict, diagnostics):
    if isinstance(value, str):
        return _flexible_token(value, base_data, diagnostics)
    if isinstance(value, list):
        return [_resolve_flexible(item, base_data, diagnostics) for item in value]
    if isinstance(value, dict):
        return {k: _resolve_flexible(v, base_data, diagnostics) for k, v in value.items()}
    return value


def resolve_flexible(value, base_data: dict, diagnostics: list | None = None):
    """Resolve whole-string tokens only, for inputs a preset merges into.

    Text with embedded tokens is left alone. A property holding a token
    for a mapping becomes a fresh copy of that mapping, so presets can
    extend or override its fields without touching the pool.
    """
    return _resolve_flexible(deep_copy(value), base_data or {}, diagnostics)


# ── Validation ────────────────────────────────────────────────────


def validate_references(value, base_data: dict) -> list[str]:
    """Return the keys referenced in value but absent from base_data.

    Range suffixes are ignored. Each key is reported once, in the order
    it was first seen.
    """
    base_data = base_data or {}
    missing = []

    def _check(obj):
        if isinstance(obj, str):
            for _match, key, _range in iter_tokens(obj):
                if key not in base_data and key not in missing:
                    missing.append(key)
        elif isinstance(obj, dict):
            for v in obj.values():
                _check(v)
        elif isinstance(obj, list):
            for item in obj:
                _check(item)

    _check(value)
    return missing


# ── Entry point ───────────────────────────────────────────────────


def process_preset_input_data(
    input_data,
    base_data: dict,
    flexible: bool = False,
    diagnostics: list | None = None,
):
    """Resolve a preset's input parameters before the preset runs."""
    if flexible:
        return resolve_flexible(input_data, base_data, diagnostics)
    return resolve_all(input_data, base_data, diagnostics)
