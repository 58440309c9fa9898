"""presetcompose.common — shared utilities for the merge/templating core.

Contains: the data:[key] token grammar, path variable resolution,
clock-string parsing, and JSON-safe copying helpers.
"""

import copy
import re


# ── Reference token grammar ────────────────────────────────────────
# data:[key] or data:[key][range]. Keys are trimmed by callers. Only an
# index (3-7) or time (0:10-0:20) suffix is a range; other brackets
# after a token stay literal text.

TOKEN_PATTERN = re.compile(
    r"data:\[([^\]]+)\](?:\[\s*(\d+-\d+|\d{1,2}:\d{2}-\d{1,2}:\d{2})\s*\])?"
)


def parse_token(text: str) -> tuple[str, str | None] | None:
    """Return (key, range) if the whole string is a single token, else None."""
    match = TOKEN_PATTERN.fullmatch(text)
    if match is None:
        return None
    return token_parts(match)


def iter_tokens(text: str):
    """Yield (match, key, range) for every token embedded in text."""
    for match in TOKEN_PATTERN.finditer(text):
        yield (match, *token_parts(match))


def token_parts(match: re.Match) -> tuple[str, str | None]:
    """Split a token match into (trimmed key, trimmed range or None)."""
    raw_range = match.group(2)
    range_str = raw_range.strip() if raw_range is not None else None
    return match.group(1).strip(), range_str or None


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return str(paths[key])
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Time utilities ─────────────────────────────────────────────────

def clock_to_seconds(clock: str) -> int:
    """Convert 'M:SS' or 'MM:SS' to seconds (minutes*60 + seconds)."""
    minutes, seconds = clock.split(":")
    return int(minutes) * 60 + int(seconds)


# ── Value helpers ──────────────────────────────────────────────────

def is_plain_object(value) -> bool:
    """True for mappings, the JSON 'object' shape."""
    return isinstance(value, dict)


def deep_copy(value):
    """Copy a JSON-shaped value so callers never share nested state."""
    return copy.deepcopy(value)
