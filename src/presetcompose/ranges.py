"""Index and time range slicing for referenced arrays and caption lists.

Two mutually exclusive range grammars:
  - time:  "M:SS-M:SS" or "MM:SS-MM:SS"  (checked first)
  - index: "N-M", inclusive on both ends

Bad ranges never raise: the input comes back unchanged and a
range_invalid diagnostic is recorded.
"""

import logging
import re

from .common import clock_to_seconds
from .diagnostics import RANGE_INVALID, report

logger = logging.getLogger(__name__)


TIME_RANGE_PATTERN = re.compile(r"^\d{1,2}:\d{2}-\d{1,2}:\d{2}$")
INDEX_RANGE_PATTERN = re.compile(r"^\d+-\d+$")


def classify_range(range_str: str) -> str:
    """Return "time", "index" or "unknown" for a range string."""
    if TIME_RANGE_PATTERN.match(range_str):
        return "time"
    if INDEX_RANGE_PATTERN.match(range_str):
        return "index"
    return "unknown"


def apply_index_range(items: list, range_str: str, diagnostics=None) -> list:
    """Slice items[start..end] inclusive.

    Returns the original list unchanged when the range does not parse,
    when start > end, or when end is past the last element.
    """
    if not INDEX_RANGE_PATTERN.match(range_str):
        report(
            diagnostics, logger, RANGE_INVALID,
            f"Invalid index range '{range_str}' (expected N-M)",
            range=range_str,
        )
        return items

    start, end = (int(part) for part in range_str.split("-"))
    if start < 0 or end >= len(items) or start > end:
        report(
            diagnostics, logger, RANGE_INVALID,
            f"Index range '{range_str}' out of bounds for {len(items)} item(s)",
            range=range_str,
        )
        return items
    return items[start:end + 1]


def _caption_interval(caption) -> tuple[float, float] | None:
    """Prefer absoluteStart/absoluteEnd, fall back to start/end."""
    if not isinstance(caption, dict):
        return None
    for start_key, end_key in (("absoluteStart", "absoluteEnd"), ("start", "end")):
        start = caption.get(start_key)
        end = caption.get(end_key)
        if start is not None and end is not None:
            return start, end
    return None


def apply_time_range(captions: list, range_str: str, diagnostics=None) -> list:
    """Keep captions whose interval overlaps the requested window.

    Overlap is the half-open test caption_start < range_end and
    caption_end > range_start. Captions carrying neither field pair are
    dropped.
    """
    if not TIME_RANGE_PATTERN.match(range_str):
        report(
            diagnostics, logger, RANGE_INVALID,
            f"Invalid time range '{range_str}' (expected MM:SS-MM:SS)",
            range=range_str,
        )
        return captions

    start_clock, end_clock = range_str.split("-")
    range_start = clock_to_seconds(start_clock)
    range_end = clock_to_seconds(end_clock)

    kept = []
    for caption in captions:
        interval = _caption_interval(caption)
        if interval is None:
            continue
        caption_start, caption_end = interval
        if caption_start < range_end and caption_end > range_start:
            kept.append(caption)
    return kept


def _slice_list(items: list, range_str: str, diagnostics) -> list:
    kind = classify_range(range_str)
    if kind == "time":
        return apply_time_range(items, range_str, diagnostics)
    if kind == "index":
        return apply_index_range(items, range_str, diagnostics)
    report(
        diagnostics, logger, RANGE_INVALID,
        f"Unrecognized range '{range_str}'",
        range=range_str,
    )
    return items


def apply_range(value, range_str: str, diagnostics=None):
    """Apply a range to a list or to the captions of a {captions: [...]} mapping.

    Lists are sliced by index or filtered by time depending on the
    grammar. Caption mappings come back as a copy carrying the sliced
    captions. Any other shape is returned unchanged.
    """
    if isinstance(value, list):
        return _slice_list(value, range_str, diagnostics)
    if isinstance(value, dict) and isinstance(value.get("captions"), list):
        return {**value, "captions": _slice_list(value["captions"], range_str, diagnostics)}
    report(
        diagnostics, logger, RANGE_INVALID,
        f"Range '{range_str}' ignored: referenced value is not a list or caption set",
        range=range_str,
    )
    return value
