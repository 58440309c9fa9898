"""Generation pass — run an ordered preset list into one composition.

Each entry is a mapping:

  preset:     preset artifact {metadata: {id, presetType, ...},
              presetFunction, presetParams}
  inputData:  the preset's parameters, possibly holding data:[key] tokens
  disabled:   optional bool; disabled entries are skipped entirely

Entries run strictly one after another because every merge policy
except "full" builds on what earlier presets produced. For each entry:
resolve references in inputData, run the preset function (awaiting it
if it is async), then merge the result with the preset's type.

A failing preset contributes nothing: the error is logged and recorded
on the result, and the pass moves on to the next entry.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from .common import deep_copy
from .diagnostics import Diagnostic
from .fetcher import CachedFetcher
from .merge import insert_preset
from .references import process_preset_input_data, validate_references
from .sandbox import run_preset

logger = logging.getLogger(__name__)


DEFAULT_CONFIG = {"fps": 30, "width": 1920, "height": 1080, "duration": 20}

DEFAULT_STYLE = {"backgroundColor": "black"}


@dataclass
class PresetFailure:
    index: int
    preset_id: str | None
    error: str
    exception: BaseException | None = field(default=None, repr=False, compare=False)

    def __str__(self) -> str:
        return f"[{self.index}] {self.preset_id}: {self.error}"


@dataclass
class GenerationResult:
    document: dict
    diagnostics: list[Diagnostic] = field(default_factory=list)
    failures: list[PresetFailure] = field(default_factory=list)
    applied: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def default_composition() -> dict:
    """Empty composition with the stock 1080p/30fps settings."""
    return {
        "childrenData": [],
        "config": dict(DEFAULT_CONFIG),
        "style": dict(DEFAULT_STYLE),
    }


def preset_id(preset: dict) -> str | None:
    metadata = preset.get("metadata") or {}
    return metadata.get("id") or metadata.get("title")


async def _apply_entry(entry, document, base_data, clip, fetcher, flexible, result):
    """Run one entry and merge it. Returns the clip handed to later presets."""
    preset = entry["preset"]
    preset_type = preset["metadata"]["presetType"]

    input_data = process_preset_input_data(
        entry.get("inputData") or {}, base_data,
        flexible=flexible, diagnostics=result.diagnostics,
    )
    props = {
        "config": deep_copy(document.get("config") or {}),
        "style": deep_copy(document.get("style") or {}),
        "clip": clip,
        "baseData": deep_copy(base_data),
        "fetcher": fetcher,
    }

    preset_output = await run_preset(preset["presetFunction"], input_data, props)
    if preset_output is None:
        logger.info("Preset %s returned nothing, skipping merge", preset_id(preset))
        return clip

    options = preset_output["options"]
    if preset_type == "full" and options.get("clip"):
        clip = options["clip"]

    insert_preset(document, preset_output, preset_type)
    result.applied.append(preset_id(preset))
    logger.info("Applied preset %s (%s)", preset_id(preset), preset_type)
    return clip


async def generate_output_async(
    entries: list[dict],
    base_data: dict | None = None,
    composition: dict | None = None,
    fetcher=None,
    flexible: bool = False,
) -> GenerationResult:
    """Build a composition document from an ordered list of preset entries.

    Args:
        entries: Preset entries (see module docstring), in apply order.
        base_data: key -> value pool for data:[key] references.
        composition: Starting document. Copied; defaults to
            default_composition().
        fetcher: Async (url, body) -> JSON callable passed to presets.
            A CachedFetcher is created (and closed) when omitted.
        flexible: Resolve inputs with merge semantics (resolve_flexible)
            instead of plain substitution.

    Returns:
        GenerationResult with the document, resolution diagnostics,
        per-preset failures, and the ids of presets that were merged.
    """
    document = deep_copy(composition) if composition is not None else default_composition()
    document.setdefault("childrenData", [])
    document.setdefault("config", {})
    document.setdefault("style", {})

    result = GenerationResult(document=document)
    base_data = base_data or {}

    owns_fetcher = fetcher is None
    if owns_fetcher:
        fetcher = CachedFetcher()

    clip = {}
    try:
        for index, entry in enumerate(entries):
            pid = preset_id(entry.get("preset") or {})
            if entry.get("disabled"):
                logger.info("Skipping disabled preset %s", pid)
                continue
            try:
                clip = await _apply_entry(
                    entry, document, base_data, clip, fetcher, flexible, result,
                )
            except Exception as exc:
                logger.error("Preset %s (entry %d) failed: %s", pid, index, exc)
                result.failures.append(
                    PresetFailure(index=index, preset_id=pid, error=str(exc), exception=exc)
                )
    finally:
        if owns_fetcher:
            await fetcher.aclose()

    return result


def generate_output(
    entries: list[dict],
    base_data: dict | None = None,
    composition: dict | None = None,
    fetcher=None,
    flexible: bool = False,
) -> GenerationResult:
    """Synchronous wrapper around generate_output_async."""
    return asyncio.run(
        generate_output_async(
            entries, base_data,
            composition=composition, fetcher=fetcher, flexible=flexible,
        )
    )


def missing_references(entries: list[dict], base_data: dict) -> dict[int, list[str]]:
    """Map entry index -> reference keys its inputData needs but base_data lacks.

    Disabled entries are not checked.
    """
    report = {}
    for index, entry in enumerate(entries):
        if entry.get("disabled"):
            continue
        missing = validate_references(entry.get("inputData") or {}, base_data)
        if missing:
            report[index] = missing
    return report
