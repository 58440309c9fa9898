"""Manifest loaders — preset artifacts and generation runs from YAML.

Preset artifact schema (one preset per file, or inline in a manifest):
  metadata:
    id: base-scene
    title: Base scene
    presetType: full              # full | children | data | context | effects
    defaultInputParams: {...}     # optional, used when an entry has no inputData
  presetParams: {...}             # JSON schema, carried through untouched
  presetFunction: |
    def preset(input_data, props):
        ...

Generation manifest schema:
  composition:                    # optional starting document
    config: {fps: 30, width: 1080, height: 1920, duration: 12}
    style: {backgroundColor: black}
  paths:
    presets: "./presets"
  flexible: false                 # resolve inputs with merge semantics
  references:
    - {key: title, type: string, value: "Hello"}
  presets:
    - path: "${presets}/base_scene.yaml"
    - metadata: {...}             # or inline
      presetFunction: ...
  sequence:
    - preset: base-scene
      inputData: {...}
      disabled: false
"""

from pathlib import Path

import yaml

from .common import deep_copy, resolve_path_vars
from .merge import PRESET_TYPES
from .references import REFERENCE_TYPES, build_base_data


# ── Preset artifacts ──────────────────────────────────────────────


def _read_yaml(path: str | Path):
    with open(path) as f:
        return yaml.safe_load(f)


def _validate_preset(preset, prefix: str) -> dict:
    """Validate a preset artifact and return its normalized form."""
    if not isinstance(preset, dict):
        raise ValueError(f"{prefix}: preset must be a mapping")

    metadata = preset.get("metadata")
    if not isinstance(metadata, dict):
        raise ValueError(f"{prefix}: missing required 'metadata' mapping")

    pid = metadata.get("id")
    if not isinstance(pid, str) or not pid.strip():
        raise ValueError(f"{prefix}: metadata.id must be a non-empty string")

    preset_type = metadata.get("presetType")
    if preset_type not in PRESET_TYPES:
        raise ValueError(
            f"{prefix} ({pid}): invalid presetType '{preset_type}'. "
            f"Valid: {sorted(PRESET_TYPES)}"
        )

    function = preset.get("presetFunction")
    if not isinstance(function, str) or not function.strip():
        raise ValueError(f"{prefix} ({pid}): 'presetFunction' must be a non-empty string")

    return {
        "metadata": metadata,
        "presetFunction": function,
        "presetParams": preset.get("presetParams") or {},
    }


def load_preset(preset_path: str | Path) -> dict:
    """Load and validate a single preset artifact file.

    Raises:
        FileNotFoundError: Missing preset file.
        ValueError: Missing/invalid fields.
    """
    return _validate_preset(_read_yaml(preset_path), f"Preset {preset_path}")


# ── Generation manifests ──────────────────────────────────────────


def _load_composition(raw) -> dict | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError("Manifest: 'composition' must be a mapping")

    config = raw.get("config") or {}
    duration = config.get("duration")
    if duration is not None and (not isinstance(duration, (int, float)) or duration < 0):
        raise ValueError(
            f"Manifest: composition.config.duration must be >= 0, got {duration!r}"
        )
    return {
        "childrenData": raw.get("childrenData") or [],
        "config": config,
        "style": raw.get("style") or {},
    }


def _load_references(raw) -> list[dict]:
    references = []
    for i, ref in enumerate(raw or []):
        if not isinstance(ref, dict):
            raise ValueError(f"Reference {i}: must be a mapping")
        key = ref.get("key")
        if not isinstance(key, str) or not key.strip():
            raise ValueError(f"Reference {i}: missing required field 'key'")
        ref_type = ref.get("type")
        if ref_type not in REFERENCE_TYPES:
            raise ValueError(
                f"Reference {i} ({key}): invalid type '{ref_type}'. "
                f"Valid: {sorted(REFERENCE_TYPES)}"
            )
        references.append({"key": key.strip(), "type": ref_type, "value": ref.get("value")})
    return references


def _load_presets(raw, paths: dict, base_dir: Path) -> dict[str, dict]:
    presets = {}
    for i, item in enumerate(raw or []):
        if isinstance(item, dict) and "path" in item:
            preset_path = Path(resolve_path_vars(str(item["path"]), paths))
            if not preset_path.is_absolute():
                preset_path = base_dir / preset_path
            if not preset_path.exists():
                raise FileNotFoundError(f"Preset {i}: file not found: {preset_path}")
            preset = load_preset(preset_path)
        else:
            preset = _validate_preset(item, f"Preset {i}")

        pid = preset["metadata"]["id"]
        if pid in presets:
            raise ValueError(f"Duplicate preset id: '{pid}'")
        presets[pid] = preset
    return presets


def _load_sequence(raw, presets: dict[str, dict]) -> list[dict]:
    sequence = []
    for i, entry in enumerate(raw or []):
        if not isinstance(entry, dict) or "preset" not in entry:
            raise ValueError(f"Sequence entry {i}: missing required field 'preset'")
        pid = entry["preset"]
        if pid not in presets:
            raise ValueError(
                f"Sequence entry {i}: unknown preset '{pid}'. "
                f"Known: {sorted(presets)}"
            )
        preset = presets[pid]
        input_data = entry.get("inputData")
        if input_data is None:
            input_data = deep_copy(preset["metadata"].get("defaultInputParams") or {})
        sequence.append({
            "presetId": pid,
            "preset": preset,
            "inputData": input_data,
            "disabled": bool(entry.get("disabled", False)),
        })
    return sequence


def load_generation_manifest(manifest_path: str | Path) -> dict:
    """Load, validate, and normalize a generation manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Validate the optional starting composition.
      3. Validate references and flatten them into base data.
      4. Resolve ${path} variables in preset paths (relative paths are
         taken from the manifest's directory) and load each preset.
      5. Bind sequence entries to their presets.

    Args:
        manifest_path: Path to the YAML generation manifest.

    Returns:
        Config dict with composition, references, base_data, presets
        (id -> artifact), sequence (ready for generate_output), flexible.

    Raises:
        ValueError: Missing/invalid fields.
        FileNotFoundError: Missing manifest or preset file.
    """
    raw = _read_yaml(manifest_path) or {}
    if not isinstance(raw, dict):
        raise ValueError("Manifest: top level must be a mapping")

    base_dir = Path(manifest_path).resolve().parent
    paths = raw.get("paths", {})

    references = _load_references(raw.get("references"))
    presets = _load_presets(raw.get("presets"), paths, base_dir)

    return {
        "composition": _load_composition(raw.get("composition")),
        "references": references,
        "base_data": build_base_data(references),
        "presets": presets,
        "sequence": _load_sequence(raw.get("sequence"), presets),
        "flexible": bool(raw.get("flexible", False)),
    }
