"""CLI for preset generation.

Reads a YAML generation manifest, runs every enabled preset in order,
and writes the finished composition document as JSON.

Usage:
    # Generate a composition
    python -m presetcompose.cli \
        --manifest run.yaml --output /tmp/composition.json

    # Fail (exit 1) on any preset failure or unresolved reference
    python -m presetcompose.cli \
        --manifest run.yaml --output /tmp/composition.json --strict

    # Validate only (compile presets, check references, no generation)
    python -m presetcompose.cli \
        --manifest run.yaml --validate
"""

import argparse
import json
import sys
from pathlib import Path

from .generate import generate_output, missing_references
from .logging_utils import setup_logging
from .manifest import load_generation_manifest
from .sandbox import PresetCompileError, compile_preset_function


# ── Validation ────────────────────────────────────────────────────


def validate(config: dict) -> list[str]:
    """Compile every preset and check every entry's references.

    Returns:
        Human-readable problems; empty when the manifest is ready to run.
    """
    problems = []
    for pid, preset in config["presets"].items():
        try:
            compile_preset_function(preset["presetFunction"])
        except PresetCompileError as exc:
            problems.append(f"preset {pid}: {exc}")

    missing = missing_references(config["sequence"], config["base_data"])
    for index, keys in missing.items():
        pid = config["sequence"][index]["presetId"]
        problems.append(
            f"entry {index} ({pid}): missing reference(s) {', '.join(keys)}"
        )
    return problems


def _print_summary(config: dict) -> None:
    print(
        f"Manifest valid: {len(config['presets'])} presets, "
        f"{len(config['sequence'])} sequence entries, "
        f"{len(config['base_data'])} references"
    )
    for i, entry in enumerate(config["sequence"]):
        metadata = entry["preset"]["metadata"]
        tag = " [disabled]" if entry["disabled"] else ""
        print(f"  {i}: {entry['presetId']} ({metadata['presetType']}){tag}")


# ── Generation ────────────────────────────────────────────────────


def generate(manifest_path: str, output_path: str, indent: int = 2):
    """Run a manifest and write the composition JSON. Returns the result."""
    config = load_generation_manifest(manifest_path)
    enabled = [e for e in config["sequence"] if not e["disabled"]]
    print(f"Generating from {len(enabled)} of {len(config['sequence'])} presets")

    result = generate_output(
        config["sequence"],
        config["base_data"],
        composition=config["composition"],
        flexible=config["flexible"],
    )

    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w") as f:
        json.dump(result.document, f, indent=indent, ensure_ascii=False)
        f.write("\n")

    for pid in result.applied:
        print(f"  APPLIED  {pid}")
    for failure in result.failures:
        print(f"  FAILED   {failure}")
    for diag in result.diagnostics:
        print(f"  WARNING  {diag}")
    print(f"\nDone: {out}")
    return result


# ── CLI entry point ───────────────────────────────────────────────


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Run a preset generation manifest into a composition document.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML generation manifest",
    )
    parser.add_argument(
        "--output",
        help="Output JSON path for the composition document",
    )
    parser.add_argument(
        "--indent", type=int, default=2,
        help="JSON indentation (default: 2)",
    )
    parser.add_argument(
        "--strict", action="store_true",
        help="Exit with status 1 if any preset failed or any reference was unresolved",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Validate manifest only — compile presets and check references",
    )
    parser.add_argument(
        "--log-level", default=None,
        help="Logging level (default: $PRESETCOMPOSE_LOG_LEVEL or INFO)",
    )
    args = parser.parse_args(args)

    setup_logging(args.log_level)

    if args.validate:
        config = load_generation_manifest(args.manifest)
        problems = validate(config)
        _print_summary(config)
        if problems:
            print(f"{len(problems)} problem(s):")
            for problem in problems:
                print(f"  - {problem}")
            sys.exit(1)
        print("All presets compile and all references resolve.")
        return

    if not args.output:
        parser.error("--output is required (unless using --validate)")

    result = generate(args.manifest, args.output, indent=args.indent)
    if args.strict and (result.failures or result.diagnostics):
        sys.exit(1)


if __name__ == "__main__":
    main()
