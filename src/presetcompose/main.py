"""Subcommand dispatcher for presetcompose.

Usage:
    presetcompose generate --manifest run.yaml --output composition.json
    presetcompose validate --manifest run.yaml
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="presetcompose",
        description="Preset-driven composition generation and validation.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Both subcommands delegate to cli.main(); validate adds --validate.
    subparsers.add_parser("generate", help="Run a generation manifest to composition JSON")
    subparsers.add_parser("validate", help="Compile presets and check references")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    from .cli import main as cli_main

    if parsed.command == "generate":
        cli_main(remaining)
    elif parsed.command == "validate":
        cli_main([*remaining, "--validate"])


if __name__ == "__main__":
    main()
