"""Argument parser construction for the frproof CLI."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path

from frproof import __version__


def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level CLI parser."""
    parser = argparse.ArgumentParser(
        prog="frproof",
        description="frproof - prove functional requirements are exercised by tests",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--workdir",
        "-w",
        type=Path,
        help="Workspace root holding specs/, tests/ and docs/ (default: cwd)",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Prove command
    prove_parser = subparsers.add_parser(
        "prove",
        help="Prove each functional requirement against its generated test stubs",
    )
    prove_parser.add_argument(
        "--feature",
        "-f",
        help="Feature name in kebab-case (default: the only approved spec)",
    )
    prove_parser.add_argument(
        "--mutate",
        action="store_true",
        help="Probe passing stubs with source mutations of their contracts",
    )
    prove_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the proof record as JSON (same as --format json)",
    )
    prove_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments from argv (or sys.argv when omitted)."""
    parser = build_parser()
    if argv is None:
        return parser.parse_args()
    return parser.parse_args(list(argv))
