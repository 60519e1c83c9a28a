"""Prove command: run the compliance proof for one feature."""

from __future__ import annotations

import argparse
import logging
import sys

from rich.console import Console

from frproof.config import ProveSettings, get_paths
from frproof.errors import ConfigurationError, InvariantViolation
from frproof.proof.engine import ProofEngine, ProveOptions
from frproof.proof.report import (
    error_payload,
    print_report,
    record_payload,
    render_json,
)

logger = logging.getLogger(__name__)


def cmd_prove(args: argparse.Namespace) -> int:
    """Prove each FR of a feature; exit 0 only when the record is ok."""
    json_output = bool(args.json or args.format == "json")
    options = ProveOptions(
        feature=args.feature,
        mutate=bool(args.mutate),
        json_output=json_output,
    )
    paths = get_paths()
    settings = ProveSettings.load(paths)
    console = Console(highlight=False)

    def on_progress(line: str) -> None:
        console.print(line, markup=False)

    engine = ProofEngine(
        paths,
        settings,
        on_progress=None if json_output else on_progress,
    )

    try:
        outcome = engine.prove(options)
    except ConfigurationError as e:
        logger.info("Prove blocked (%s): %s", e.code, e.message)
        feature = engine.run_state.feature if engine.run_state else options.feature
        if json_output:
            print(render_json(error_payload(feature, e.code)))
        else:
            print(f"Error: {e.message}", file=sys.stderr)
            if e.hint:
                print(f"  {e.hint}", file=sys.stderr)
        return 2
    except InvariantViolation as e:
        logger.critical("Aborting prove run: %s", e)
        feature = engine.run_state.feature if engine.run_state else options.feature
        if json_output:
            print(render_json(error_payload(feature, "invariant_violation")))
        print(f"Error: contract restore failed: {e}", file=sys.stderr)
        return 2

    proof_file = paths.relative(outcome.proof_file)
    if json_output:
        print(render_json(record_payload(outcome.record, proof_file)))
    else:
        print_report(outcome.record, proof_file, console=console)
    engine.mark_reported()
    return outcome.exit_code
