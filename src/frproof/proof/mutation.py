"""Source-level mutation probes against contract files.

For each contract a passing stub depends on, every operator of the
contract's runtime that matches the unmodified source is applied once
(first match only). The stub is re-run against the mutant and the probe
counts as detected when the stub now fails. The contract is restored after
every probe.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from frproof.proof.classifier import display_path
from frproof.proof.executor import StubExecutor
from frproof.proof.models import MutationProbe, MutationSummary
from frproof.proof.runtimes import MutationOperator, runtime_for
from frproof.proof.transaction import scoped_file_mutation
from frproof.runtime import TimeoutDomain

logger = logging.getLogger(__name__)


def applicable_mutations(
    contract_path: Path, source: str
) -> list[tuple[MutationOperator, str]]:
    """Return ``(operator, mutant)`` pairs that change ``source``, in catalog order."""
    mutations: list[tuple[MutationOperator, str]] = []
    for operator in runtime_for(contract_path).operators:
        mutant = operator.apply(source)
        if mutant is not None:
            mutations.append((operator, mutant))
    return mutations


def run_mutation_analysis(
    stub_path: Path,
    contract_paths: Sequence[Path],
    executor: StubExecutor,
) -> MutationSummary | None:
    """Probe every applicable mutation of the stub's contracts.

    Returns:
        The probe summary, or None when no probe could run. Contracts that
        cannot be read and mutants that cannot be written are skipped.

    Raises:
        InvariantViolation: If a contract could not be restored after a probe.
    """
    results: list[MutationProbe] = []

    for contract_path in contract_paths:
        source = _read_contract(contract_path)
        if source is None:
            continue
        contract = display_path(contract_path, executor.root)

        for operator, mutant in applicable_mutations(contract_path, source):
            try:
                with scoped_file_mutation(contract_path, mutant):
                    still_passes = executor.passes(
                        stub_path, domain=TimeoutDomain.MUTATION_PROBE
                    )
            except OSError as e:
                logger.warning(
                    "Could not write mutant %s to %s; skipped: %s",
                    operator.id,
                    contract,
                    e,
                )
                continue
            probe = MutationProbe(
                operator_id=operator.id,
                contract=contract,
                detected=not still_passes,
            )
            logger.info(
                "Mutation %s on %s: %s",
                operator.id,
                contract,
                "detected" if probe.detected else "survived",
            )
            results.append(probe)

    if not results:
        logger.info("No applicable mutations for %s", stub_path)
        return None
    return MutationSummary(results=tuple(results))


def _read_contract(path: Path) -> str | None:
    try:
        return path.read_bytes().decode("utf-8")
    except FileNotFoundError:
        logger.warning("Contract %s not found; skipped", path)
    except UnicodeDecodeError:
        logger.warning("Contract %s is not UTF-8 text; skipped", path)
    return None

