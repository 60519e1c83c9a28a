"""Compliance proof engine: execution, classification, mutation, aggregation."""

from frproof.proof.aggregator import build_proof_record
from frproof.proof.engine import ProofEngine, ProveOptions, ProveOutcome
from frproof.proof.executor import StubExecutor, StubRun
from frproof.proof.models import (
    FrProof,
    MutationProbe,
    MutationScore,
    MutationSummary,
    ProofRecord,
    ProofSummary,
    TcResult,
)
from frproof.proof.state import InvalidTransitionError, ProofRun, RunState

__all__ = [
    "FrProof",
    "InvalidTransitionError",
    "MutationProbe",
    "MutationScore",
    "MutationSummary",
    "ProofEngine",
    "ProofRecord",
    "ProofRun",
    "ProofSummary",
    "ProveOptions",
    "ProveOutcome",
    "RunState",
    "StubExecutor",
    "StubRun",
    "TcResult",
    "build_proof_record",
]
