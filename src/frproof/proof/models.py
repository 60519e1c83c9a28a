"""Data models for proof records."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from frproof.proof.classifier import ContractIssue

SCHEMA_VERSION = 1


@dataclass(frozen=True, slots=True)
class MutationProbe:
    """One operator applied to one contract file."""

    operator_id: str
    contract: str
    detected: bool  # stub failed against the mutant

    def to_dict(self) -> dict[str, Any]:
        return {
            "operatorId": self.operator_id,
            "contract": self.contract,
            "detected": self.detected,
        }


@dataclass(frozen=True, slots=True)
class MutationScore:
    """Detected over total probes; only built when total > 0."""

    detected: int
    total: int

    @property
    def score(self) -> float:
        return self.detected / self.total if self.total else 0.0

    @property
    def percent(self) -> int:
        return round(self.score * 100)

    def to_dict(self) -> dict[str, Any]:
        return {"detected": self.detected, "total": self.total, "score": self.score}

    @classmethod
    def combine(cls, scores: Iterable[MutationScore]) -> MutationScore | None:
        """Sum several scores; None when there is nothing to sum."""
        collected = [score for score in scores if score.total > 0]
        if not collected:
            return None
        return cls(
            detected=sum(score.detected for score in collected),
            total=sum(score.total for score in collected),
        )


@dataclass(frozen=True, slots=True)
class MutationSummary:
    """Mutation probes run for one test case."""

    results: tuple[MutationProbe, ...]

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def detected(self) -> int:
        return sum(1 for probe in self.results if probe.detected)

    @property
    def score(self) -> float:
        return self.detected / self.total if self.total else 0.0

    def as_score(self) -> MutationScore:
        return MutationScore(detected=self.detected, total=self.total)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "detected": self.detected,
            "score": self.score,
            "results": [probe.to_dict() for probe in self.results],
        }


@dataclass(frozen=True, slots=True)
class TcResult:
    """Classified outcome for one test case."""

    passed: bool
    file: str | None
    trivial: bool = False
    contract_unimplemented: bool = False
    contract_issues: tuple[ContractIssue, ...] = ()
    mutation: MutationSummary | None = None

    @property
    def proves(self) -> bool:
        """Counts as proof: passed, exercises its contract, contract implemented."""
        return self.passed and not self.trivial and not self.contract_unimplemented

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "file": self.file,
            "trivial": self.trivial,
            "contractUnimplemented": self.contract_unimplemented,
            "contractIssues": [issue.to_dict() for issue in self.contract_issues],
            "mutation": self.mutation.to_dict() if self.mutation else None,
        }

    @classmethod
    def missing(cls) -> TcResult:
        """Result for a declared test case with no stub file."""
        return cls(passed=False, file=None)


@dataclass(frozen=True, slots=True)
class FrProof:
    """Proof status of one functional requirement."""

    proven: bool
    via: tuple[str, ...] = ()
    tracing_tcs: tuple[str, ...] = ()
    evidence: tuple[str, ...] = ()
    mutation_score: MutationScore | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "proven": self.proven,
            "via": list(self.via),
            "tracingTcs": list(self.tracing_tcs),
            "evidence": list(self.evidence),
            "mutationScore": (
                self.mutation_score.to_dict() if self.mutation_score else None
            ),
        }


@dataclass(frozen=True, slots=True)
class ProofSummary:
    """Counts and id lists across the whole run."""

    total: int
    proven: int
    unproven_frs: tuple[str, ...] = ()
    trivial_tcs: tuple[str, ...] = ()
    unimplemented_contract_tcs: tuple[str, ...] = ()
    missing_stub_tcs: tuple[str, ...] = ()
    mutation: MutationScore | None = None

    @property
    def unproven(self) -> int:
        return self.total - self.proven

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "proven": self.proven,
            "unproven": self.unproven,
            "unprovenFrs": list(self.unproven_frs),
            "trivialTcs": list(self.trivial_tcs),
            "unimplementedContractTcs": list(self.unimplemented_contract_tcs),
            "missingStubTcs": list(self.missing_stub_tcs),
            "mutation": self.mutation.to_dict() if self.mutation else None,
        }


@dataclass(frozen=True, slots=True)
class ProofRecord:
    """The persisted proof-of-compliance artifact for one feature."""

    feature: str
    ok: bool
    summary: ProofSummary
    fr_proof: dict[str, FrProof] = field(default_factory=dict)
    tc_results: dict[str, TcResult] = field(default_factory=dict)
    proven_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    schema_version: int = SCHEMA_VERSION

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "schemaVersion": self.schema_version,
            "feature": self.feature,
            "ok": self.ok,
            "provenAt": self.proven_at.isoformat(),
            "summary": self.summary.to_dict(),
            "frProof": {
                fr_id: proof.to_dict() for fr_id, proof in self.fr_proof.items()
            },
            "tcResults": {
                tc_id: result.to_dict() for tc_id, result in self.tc_results.items()
            },
        }
