"""Typed records produced by the traceability resolver."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Requirement:
    """A functional requirement declared in the approved spec."""

    id: str
    text: str = ""


@dataclass(frozen=True, slots=True)
class AcceptanceCriterion:
    """An acceptance criterion, kept for trace display only."""

    id: str
    text: str = ""


@dataclass(frozen=True, slots=True)
class TraceSet:
    """Ids listed on a test case's Trace annotation, bucketed by prefix."""

    fr_ids: tuple[str, ...] = ()
    ac_ids: tuple[str, ...] = ()
    us_ids: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.fr_ids or self.ac_ids or self.us_ids)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "frIds": list(self.fr_ids),
            "acIds": list(self.ac_ids),
            "usIds": list(self.us_ids),
        }


@dataclass(frozen=True, slots=True)
class TestCase:
    """A test case block from the test-definition document."""

    __test__ = False  # not a pytest class

    id: str
    title: str = ""
    trace: TraceSet = field(default_factory=TraceSet)

    @property
    def trace_fr_ids(self) -> tuple[str, ...]:
        return self.trace.fr_ids

    @property
    def trace_ac_ids(self) -> tuple[str, ...]:
        return self.trace.ac_ids

    @property
    def trace_us_ids(self) -> tuple[str, ...]:
        return self.trace.us_ids


@dataclass(frozen=True, slots=True)
class TraceIssue:
    """A recoverable problem found while parsing a test case block."""

    tc_id: str
    message: str


@dataclass(frozen=True, slots=True)
class RequirementDocument:
    """Parsed approved requirement document."""

    requirements: tuple[Requirement, ...] = ()
    acceptance_criteria: tuple[AcceptanceCriterion, ...] = ()

    @property
    def fr_ids(self) -> list[str]:
        return [requirement.id for requirement in self.requirements]


@dataclass(frozen=True, slots=True)
class TestDefinitionDocument:
    """Parsed test-definition document."""

    __test__ = False

    test_cases: tuple[TestCase, ...] = ()
    issues: tuple[TraceIssue, ...] = ()

    @property
    def tc_ids(self) -> list[str]:
        return [test_case.id for test_case in self.test_cases]

    def trace_map(self) -> dict[str, TraceSet]:
        """Return ``tcId -> TraceSet`` in document order."""
        return {test_case.id: test_case.trace for test_case in self.test_cases}
