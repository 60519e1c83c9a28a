"""Prove-run state machine.

A run moves strictly forward:
NotStarted -> TraceabilityParsed -> (Blocked | Executing) -> Aggregated
-> Persisted -> Reported. Blocked and Reported are terminal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class RunState(Enum):
    """All states of one prove run."""

    NOT_STARTED = "not_started"
    TRACEABILITY_PARSED = "traceability_parsed"
    BLOCKED = "blocked"
    EXECUTING = "executing"
    AGGREGATED = "aggregated"
    PERSISTED = "persisted"
    REPORTED = "reported"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, current: RunState, target: RunState) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Invalid transition from {current.value} to {target.value}")


VALID_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.NOT_STARTED: {RunState.TRACEABILITY_PARSED, RunState.BLOCKED},
    RunState.TRACEABILITY_PARSED: {RunState.BLOCKED, RunState.EXECUTING},
    RunState.EXECUTING: {RunState.AGGREGATED},
    RunState.AGGREGATED: {RunState.PERSISTED},
    RunState.PERSISTED: {RunState.REPORTED},
    # Terminal
    RunState.BLOCKED: set(),
    RunState.REPORTED: set(),
}

TERMINAL_STATES: set[RunState] = {RunState.BLOCKED, RunState.REPORTED}


@dataclass
class ProofRun:
    """Tracks the state of one prove run and its transition history."""

    feature: str | None
    state: RunState = RunState.NOT_STARTED
    history: list[dict[str, str]] = field(default_factory=list)

    def can_transition(self, target: RunState) -> bool:
        return target in VALID_TRANSITIONS.get(self.state, set())

    def transition(self, target: RunState, reason: str = "") -> None:
        """Move to ``target``.

        Raises:
            InvalidTransitionError: If the transition is not valid.
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(self.state, target)
        entry = {
            "from": self.state.value,
            "to": target.value,
            "at": datetime.now(UTC).isoformat(),
        }
        if reason:
            entry["reason"] = reason
        self.history.append(entry)
        self.state = target

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def to_dict(self) -> dict[str, Any]:
        return {
            "feature": self.feature,
            "state": self.state.value,
            "history": self.history,
        }
