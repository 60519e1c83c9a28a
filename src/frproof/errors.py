"""Exception taxonomy for prove runs.

Only configuration problems and restore failures escape a run. Execution
and parse problems are recovered where they happen and show up in the
proof record as failed or untraced test cases.
"""

from __future__ import annotations

from pathlib import Path


class ProofError(Exception):
    """Base exception for prove-run errors."""

    pass


class ConfigurationError(ProofError):
    """Raised before any side effect when required inputs are missing."""

    def __init__(self, code: str, message: str, hint: str | None = None) -> None:
        self.code = code
        self.message = message
        self.hint = hint
        super().__init__(message)


class ExecutionError(ProofError):
    """Raised when a stub process cannot be spawned or times out."""

    def __init__(
        self, stub_path: Path, message: str, *, timed_out: bool = False
    ) -> None:
        self.stub_path = stub_path
        self.timed_out = timed_out
        super().__init__(f"{stub_path}: {message}")


class ParseError(ProofError):
    """Raised when a test-definition block has an unusable Trace annotation."""

    def __init__(self, tc_id: str, message: str) -> None:
        self.tc_id = tc_id
        self.message = message
        super().__init__(f"{tc_id}: {message}")


class InvariantViolation(ProofError):
    """Raised when a mutated contract file could not be restored."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")
