"""Isolated execution of a single stub file."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from frproof.config.settings import ProveSettings
from frproof.errors import ExecutionError
from frproof.proof.runtimes import runtime_for
from frproof.runtime import (
    CommandEvent,
    CommandResult,
    CommandRunner,
    TimeoutDomain,
    get_command_runner,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StubRun:
    """Outcome of one stub process."""

    stub_path: Path
    runtime: str
    passed: bool
    exit_code: int | None = None
    timed_out: bool = False
    duration_seconds: float = 0.0
    error: str | None = None


class StubExecutor:
    """Runs stub files through their runtime, one process per call.

    The executor keeps no state between calls, so the mutation engine can
    probe the same stub repeatedly.
    """

    def __init__(
        self,
        root: Path,
        settings: ProveSettings | None = None,
        *,
        runner: CommandRunner | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.root = root
        self.settings = settings or ProveSettings()
        self._runner = runner or get_command_runner()
        self._environ = environ

    def run(
        self,
        stub_path: Path,
        *,
        domain: TimeoutDomain = TimeoutDomain.STUB_BASELINE,
    ) -> StubRun:
        """Run a stub; spawn failures and timeouts become a failed run."""
        runtime = runtime_for(stub_path)
        try:
            result = self._spawn(stub_path, domain)
        except ExecutionError as e:
            logger.warning("Stub execution failed: %s", e)
            return StubRun(
                stub_path=stub_path,
                runtime=runtime.name,
                passed=False,
                timed_out=e.timed_out,
                error=str(e),
            )

        passed = result.exit_code == 0
        logger.info(
            "%s %s (%s, exit %s, %.2fs)",
            "PASS" if passed else "FAIL",
            stub_path,
            runtime.name,
            result.exit_code,
            result.duration_seconds,
        )
        return StubRun(
            stub_path=stub_path,
            runtime=runtime.name,
            passed=passed,
            exit_code=result.exit_code,
            timed_out=False,
            duration_seconds=result.duration_seconds,
        )

    def passes(
        self,
        stub_path: Path,
        *,
        domain: TimeoutDomain = TimeoutDomain.STUB_BASELINE,
    ) -> bool:
        return self.run(stub_path, domain=domain).passed

    def _spawn(self, stub_path: Path, domain: TimeoutDomain) -> CommandResult:
        """Spawn the stub process.

        Raises:
            ExecutionError: If the process cannot start or exceeds its timeout.
        """
        runtime = runtime_for(stub_path)
        base_env = self._environ if self._environ is not None else os.environ
        try:
            result = self._runner.run(
                command=runtime.command(stub_path, self.settings),
                domain=domain,
                cwd=runtime.working_directory(stub_path, self.root),
                env=runtime.environment(base_env),
                requested_timeout_seconds=self._requested_timeout(domain),
                on_event=partial(_log_command_event, stub_path),
            )
        except OSError as e:
            raise ExecutionError(
                stub_path, f"could not start {runtime.name}: {e}"
            ) from e

        if result.timed_out:
            raise ExecutionError(
                stub_path,
                f"timed out after {result.timeout_seconds:.0f}s",
                timed_out=True,
            )
        return result

    def _requested_timeout(self, domain: TimeoutDomain) -> float | None:
        if domain == TimeoutDomain.MUTATION_PROBE:
            return self.settings.mutation_timeout_seconds
        return self.settings.baseline_timeout_seconds


def _log_command_event(stub_path: Path, event: CommandEvent) -> None:
    # warning: nearing timeout; terminate/kill: signals sent after timeout
    logger.warning(
        "%s: %s (%s, timeout %.1fs)",
        stub_path,
        event.detail,
        event.domain.value,
        event.timeout_seconds,
    )
