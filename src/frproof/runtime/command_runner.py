"""Shared subprocess runner with central timeout/signal policy."""

from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from frproof.runtime.timeout_policy import (
    TimeoutContext,
    TimeoutDomain,
    TimeoutPolicyRegistry,
    get_timeout_policy_registry,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandEvent:
    """Lifecycle event emitted while running commands."""

    event_type: str
    domain: TimeoutDomain
    command: str
    timeout_seconds: float
    detail: str = ""


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of one command run."""

    domain: TimeoutDomain
    command: str
    timeout_seconds: float
    duration_seconds: float
    timed_out: bool
    exit_code: int | None
    stdout: str
    stderr: str
    signal_sequence: tuple[str, ...] = ()


class CommandRunner:
    """Runs subprocess commands with timeout policy enforcement."""

    def __init__(
        self,
        *,
        policy_registry: TimeoutPolicyRegistry | None = None,
    ) -> None:
        self._policy_registry = policy_registry or get_timeout_policy_registry()

    def run(
        self,
        *,
        command: Sequence[str],
        domain: TimeoutDomain,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        requested_timeout_seconds: float | None = None,
        on_event: Callable[[CommandEvent], None] | None = None,
    ) -> CommandResult:
        """Run a command according to centralized timeout policy.

        Raises:
            OSError: If the process cannot be spawned (missing executable,
                bad working directory).
        """
        policy = self._policy_registry.policy_for(domain)
        resolved_cwd = Path(cwd).resolve() if cwd is not None else None
        command_text = _format_command(command)
        timeout_seconds = self._policy_registry.timeout_for(
            TimeoutContext(
                domain=domain,
                command=command_text,
                requested_timeout_seconds=requested_timeout_seconds,
            )
        )
        warning_after_seconds = self._policy_registry.warning_after_seconds(
            domain,
            timeout_seconds,
        )

        started_at = time.perf_counter()
        start_new_session = bool(policy.use_process_group and os.name != "nt")
        logger.debug("Running %s (timeout %.1fs)", command_text, timeout_seconds)

        process = subprocess.Popen(
            list(command),
            cwd=str(resolved_cwd) if resolved_cwd is not None else None,
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            start_new_session=start_new_session,
        )

        timed_out = False
        signal_sequence: list[str] = []
        stdout = ""
        stderr = ""

        try:
            if warning_after_seconds is None:
                stdout, stderr = process.communicate(timeout=timeout_seconds)
            else:
                try:
                    stdout, stderr = process.communicate(timeout=warning_after_seconds)
                except subprocess.TimeoutExpired as exc:
                    stdout = _decode_stream(exc.stdout)
                    stderr = _decode_stream(exc.stderr)
                    _emit_event(
                        on_event,
                        CommandEvent(
                            event_type="warning",
                            domain=domain,
                            command=command_text,
                            timeout_seconds=timeout_seconds,
                            detail="Timeout threshold approaching",
                        ),
                    )
                    remaining_timeout = max(
                        0.001,
                        timeout_seconds - warning_after_seconds,
                    )
                    stdout2, stderr2 = process.communicate(timeout=remaining_timeout)
                    stdout = _decode_stream(stdout2) or stdout
                    stderr = _decode_stream(stderr2) or stderr
        except subprocess.TimeoutExpired as exc:
            timed_out = True
            stdout = _decode_stream(exc.stdout) or stdout
            stderr = _decode_stream(exc.stderr) or stderr

            term_out, term_err, sent_signals = self._terminate_process(
                process=process,
                use_process_group=policy.use_process_group,
                terminate_grace_seconds=policy.signal.terminate_grace_seconds,
                domain=domain,
                command=command_text,
                timeout_seconds=timeout_seconds,
                on_event=on_event,
            )
            signal_sequence.extend(sent_signals)
            stdout += term_out
            stderr += term_err

        duration_seconds = time.perf_counter() - started_at
        if timed_out:
            logger.warning(
                "Command timed out after %.1fs: %s", timeout_seconds, command_text
            )

        return CommandResult(
            domain=domain,
            command=command_text,
            timeout_seconds=timeout_seconds,
            duration_seconds=duration_seconds,
            timed_out=timed_out,
            exit_code=process.returncode,
            stdout=stdout,
            stderr=stderr,
            signal_sequence=tuple(signal_sequence),
        )

    def _terminate_process(
        self,
        *,
        process: subprocess.Popen[str],
        use_process_group: bool,
        terminate_grace_seconds: float,
        domain: TimeoutDomain,
        command: str,
        timeout_seconds: float,
        on_event: Callable[[CommandEvent], None] | None,
    ) -> tuple[str, str, list[str]]:
        stdout = ""
        stderr = ""
        signals: list[str] = []

        def _send(sig: int, label: str) -> bool:
            if process.poll() is not None:
                return False
            try:
                if use_process_group and os.name != "nt":
                    os.killpg(process.pid, sig)
                else:
                    process.send_signal(sig)
                signals.append(label)
                return True
            except (ProcessLookupError, PermissionError):
                return False

        if _send(signal.SIGTERM, "SIGTERM"):
            _emit_event(
                on_event,
                CommandEvent(
                    event_type="terminate",
                    domain=domain,
                    command=command,
                    timeout_seconds=timeout_seconds,
                    detail="Sent SIGTERM after timeout",
                ),
            )

        try:
            extra_out, extra_err = process.communicate(timeout=terminate_grace_seconds)
            stdout += _decode_stream(extra_out)
            stderr += _decode_stream(extra_err)
            return stdout, stderr, signals
        except subprocess.TimeoutExpired as exc:
            stdout += _decode_stream(exc.stdout)
            stderr += _decode_stream(exc.stderr)

        kill_signal = getattr(signal, "SIGKILL", signal.SIGTERM)
        if _send(kill_signal, "SIGKILL"):
            _emit_event(
                on_event,
                CommandEvent(
                    event_type="kill",
                    domain=domain,
                    command=command,
                    timeout_seconds=timeout_seconds,
                    detail="Sent SIGKILL after terminate grace period",
                ),
            )

        extra_out, extra_err = process.communicate()
        stdout += _decode_stream(extra_out)
        stderr += _decode_stream(extra_err)
        return stdout, stderr, signals


def _decode_stream(data: str | bytes | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode(errors="replace")
    return data


def _format_command(command: Sequence[str]) -> str:
    return shlex.join([str(part) for part in command])


def _emit_event(
    on_event: Callable[[CommandEvent], None] | None,
    event: CommandEvent,
) -> None:
    if on_event is None:
        return
    on_event(event)


_DEFAULT_COMMAND_RUNNER = CommandRunner()


def get_command_runner() -> CommandRunner:
    """Return shared command runner instance."""
    return _DEFAULT_COMMAND_RUNNER
