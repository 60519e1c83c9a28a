"""Runtime primitives shared by the executor and mutation probes."""

from frproof.runtime.command_runner import (
    CommandEvent,
    CommandResult,
    CommandRunner,
    get_command_runner,
)
from frproof.runtime.timeout_policy import TimeoutDomain, get_timeout_policy_registry

__all__ = [
    "CommandEvent",
    "CommandResult",
    "CommandRunner",
    "TimeoutDomain",
    "get_command_runner",
    "get_timeout_policy_registry",
]
