"""Central timeout policy definitions and resolution helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TimeoutDomain(str, Enum):
    """Logical command domains with distinct timeout behavior."""

    STUB_BASELINE = "stub_baseline"
    MUTATION_PROBE = "mutation_probe"


@dataclass(frozen=True, slots=True)
class SignalPolicy:
    """Process signaling behavior when timeout thresholds are crossed."""

    warning_fraction: float
    terminate_grace_seconds: float


@dataclass(frozen=True, slots=True)
class TimeoutPolicy:
    """Resolved policy for a timeout domain."""

    domain: TimeoutDomain
    default_timeout_seconds: float
    min_timeout_seconds: float
    max_timeout_seconds: float
    use_process_group: bool
    signal: SignalPolicy


@dataclass(frozen=True, slots=True)
class TimeoutContext:
    """Context used to resolve timeout values for a command run."""

    domain: TimeoutDomain
    command: str
    requested_timeout_seconds: float | None = None


class TimeoutPolicyRegistry:
    """Registry that resolves timeout policies for stub runs."""

    def __init__(
        self,
        policies: dict[TimeoutDomain, TimeoutPolicy] | None = None,
    ) -> None:
        self._policies = policies or {
            TimeoutDomain.STUB_BASELINE: TimeoutPolicy(
                domain=TimeoutDomain.STUB_BASELINE,
                default_timeout_seconds=30.0,
                min_timeout_seconds=1.0,
                max_timeout_seconds=600.0,
                use_process_group=True,
                signal=SignalPolicy(
                    warning_fraction=0.8,
                    terminate_grace_seconds=5.0,
                ),
            ),
            # Probes repeat once per operator, so they get a tighter budget.
            TimeoutDomain.MUTATION_PROBE: TimeoutPolicy(
                domain=TimeoutDomain.MUTATION_PROBE,
                default_timeout_seconds=15.0,
                min_timeout_seconds=1.0,
                max_timeout_seconds=300.0,
                use_process_group=True,
                signal=SignalPolicy(
                    warning_fraction=0.0,
                    terminate_grace_seconds=2.0,
                ),
            ),
        }

    def policy_for(self, domain: TimeoutDomain) -> TimeoutPolicy:
        """Return policy for a specific timeout domain."""
        return self._policies[domain]

    def timeout_for(self, context: TimeoutContext) -> float:
        """Resolve the timeout for one command run."""
        policy = self.policy_for(context.domain)
        requested = context.requested_timeout_seconds
        if requested is None:
            requested = policy.default_timeout_seconds
        return self._clamp(
            requested,
            policy.min_timeout_seconds,
            policy.max_timeout_seconds,
        )

    def warning_after_seconds(
        self,
        domain: TimeoutDomain,
        timeout_seconds: float,
    ) -> float | None:
        """Return warning threshold for a command timeout, if enabled."""
        policy = self.policy_for(domain)
        fraction = policy.signal.warning_fraction
        if fraction <= 0.0 or fraction >= 1.0:
            return None
        warning = timeout_seconds * fraction
        if warning <= 0.0 or warning >= timeout_seconds:
            return None
        return warning

    @staticmethod
    def _clamp(value: float, minimum: float, maximum: float) -> float:
        return max(minimum, min(value, maximum))


_DEFAULT_TIMEOUT_POLICY_REGISTRY = TimeoutPolicyRegistry()


def get_timeout_policy_registry() -> TimeoutPolicyRegistry:
    """Return shared timeout policy registry."""
    return _DEFAULT_TIMEOUT_POLICY_REGISTRY
