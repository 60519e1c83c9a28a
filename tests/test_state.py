"""Tests for the prove-run state machine."""

import pytest

from frproof.proof.state import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    InvalidTransitionError,
    ProofRun,
    RunState,
)


class TestRunState:
    """Tests for RunState and the transition table."""

    def test_all_states_in_transition_table(self) -> None:
        for state in RunState:
            assert state in VALID_TRANSITIONS, f"{state} missing from VALID_TRANSITIONS"

    def test_terminal_states_have_no_exits(self) -> None:
        for state in TERMINAL_STATES:
            assert VALID_TRANSITIONS[state] == set()

    def test_all_states_reachable(self) -> None:
        reachable: set[RunState] = {RunState.NOT_STARTED}
        changed = True
        while changed:
            changed = False
            for state, targets in VALID_TRANSITIONS.items():
                if state in reachable and not targets <= reachable:
                    reachable |= targets
                    changed = True

        assert reachable == set(RunState)


class TestProofRun:
    def test_happy_path(self) -> None:
        run = ProofRun(feature="demo")
        for target in (
            RunState.TRACEABILITY_PARSED,
            RunState.EXECUTING,
            RunState.AGGREGATED,
            RunState.PERSISTED,
            RunState.REPORTED,
        ):
            run.transition(target)

        assert run.is_terminal
        assert [entry["to"] for entry in run.history] == [
            "traceability_parsed",
            "executing",
            "aggregated",
            "persisted",
            "reported",
        ]

    def test_blocked_records_reason(self) -> None:
        run = ProofRun(feature=None)
        run.transition(RunState.BLOCKED, reason="feature_required")

        assert run.is_terminal
        assert run.to_dict()["history"][0]["reason"] == "feature_required"

    def test_cannot_skip_execution(self) -> None:
        run = ProofRun(feature="demo")
        run.transition(RunState.TRACEABILITY_PARSED)

        with pytest.raises(InvalidTransitionError) as exc_info:
            run.transition(RunState.PERSISTED)

        assert exc_info.value.current == RunState.TRACEABILITY_PARSED
        assert run.state == RunState.TRACEABILITY_PARSED

    def test_cannot_block_after_executing(self) -> None:
        run = ProofRun(feature="demo")
        run.transition(RunState.TRACEABILITY_PARSED)
        run.transition(RunState.EXECUTING)

        assert not run.can_transition(RunState.BLOCKED)
