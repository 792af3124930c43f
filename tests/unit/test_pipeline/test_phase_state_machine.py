"""Unit tests for the phase state machine."""

import pytest

from market_digest.pipeline import (
    PhaseState,
    PhaseStateMachine,
    PhaseStateTransitionError,
)


class TestPhaseStateMachine:
    """Tests for PhaseStateMachine transitions."""

    def test_starts_pending(self) -> None:
        machine = PhaseStateMachine("collect", "run-1")

        assert machine.state == PhaseState.PENDING
        assert not machine.is_terminal

    def test_happy_path(self) -> None:
        machine = PhaseStateMachine("collect", "run-1")

        machine.to_running()
        machine.to_done()

        assert machine.state == PhaseState.DONE
        assert machine.is_terminal

    def test_running_to_failed(self) -> None:
        machine = PhaseStateMachine("process", "run-1")
        machine.to_running()
        machine.to_failed()

        assert machine.state == PhaseState.FAILED

    def test_pending_to_skipped(self) -> None:
        machine = PhaseStateMachine("publish", "run-1")
        machine.to_skipped()

        assert machine.is_terminal

    @pytest.mark.parametrize("target", [PhaseState.DONE, PhaseState.FAILED])
    def test_cannot_finish_without_running(self, target: PhaseState) -> None:
        machine = PhaseStateMachine("collect", "run-1")

        with pytest.raises(PhaseStateTransitionError) as exc_info:
            machine.transition_to(target)

        assert exc_info.value.from_state == PhaseState.PENDING
        assert exc_info.value.to_state == target
        assert machine.state == PhaseState.PENDING

    def test_terminal_states_are_final(self) -> None:
        machine = PhaseStateMachine("collect", "run-1")
        machine.to_running()
        machine.to_done()

        for target in PhaseState:
            assert not machine.can_transition_to(target)

    def test_cannot_skip_running_phase(self) -> None:
        machine = PhaseStateMachine("collect", "run-1")
        machine.to_running()

        with pytest.raises(PhaseStateTransitionError, match="RUNNING -> SKIPPED"):
            machine.to_skipped()
