"""State machine for pipeline phase lifecycle."""

from enum import Enum

import structlog


logger = structlog.get_logger()


class PhaseState(str, Enum):
    """Lifecycle state of a phase within one orchestrator run.

    - PENDING: Not yet started
    - RUNNING: Attempts in progress (retries stay here)
    - DONE: Completed successfully
    - FAILED: Failed after all attempts
    - SKIPPED: Not part of the run or not reached
    """

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    DONE = "DONE"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


_VALID_TRANSITIONS: dict[PhaseState, set[PhaseState]] = {
    PhaseState.PENDING: {PhaseState.RUNNING, PhaseState.SKIPPED},
    PhaseState.RUNNING: {PhaseState.DONE, PhaseState.FAILED},
    PhaseState.DONE: set(),
    PhaseState.FAILED: set(),
    PhaseState.SKIPPED: set(),
}

_TERMINAL_STATES = frozenset({PhaseState.DONE, PhaseState.FAILED, PhaseState.SKIPPED})


class PhaseStateTransitionError(Exception):
    """Raised when an illegal state transition is attempted."""

    def __init__(self, phase: str, from_state: PhaseState, to_state: PhaseState) -> None:
        self.phase = phase
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal state transition for phase '{phase}': "
            f"{from_state.value} -> {to_state.value}"
        )


class PhaseStateMachine:
    """Enforces valid phase transitions and logs every change."""

    def __init__(self, phase: str, run_id: str) -> None:
        self._phase = phase
        self._state = PhaseState.PENDING
        self._log = logger.bind(component="pipeline", run_id=run_id, phase=phase)

    @property
    def state(self) -> PhaseState:
        """Get the current state."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal."""
        return self._state in _TERMINAL_STATES

    def can_transition_to(self, target: PhaseState) -> bool:
        """Check if a transition to the target state is valid."""
        return target in _VALID_TRANSITIONS[self._state]

    def transition_to(self, target: PhaseState) -> None:
        """Transition to a new state.

        Raises:
            PhaseStateTransitionError: If the transition is invalid.
        """
        if not self.can_transition_to(target):
            self._log.error(
                "invariant_violation",
                from_state=self._state.value,
                to_state=target.value,
            )
            raise PhaseStateTransitionError(self._phase, self._state, target)

        old_state = self._state
        self._state = target
        self._log.info("state_transition", from_state=old_state.value, to_state=target.value)

    def to_running(self) -> None:
        """Transition to RUNNING."""
        self.transition_to(PhaseState.RUNNING)

    def to_done(self) -> None:
        """Transition to DONE."""
        self.transition_to(PhaseState.DONE)

    def to_failed(self) -> None:
        """Transition to FAILED."""
        self.transition_to(PhaseState.FAILED)

    def to_skipped(self) -> None:
        """Transition to SKIPPED."""
        self.transition_to(PhaseState.SKIPPED)
