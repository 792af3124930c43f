"""Error types for pipeline phases."""


class PhaseError(Exception):
    """A pipeline phase failed.

    Attributes:
        phase: Name of the failing phase.
    """

    def __init__(self, phase: str, message: str) -> None:
        super().__init__(f"{phase}: {message}")
        self.phase = phase


class PhaseInputError(PhaseError):
    """A phase's input artifact is missing or invalid. Never retried."""


class StaleInputError(PhaseInputError):
    """A phase's input artifact is older than the allowed age."""

    def __init__(self, phase: str, age_hours: float | None, threshold_hours: float) -> None:
        age = "unknown" if age_hours is None else f"{age_hours:.1f}h"
        super().__init__(
            phase,
            f"input is stale ({age} old, threshold {threshold_hours:g}h)",
        )
        self.age_hours = age_hours
        self.threshold_hours = threshold_hours
