"""Success/failure feedback controller for seek aggressiveness."""

import logging
from enum import Enum
from typing import Any

from forcebuffer.interfaces.control import IStrategyAdapter

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    """Aggressiveness mode of the control loop."""

    NORMAL = "normal"
    AGGRESSIVE = "aggressive"


class StrategyAdapter(IStrategyAdapter):
    """Escalates the step multiplier on failure runs and decays it on success.

    Invariant: multiplier is exactly 1.0 in NORMAL and within [1.0, 2.0] in
    AGGRESSIVE.
    """

    # Escalation thresholds (consecutive failures -> multiplier)
    AGGRESSIVE_THRESHOLD = 5
    AGGRESSIVE_MULTIPLIER = 1.5
    CEILING_THRESHOLD = 10
    CEILING_MULTIPLIER = 2.0

    # Multiplier decay per success while aggressive
    DECAY_STEP = 0.1

    def __init__(self) -> None:
        """Initialize adapter in the normal strategy."""
        self.strategy = Strategy.NORMAL
        self.step_multiplier = 1.0
        self.consecutive_failures = 0

    def record_outcome(self, made_progress: bool) -> None:
        """Feed the outcome of one attempt.

        Args:
            made_progress: True if the attempt grew the buffered extent
        """
        if made_progress:
            self._record_success()
        else:
            self._record_failure()

    def _record_success(self) -> None:
        self.consecutive_failures = 0
        if self.strategy is not Strategy.AGGRESSIVE:
            return

        decayed = round(self.step_multiplier - self.DECAY_STEP, 6)
        if decayed <= 1.0:
            self.strategy = Strategy.NORMAL
            self.step_multiplier = 1.0
            logger.info("Strategy back to normal after successful attempts")
        else:
            self.step_multiplier = decayed

    def _record_failure(self) -> None:
        self.consecutive_failures += 1

        # Both thresholds are checked on every call; the ceiling is applied last
        if self.consecutive_failures >= self.AGGRESSIVE_THRESHOLD:
            self._escalate(self.AGGRESSIVE_MULTIPLIER)
        if self.consecutive_failures >= self.CEILING_THRESHOLD:
            self._escalate(self.CEILING_MULTIPLIER)

    def _escalate(self, multiplier: float) -> None:
        if self.strategy is Strategy.AGGRESSIVE and self.step_multiplier >= multiplier:
            return
        self.strategy = Strategy.AGGRESSIVE
        self.step_multiplier = multiplier
        logger.warning(
            f"Strategy escalated to aggressive x{multiplier} "
            f"after {self.consecutive_failures} consecutive failures"
        )

    def reset(self) -> None:
        """Return to the normal strategy with multiplier 1.0."""
        self.strategy = Strategy.NORMAL
        self.step_multiplier = 1.0
        self.consecutive_failures = 0

    def snapshot(self) -> dict[str, Any]:
        """Return the current strategy state."""
        return {
            "strategy": self.strategy.value,
            "step_multiplier": self.step_multiplier,
            "consecutive_failures": self.consecutive_failures,
        }

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"StrategyAdapter(strategy={self.strategy.value}, "
            f"multiplier={self.step_multiplier}, failures={self.consecutive_failures})"
        )
