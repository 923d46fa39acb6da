"""Control-loop interfaces: throughput estimation, step planning, strategy."""

from abc import ABC, abstractmethod
from typing import Any


class IThroughputEstimator(ABC):
    """Rolling estimate of buffering speed from buffered-extent samples."""

    @abstractmethod
    def update(self, buffered_end: float, now: float) -> None:
        """Record a buffered-extent observation.

        Args:
            buffered_end: Furthest buffered position in seconds
            now: Wall-clock timestamp in seconds

        Only a strictly increasing extent produces a rate sample.
        """
        pass

    @abstractmethod
    def average_rate(self) -> float:
        """Return the mean of the sample window, or 0.0 when empty."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Discard all samples and the baseline observation."""
        pass


class IStepPlanner(ABC):
    """Computes the forward-seek distance for the next attempt."""

    @abstractmethod
    def plan(
        self,
        duration: float,
        is_short_form: bool,
        throughput: float,
        multiplier: float,
    ) -> float:
        """Return the step size in seconds.

        Args:
            duration: Asset duration in seconds
            is_short_form: True for short-form assets
            throughput: Current throughput estimate (media seconds per second)
            multiplier: Strategy step multiplier

        Returns:
            Step size clamped to the configured bounds
        """
        pass


class IStrategyAdapter(ABC):
    """Feedback controller escalating/de-escalating aggressiveness."""

    @abstractmethod
    def record_outcome(self, made_progress: bool) -> None:
        """Feed the outcome of one attempt.

        Args:
            made_progress: True if the attempt grew the buffered extent
        """
        pass

    @abstractmethod
    def reset(self) -> None:
        """Return to the normal strategy with multiplier 1.0."""
        pass

    @abstractmethod
    def snapshot(self) -> dict[str, Any]:
        """Return the current strategy state for logging and events."""
        pass
