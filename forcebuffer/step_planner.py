"""Forward-seek step sizing.

The step is built in a fixed order: duration band, then a throughput
correction, then the strategy multiplier, and finally a clamp to the
configured bounds.
"""

import logging

from forcebuffer.interfaces.control import IStepPlanner

logger = logging.getLogger(__name__)

# (upper duration bound in seconds, base step in seconds)
DURATION_BANDS = (
    (60.0, 5.0),
    (300.0, 10.0),
    (900.0, 20.0),
    (1800.0, 30.0),
)
LONG_FORM_STEP = 45.0


def base_step_for_duration(duration: float) -> float:
    """Return the base step for an asset duration band."""
    for upper_bound, step in DURATION_BANDS:
        if duration < upper_bound:
            return step
    return LONG_FORM_STEP


def throughput_factor(rate: float) -> float:
    """Return the step correction for a throughput estimate.

    A rate of 0 means no samples yet and leaves the step unchanged.
    """
    if rate <= 0:
        return 1.0
    if rate > 5:
        return 1.5
    if rate > 2:
        return 1.2
    if rate < 0.5:
        return 0.6
    if rate < 1:
        return 0.8
    return 1.0


class StepPlanner(IStepPlanner):
    """Computes the next forward-seek distance."""

    def __init__(
        self,
        min_step: float = 5.0,
        max_step: float = 60.0,
        short_form_step: float = 5.0,
    ):
        """Initialize planner.

        Args:
            min_step: Lower clamp in seconds
            max_step: Upper clamp in seconds
            short_form_step: Fixed step for short-form assets
        """
        if max_step < min_step:
            raise ValueError(f"max_step ({max_step}) < min_step ({min_step})")

        self.min_step = min_step
        self.max_step = max_step
        self.short_form_step = short_form_step

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
            Step size in [min_step, max_step]
        """
        if is_short_form:
            step = self.short_form_step
        else:
            step = base_step_for_duration(duration)
            step *= throughput_factor(throughput)
            step *= multiplier

        clamped = min(max(step, self.min_step), self.max_step)
        if clamped != step:
            logger.debug(f"Step {step:.1f}s clamped to {clamped:.1f}s")
        return clamped
