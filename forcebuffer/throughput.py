"""Rolling throughput estimate from successive buffered-extent samples."""

import logging
from collections import deque
from typing import Optional

import numpy as np

from forcebuffer.interfaces.control import IThroughputEstimator

logger = logging.getLogger(__name__)


class ThroughputEstimator(IThroughputEstimator):
    """Tracks buffering speed in media seconds fetched per wall-clock second.

    Keeps a bounded FIFO of rate samples; the oldest sample is evicted when a
    new one arrives at capacity.
    """

    def __init__(self, window: int = 5):
        """Initialize estimator.

        Args:
            window: Maximum number of rate samples to retain (default 5)
        """
        if window < 1:
            raise ValueError(f"Window must be >= 1, got {window}")

        self.window = window
        self.samples: deque[float] = deque(maxlen=window)
        self.last_extent: Optional[float] = None
        self.last_time: Optional[float] = None

    def update(self, buffered_end: float, now: float) -> None:
        """Record a buffered-extent observation.

        Args:
            buffered_end: Furthest buffered position in seconds
            now: Wall-clock timestamp in seconds
        """
        if self.last_extent is not None and self.last_time is not None:
            elapsed = now - self.last_time
            gained = buffered_end - self.last_extent
            # A stalled or shrinking extent adds no sample
            if elapsed > 0 and gained > 0:
                rate = gained / elapsed
                self.samples.append(rate)
                logger.debug(
                    f"Throughput sample {rate:.2f}s/s "
                    f"(+{gained:.1f}s in {elapsed:.2f}s, window={len(self.samples)})"
                )

        self.last_extent = buffered_end
        self.last_time = now

    def average_rate(self) -> float:
        """Return the mean of the sample window, or 0.0 when empty."""
        if not self.samples:
            return 0.0
        return float(np.mean(np.fromiter(self.samples, dtype=float)))

    def sample_count(self) -> int:
        """Return the number of samples currently in the window."""
        return len(self.samples)

    def reset(self) -> None:
        """Discard all samples and the baseline observation."""
        self.samples.clear()
        self.last_extent = None
        self.last_time = None

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"ThroughputEstimator(window={self.window}, samples={len(self.samples)}, "
            f"average={self.average_rate():.2f})"
        )
