"""Aggregate buffering metrics.

Counts session lifecycle events and keeps a distribution of reported
buffering speeds for monitoring.
"""

import logging
import time
from collections import deque
from datetime import datetime
from typing import Any

import numpy as np

from forcebuffer.events import BufferEvent, EventStatus
from forcebuffer.interfaces.events import IEventSink

logger = logging.getLogger(__name__)


class RateHistogram:
    """Tracks rate measurements with percentile calculations."""

    def __init__(self, max_samples: int = 10000):
        """Initialize rate histogram.

        Args:
            max_samples: Maximum samples to retain (circular buffer)
        """
        self.samples: deque[float] = deque(maxlen=max_samples)
        self.max_samples = max_samples

    def record(self, rate: float) -> None:
        """Record a rate measurement."""
        self.samples.append(rate)

    def get_stats(self) -> dict[str, float | int]:
        """Get rate statistics.

        Returns:
            Dictionary with avg, p50, p95, min, samples count
        """
        if not self.samples:
            return {"avg": 0.0, "p50": 0.0, "p95": 0.0, "min": 0.0, "samples": 0}

        arr = np.array(list(self.samples))
        return {
            "avg": float(np.mean(arr)),
            "p50": float(np.percentile(arr, 50)),
            "p95": float(np.percentile(arr, 95)),
            "min": float(np.min(arr)),
            "samples": len(self.samples),
        }


class BufferMetrics(IEventSink):
    """Collects counters and speed statistics from controller events."""

    def __init__(self) -> None:
        """Initialize metrics collector."""
        self.speed = RateHistogram()

        # Event counters
        self.sessions_started = 0
        self.sessions_completed = 0
        self.quality_changes = 0
        self.total_attempts = 0

        self.start_time = time.time()

        logger.info("Metrics collector initialized")

    def handle_event(self, event: BufferEvent) -> None:
        if event.status is EventStatus.STARTED:
            self.sessions_started += 1
        elif event.status is EventStatus.PROGRESS:
            if event.speed is not None and event.speed > 0:
                self.speed.record(event.speed)
        elif event.status is EventStatus.QUALITY_CHANGE:
            self.quality_changes += 1
        elif event.status is EventStatus.COMPLETE:
            self.sessions_completed += 1
            self.total_attempts += event.attempts or 0

    def get_snapshot(self) -> dict[str, Any]:
        """Get current metrics snapshot."""
        completed = self.sessions_completed
        return {
            "sessions_started": self.sessions_started,
            "sessions_completed": completed,
            "quality_changes": self.quality_changes,
            "total_attempts": self.total_attempts,
            "avg_attempts_per_session": (
                self.total_attempts / completed if completed > 0 else 0.0
            ),
            "speed": self.speed.get_stats(),
            "uptime_sec": time.time() - self.start_time,
            "timestamp": datetime.now().isoformat(),
        }
