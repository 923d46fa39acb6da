"""Detection of asynchronous quality/bitrate switches.

A switch makes the player re-request the stream at a new bitrate, so the
buffered extent measured before it no longer describes what is cached. The
monitor only detects and records the switch; the controller performs the
restart.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from forcebuffer.interfaces.control import IStrategyAdapter
from forcebuffer.interfaces.media import IMediaSource
from forcebuffer.media_state import MediaStateReader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QualityChange:
    """A detected switch between two known quality labels."""

    old: str
    new: str


class QualityChangeMonitor:
    """Compares the current quality label against the last known one."""

    def __init__(self, reader: MediaStateReader, strategy: IStrategyAdapter):
        """Initialize monitor.

        Args:
            reader: Media state reader used to obtain labels
            strategy: Strategy adapter reset on every detected change
        """
        self.reader = reader
        self.strategy = strategy
        self.last_known: Optional[str] = None
        self.quality_changed = False

    def prime(self, source: Optional[IMediaSource]) -> Optional[str]:
        """Record the current label as the baseline without reporting a change."""
        label = self.reader.quality(source)
        if label is not None:
            self.last_known = label
        return label

    def check(self, source: Optional[IMediaSource]) -> Optional[QualityChange]:
        """Poll the source and report a switch between two known labels.

        Returns:
            QualityChange when both labels are known and differ, else None
        """
        current = self.reader.quality(source)
        if current is None:
            return None

        previous = self.last_known
        self.last_known = current
        if previous is None or previous == current:
            return None

        self.quality_changed = True
        self.strategy.reset()
        logger.info(
            f"Quality changed from {previous} to {current}",
            extra={"quality": current},
        )
        return QualityChange(old=previous, new=current)

    def clear(self) -> None:
        """Lower the quality-changed flag."""
        self.quality_changed = False

    def reset(self) -> None:
        """Forget the last known label and lower the flag."""
        self.last_known = None
        self.quality_changed = False
