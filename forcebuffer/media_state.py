"""Read-only queries against a bound media source.

Every query swallows errors raised by the source and reports "no information"
instead, so a torn-down player can never fault the control loop through a read.
"""

import logging
import math
from typing import Optional

from forcebuffer.interfaces.media import IMediaSource

logger = logging.getLogger(__name__)

# (minimum height, label), checked top to bottom
RESOLUTION_BUCKETS = (
    (2160, "4K"),
    (1440, "1440p"),
    (1080, "1080p"),
    (720, "720p"),
    (480, "480p"),
    (360, "360p"),
    (240, "240p"),
)


def classify_height(height: int) -> str:
    """Map a vertical resolution to a named quality bucket.

    Args:
        height: Vertical resolution in pixels

    Returns:
        Bucket label such as "1080p", or "<height>p" below the smallest bucket
    """
    for min_height, label in RESOLUTION_BUCKETS:
        if height >= min_height:
            return label
    return f"{height}p"


class MediaStateReader:
    """Pure queries over an IMediaSource. Never mutates the source."""

    def __init__(self, fully_buffered_epsilon: float = 0.5):
        """Initialize reader.

        Args:
            fully_buffered_epsilon: Slack in seconds allowed before the end of
                the asset when deciding that it is fully buffered
        """
        self.fully_buffered_epsilon = fully_buffered_epsilon

    def duration(self, source: Optional[IMediaSource]) -> Optional[float]:
        """Return the finite, positive duration or None."""
        if source is None:
            return None
        try:
            duration = float(source.get_duration())
        except Exception as e:
            logger.debug(f"Could not read duration: {e}")
            return None
        if math.isnan(duration) or math.isinf(duration) or duration <= 0:
            return None
        return duration

    def position(self, source: Optional[IMediaSource]) -> Optional[float]:
        """Return the current playback position or None."""
        if source is None:
            return None
        try:
            return float(source.get_position())
        except Exception as e:
            logger.debug(f"Could not read position: {e}")
            return None

    def buffered_ranges(
        self, source: Optional[IMediaSource]
    ) -> list[tuple[float, float]]:
        """Return the reported buffered ranges, or an empty list."""
        if source is None:
            return []
        try:
            return [(float(start), float(end)) for start, end in source.get_buffered_ranges()]
        except Exception as e:
            logger.debug(f"Could not read buffered ranges: {e}")
            return []

    def furthest_buffered_end(self, source: Optional[IMediaSource]) -> float:
        """Return the maximum end across all buffered ranges, or 0.0."""
        ranges = self.buffered_ranges(source)
        if not ranges:
            return 0.0
        return max(end for _, end in ranges)

    def is_fully_buffered(self, source: Optional[IMediaSource]) -> bool:
        """Check whether one range spans the playhead to (nearly) the end.

        Returns:
            True iff duration is finite and some range covers
            [<= position, >= duration - epsilon]
        """
        duration = self.duration(source)
        if duration is None:
            return False
        position = self.position(source)
        if position is None:
            return False

        for start, end in self.buffered_ranges(source):
            if start <= position and end >= duration - self.fully_buffered_epsilon:
                return True
        return False

    def buffered_percentage(self, source: Optional[IMediaSource]) -> int:
        """Return the furthest buffered end as a rounded percentage of duration."""
        duration = self.duration(source)
        if duration is None:
            return 0
        percentage = round(self.furthest_buffered_end(source) / duration * 100)
        return max(0, min(100, percentage))

    def quality(self, source: Optional[IMediaSource]) -> Optional[str]:
        """Best-effort quality label.

        Tries, in order: the player's playback-quality accessor, the quality
        selector label, then a bucket derived from the video height.

        Returns:
            Quality label, or None when no signal is available
        """
        if source is None:
            return None

        for accessor in (source.get_quality_label, source.get_selected_quality):
            try:
                label = accessor()
            except Exception as e:
                logger.debug(f"Quality accessor {accessor.__name__} failed: {e}")
                continue
            if label:
                return str(label)

        try:
            height = source.get_video_height()
        except Exception as e:
            logger.debug(f"Could not read video height: {e}")
            return None
        if height:
            return classify_height(int(height))
        return None
