"""Deterministic in-memory media source.

Models a player whose cache fetches a fixed window ahead of wherever the
playhead is moved. Used to exercise the controller without a real player.
"""

import logging
from typing import Optional, Sequence

from forcebuffer.exceptions import SourceUnavailableError
from forcebuffer.interfaces.media import IMediaSource, QualityListener

logger = logging.getLogger(__name__)


def merge_ranges(ranges: list[tuple[float, float]]) -> list[tuple[float, float]]:
    """Merge overlapping or touching intervals into an ordered disjoint list."""
    merged: list[tuple[float, float]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


class SimulatedMediaSource(IMediaSource):
    """Media source whose buffered ranges react to seeks.

    Every set_position() call fetches ``fetch_ahead`` seconds from the new
    position (capped at the duration) unless the source is stalled.
    """

    def __init__(
        self,
        duration: float,
        fetch_ahead: float = 30.0,
        initial_buffer: float = 10.0,
        quality: Optional[str] = None,
        video_height: Optional[int] = None,
        position: float = 0.0,
        paused: bool = False,
        playback_rate: float = 1.0,
        contiguous: bool = True,
    ):
        """Initialize simulated source.

        Args:
            duration: Asset duration in seconds (NaN or inf for unknown)
            fetch_ahead: Seconds fetched ahead of each seek target
            initial_buffer: Seconds buffered from the start position
            quality: Label reported by the player accessor
            video_height: Vertical resolution reported by the decoder
            position: Initial playback position
            paused: Initial paused state
            playback_rate: Initial playback rate
            contiguous: Fill the gap between the furthest buffered end and a
                seek target beyond it, as a player reading sequentially would
        """
        self.duration = duration
        self.fetch_ahead = fetch_ahead
        self.quality = quality
        self.video_height = video_height
        self.position = position
        self.paused = paused
        self.playback_rate = playback_rate
        self.contiguous = contiguous

        self.stalled = False
        self.torn_down = False
        self.fail_next_seeks = 0
        self.seek_history: list[float] = []
        self.ranges: list[tuple[float, float]] = []
        self._listeners: list[QualityListener] = []

        if initial_buffer > 0:
            self._fetch(position, initial_buffer)

    def _check_alive(self) -> None:
        if self.torn_down:
            raise SourceUnavailableError("media source has been torn down")

    def _fetch(self, start: float, length: float) -> None:
        end = min(start + length, self.duration)
        if end > start:
            self.ranges = merge_ranges(self.ranges + [(start, end)])

    def get_position(self) -> float:
        self._check_alive()
        return self.position

    def set_position(self, position: float) -> None:
        self._check_alive()
        if self.fail_next_seeks > 0:
            self.fail_next_seeks -= 1
            raise SourceUnavailableError(f"seek to {position:.1f}s rejected")
        self.position = position
        self.seek_history.append(position)
        if self.stalled:
            return
        start = position
        if self.contiguous and self.ranges:
            start = min(position, max(end for _, end in self.ranges))
        self._fetch(start, position + self.fetch_ahead - start)

    def get_duration(self) -> float:
        self._check_alive()
        return self.duration

    def get_buffered_ranges(self) -> Sequence[tuple[float, float]]:
        self._check_alive()
        return list(self.ranges)

    def get_playback_rate(self) -> float:
        self._check_alive()
        return self.playback_rate

    def set_playback_rate(self, rate: float) -> None:
        self._check_alive()
        self.playback_rate = rate

    def pause(self) -> None:
        self._check_alive()
        self.paused = True

    def play(self) -> None:
        self._check_alive()
        self.paused = False

    def is_paused(self) -> bool:
        self._check_alive()
        return self.paused

    def get_quality_label(self) -> Optional[str]:
        self._check_alive()
        return self.quality

    def get_video_height(self) -> Optional[int]:
        self._check_alive()
        return self.video_height

    def add_quality_listener(self, listener: QualityListener) -> None:
        self._listeners.append(listener)

    def remove_quality_listener(self, listener: QualityListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def change_quality(
        self,
        quality: Optional[str] = None,
        video_height: Optional[int] = None,
        keep_buffer: bool = False,
    ) -> None:
        """Switch stream quality and notify listeners.

        Args:
            quality: New player quality label
            video_height: New vertical resolution
            keep_buffer: Keep buffered ranges (default drops everything past
                the playhead, as a re-requested stream would)
        """
        self.quality = quality
        self.video_height = video_height
        if not keep_buffer:
            self.ranges = [
                (start, min(end, self.position))
                for start, end in self.ranges
                if start < self.position
            ]
        logger.debug(f"Simulated quality switch to {quality or video_height}")
        for listener in list(self._listeners):
            listener()

    def listener_count(self) -> int:
        """Return the number of registered quality listeners."""
        return len(self._listeners)
