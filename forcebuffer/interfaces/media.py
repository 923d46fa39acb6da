"""Media source interface consumed by the buffer-forcing controller."""

from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

QualityListener = Callable[[], None]


class IMediaSource(ABC):
    """Handle on a host-owned media player.

    The controller never owns the source. It reads position, duration and
    buffered ranges, and mutates only position, playback rate and pause state.
    Any method may raise if the underlying player has been torn down.
    """

    @abstractmethod
    def get_position(self) -> float:
        """Return the current playback position in seconds."""
        pass

    @abstractmethod
    def set_position(self, position: float) -> None:
        """Move the playback cursor.

        Args:
            position: Target position in seconds
        """
        pass

    @abstractmethod
    def get_duration(self) -> float:
        """Return the asset duration in seconds (may be NaN or inf if unknown)."""
        pass

    @abstractmethod
    def get_buffered_ranges(self) -> Sequence[tuple[float, float]]:
        """Return the buffered intervals.

        Returns:
            Ordered sequence of disjoint (start, end) pairs in seconds
        """
        pass

    @abstractmethod
    def get_playback_rate(self) -> float:
        """Return the current playback rate."""
        pass

    @abstractmethod
    def set_playback_rate(self, rate: float) -> None:
        """Set the playback rate."""
        pass

    @abstractmethod
    def pause(self) -> None:
        """Pause playback."""
        pass

    @abstractmethod
    def play(self) -> None:
        """Resume playback."""
        pass

    @abstractmethod
    def is_paused(self) -> bool:
        """Return True if playback is paused."""
        pass

    @abstractmethod
    def get_quality_label(self) -> Optional[str]:
        """Return the player's own playback-quality label, if it exposes one."""
        pass

    def get_selected_quality(self) -> Optional[str]:
        """Return the label shown by a quality-selector UI, if any."""
        return None

    def get_video_height(self) -> Optional[int]:
        """Return the decoded vertical resolution in pixels, if known."""
        return None

    def add_quality_listener(self, listener: QualityListener) -> None:
        """Register a callback fired when the stream resolution/bitrate changes.

        Sources without a change signal may ignore the registration; the
        controller also polls the quality label on every tick.
        """
        pass

    def remove_quality_listener(self, listener: QualityListener) -> None:
        """Unregister a callback added with add_quality_listener()."""
        pass
