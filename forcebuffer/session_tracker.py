"""Host-side tracking of buffering sessions.

Consumes controller events, keeps one record per source and writes a
human-readable log line for starts, progress milestones, quality switches and
completion.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from forcebuffer.events import BufferEvent, EventStatus
from forcebuffer.interfaces.events import IEventSink

logger = logging.getLogger(__name__)

# Progress values always logged in addition to every 10%
EXTRA_PROGRESS_MILESTONES = (25, 75)


def format_elapsed_time(seconds: float) -> str:
    """Format elapsed seconds as "12.3s" below a minute, else "Xm Ys"."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    remaining = round(seconds % 60)
    return f"{minutes}m {remaining}s"


def format_quality(quality: Optional[str]) -> str:
    return f" ({quality})" if quality else ""


def format_video_type(is_short: bool) -> str:
    return " [Shorts]" if is_short else ""


def is_progress_milestone(progress: int) -> bool:
    """True for progress values worth logging."""
    return progress % 10 == 0 or progress in EXTRA_PROGRESS_MILESTONES


@dataclass
class SessionRecord:
    """Tracked state of one active buffering session."""

    source_id: str
    start_time: float
    video_type: str
    quality: Optional[str] = None
    progress: int = 0
    speed: Optional[float] = None
    last_logged_progress: Optional[int] = None

    def to_json(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "start_time": self.start_time,
            "video_type": self.video_type,
            "quality": self.quality,
            "progress": self.progress,
            "speed": self.speed,
        }


class SessionTracker(IEventSink):
    """Tracks active buffering sessions keyed by source id."""

    def __init__(self, clock: Callable[[], float] = time.time):
        """Initialize tracker.

        Args:
            clock: Wall-clock source in seconds
        """
        self.clock = clock
        self.sessions: dict[str, SessionRecord] = {}
        self.completed_sessions = 0

    def handle_event(self, event: BufferEvent) -> None:
        """Update the session record for an event and log it."""
        type_info = format_video_type(event.is_short)
        quality_info = format_quality(event.quality)

        if event.status is EventStatus.STARTED:
            self.sessions[event.source_id] = SessionRecord(
                source_id=event.source_id,
                start_time=self.clock(),
                video_type="Shorts" if event.is_short else "Video",
                quality=event.quality,
            )
            logger.info(
                f"Started buffering{type_info}{quality_info}",
                extra={"source_id": event.source_id, "quality": event.quality},
            )

        elif event.status is EventStatus.PROGRESS:
            record = self.sessions.get(event.source_id)
            if record is None or event.progress is None:
                return
            record.progress = event.progress
            record.speed = event.speed

            # Log each milestone once per session
            if (
                is_progress_milestone(event.progress)
                and event.progress != record.last_logged_progress
            ):
                record.last_logged_progress = event.progress
                elapsed = format_elapsed_time(self.clock() - record.start_time)
                logger.info(
                    f"Buffering: {event.progress}% complete{type_info}{quality_info}, "
                    f"Speed: {event.speed}s/s, Elapsed: {elapsed}",
                    extra={"source_id": event.source_id, "quality": event.quality},
                )

        elif event.status is EventStatus.QUALITY_CHANGE:
            logger.info(
                f"Quality changed{type_info} from {event.from_quality} to {event.to_quality}",
                extra={"source_id": event.source_id, "quality": event.to_quality},
            )
            record = self.sessions.get(event.source_id)
            if record is not None:
                record.quality = event.to_quality

        elif event.status is EventStatus.COMPLETE:
            record = self.sessions.pop(event.source_id, None)
            self.completed_sessions += 1
            if record is not None:
                total = format_elapsed_time(self.clock() - record.start_time)
                logger.info(
                    f"Finished buffering{type_info}{quality_info} in {total} "
                    f"({event.attempts} seeks)",
                    extra={"source_id": event.source_id, "attempt": event.attempts},
                )
            else:
                logger.info(
                    f"Finished buffering{type_info}{quality_info}",
                    extra={"source_id": event.source_id},
                )

    def remove_source(self, source_id: str) -> bool:
        """Forget a source whose host went away.

        Returns:
            True if a session was being tracked
        """
        return self.sessions.pop(source_id, None) is not None

    def get_session(self, source_id: str) -> Optional[SessionRecord]:
        return self.sessions.get(source_id)

    def get_snapshot(self) -> dict[str, Any]:
        """Return all active sessions with elapsed time."""
        now = self.clock()
        return {
            "active_sessions": [
                {**record.to_json(), "elapsed_sec": now - record.start_time}
                for record in self.sessions.values()
            ],
            "completed_sessions": self.completed_sessions,
        }
