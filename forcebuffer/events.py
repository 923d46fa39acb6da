"""Status events produced by the controller and best-effort delivery."""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from forcebuffer.interfaces.events import IEventSink

logger = logging.getLogger(__name__)


class EventStatus(str, Enum):
    """Lifecycle status carried by a BufferEvent."""

    STARTED = "started"
    PROGRESS = "progress"
    QUALITY_CHANGE = "quality_change"
    COMPLETE = "complete"


@dataclass
class BufferEvent:
    """Structured status event for a bound source.

    Attributes:
        status: Lifecycle status
        source_id: Identifier of the bound source
        quality: Quality label at emission time (None if unknown)
        is_short: True for short-form assets
        progress: Buffered percentage (progress events)
        speed: Throughput estimate in media seconds per second (progress events)
        attempts: Seek attempts made in the session (complete events)
        from_quality: Previous label (quality_change events)
        to_quality: New label (quality_change events)
        timestamp: Emission time (seconds since epoch)
    """

    status: EventStatus
    source_id: str
    quality: Optional[str] = None
    is_short: bool = False
    progress: Optional[int] = None
    speed: Optional[float] = None
    attempts: Optional[int] = None
    from_quality: Optional[str] = None
    to_quality: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def to_json(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary, omitting unset fields."""
        data: dict[str, Any] = {
            "status": self.status.value,
            "source_id": self.source_id,
            "quality": self.quality,
            "is_short": self.is_short,
            "timestamp": self.timestamp,
        }
        if self.progress is not None:
            data["progress"] = self.progress
        if self.speed is not None:
            data["speed"] = self.speed
        if self.attempts is not None:
            data["attempts"] = self.attempts
        if self.from_quality is not None:
            data["from"] = self.from_quality
        if self.to_quality is not None:
            data["to"] = self.to_quality
        return data

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "BufferEvent":
        """Build an event from a to_json()-style dictionary."""
        return cls(
            status=EventStatus(data["status"]),
            source_id=str(data.get("source_id", "unknown")),
            quality=data.get("quality"),
            is_short=bool(data.get("is_short", False)),
            progress=data.get("progress"),
            speed=data.get("speed"),
            attempts=data.get("attempts"),
            from_quality=data.get("from"),
            to_quality=data.get("to"),
            timestamp=data.get("timestamp") or time.time(),
        )


class EventEmitter:
    """Fire-and-forget delivery of events to an optional sink.

    Sink failures are logged and discarded; they never reach the caller.
    """

    def __init__(self, sink: Optional[IEventSink] = None):
        """Initialize emitter.

        Args:
            sink: Destination for events (events are dropped when None)
        """
        self.sink = sink
        self.delivered = 0
        self.dropped = 0

    def emit(self, event: BufferEvent) -> None:
        """Deliver an event, swallowing any sink error."""
        if self.sink is None:
            return
        try:
            self.sink.handle_event(event)
            self.delivered += 1
        except Exception as e:
            self.dropped += 1
            logger.warning(
                f"Dropped {event.status.value} event: {e}",
                extra={"source_id": event.source_id},
            )


class FanOutSink(IEventSink):
    """Delivers each event to several sinks, isolating their failures."""

    def __init__(self, sinks: Iterable[IEventSink]):
        """Initialize fan-out.

        Args:
            sinks: Sinks to deliver to, in order
        """
        self.sinks = list(sinks)

    def handle_event(self, event: BufferEvent) -> None:
        """Deliver to every sink; one failing sink does not starve the rest."""
        for sink in self.sinks:
            try:
                sink.handle_event(event)
            except Exception as e:
                logger.warning(
                    f"Sink {type(sink).__name__} failed on {event.status.value}: {e}",
                    extra={"source_id": event.source_id},
                )
