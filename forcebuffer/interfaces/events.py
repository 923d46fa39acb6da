"""Event sink interface for controller lifecycle and progress events."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from forcebuffer.events import BufferEvent


class IEventSink(ABC):
    """Receives structured status events from a controller.

    Delivery is fire-and-forget: implementations must not block, and any
    exception they raise is logged and discarded by the emitter.
    """

    @abstractmethod
    def handle_event(self, event: "BufferEvent") -> None:
        """Consume one status event.

        Args:
            event: Event with status started, progress, quality_change or complete
        """
        pass
