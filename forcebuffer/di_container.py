"""Dependency injection container for forcebuffer components.

Provides centralized management of shared sinks and the controllers created
for bound sources.

The status service itself never binds media sources. A host that embeds
forcebuffer next to its player calls ``get_container().create_controller()``
once per player and binds the player with ``on_source_available``; those
controllers are what ``/api/status`` lists, and they share the tracker and
metrics sinks served by the other endpoints. Hosts running elsewhere report
through ``POST /api/events`` instead.
"""

import logging
from typing import Any, Optional

from forcebuffer.config import ForceBufferConfig, get_config
from forcebuffer.controller import BufferForcingController
from forcebuffer.events import FanOutSink
from forcebuffer.metrics import BufferMetrics
from forcebuffer.session_tracker import SessionTracker

logger = logging.getLogger(__name__)


class DIContainer:
    """Dependency injection container for controller components."""

    def __init__(self, config: Optional[ForceBufferConfig] = None) -> None:
        """Initialize DI container."""
        self._config = config or get_config()
        self._instances: dict[str, Any] = {}
        self._controllers: list[BufferForcingController] = []

        logger.info("DI container initialized")

    def get_config(self) -> ForceBufferConfig:
        """Get configuration instance."""
        return self._config

    def get_session_tracker(self) -> SessionTracker:
        """Get or create session tracker instance."""
        if "session_tracker" not in self._instances:
            self._instances["session_tracker"] = SessionTracker()
        return self._instances["session_tracker"]

    def get_metrics(self) -> BufferMetrics:
        """Get or create metrics collector instance."""
        if "metrics" not in self._instances:
            self._instances["metrics"] = BufferMetrics()
        return self._instances["metrics"]

    def get_event_sink(self) -> FanOutSink:
        """Get or create the sink delivering to tracker and metrics."""
        if "event_sink" not in self._instances:
            self._instances["event_sink"] = FanOutSink(
                [self.get_session_tracker(), self.get_metrics()]
            )
        return self._instances["event_sink"]

    def create_controller(self) -> BufferForcingController:
        """Create a controller wired to the shared event sink.

        One controller per bound source; the container keeps track of it so
        cleanup() can unbind it.
        """
        controller = BufferForcingController(
            config=self._config, sink=self.get_event_sink()
        )
        self._controllers.append(controller)
        return controller

    def get_controllers(self) -> list[BufferForcingController]:
        """Return controllers created by this container."""
        return list(self._controllers)

    def cleanup(self) -> None:
        """Unbind all controllers and drop managed instances."""
        logger.info("Cleaning up DI container")

        for controller in self._controllers:
            try:
                controller.on_source_removed()
            except Exception as e:
                logger.error(f"Error unbinding controller: {e}")

        self._controllers.clear()
        self._instances.clear()
        logger.info("DI container cleaned up")


# Global container instance
_container: Optional[DIContainer] = None


def get_container() -> DIContainer:
    """Get the global DI container instance.

    Returns:
        DIContainer singleton
    """
    global _container
    if _container is None:
        _container = DIContainer()
    return _container


def cleanup_container() -> None:
    """Clean up the global DI container."""
    global _container
    if _container is not None:
        _container.cleanup()
        _container = None
