"""FastAPI status service for forcebuffer.

Receives status events reported by controllers running elsewhere (for
example inside a browser host), tracks their sessions, and exposes status and
metrics over a small REST API.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Literal, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from forcebuffer import __version__
from forcebuffer.di_container import cleanup_container, get_container
from forcebuffer.events import BufferEvent, EventStatus
from forcebuffer.logging_config import setup_logging

# Initialize logging
setup_logging()
logger = logging.getLogger(__name__)

# Global startup timestamp
_startup_time = 0.0


class EventPayload(BaseModel):
    """Status event as reported over HTTP."""

    status: Literal["started", "progress", "quality_change", "complete"]
    source_id: str = Field(min_length=1)
    quality: Optional[str] = None
    is_short: bool = False
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    speed: Optional[float] = Field(default=None, ge=0.0)
    attempts: Optional[int] = Field(default=None, ge=0)
    from_quality: Optional[str] = Field(default=None, alias="from")
    to_quality: Optional[str] = Field(default=None, alias="to")

    def to_event(self) -> BufferEvent:
        return BufferEvent(
            status=EventStatus(self.status),
            source_id=self.source_id,
            quality=self.quality,
            is_short=self.is_short,
            progress=self.progress,
            speed=self.speed,
            attempts=self.attempts,
            from_quality=self.from_quality,
            to_quality=self.to_quality,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager (startup/shutdown).

    Args:
        app: FastAPI application instance

    Yields:
        Control during application lifetime
    """
    global _startup_time

    logger.info("Starting forcebuffer status service...")
    _startup_time = time.time()

    container = get_container()
    config = container.get_config()
    logger.info(f"Environment: {config.env}")
    logger.info(f"Host: {config.host}:{config.port}")

    yield

    logger.info("Shutting down forcebuffer status service...")
    cleanup_container()
    logger.info("forcebuffer status service stopped")


app = FastAPI(
    title="forcebuffer API",
    version=__version__,
    description="Status and metrics for media buffer-forcing sessions",
    lifespan=lifespan,
)


@app.post("/api/events", status_code=202)
async def post_event(payload: EventPayload) -> dict[str, str]:
    """Accept a status event from a controller.

    Returns:
        Acknowledgement
    """
    get_container().get_event_sink().handle_event(payload.to_event())
    return {"status": "accepted"}


@app.get("/api/sessions")
async def get_sessions() -> dict[str, Any]:
    """Get active buffering sessions."""
    return get_container().get_session_tracker().get_snapshot()


@app.delete("/api/sessions/{source_id}")
async def delete_session(source_id: str) -> dict[str, str]:
    """Forget a session whose host went away (e.g. a closed tab)."""
    if not get_container().get_session_tracker().remove_source(source_id):
        raise HTTPException(status_code=404, detail=f"Unknown source: {source_id}")
    return {"status": "removed", "source_id": source_id}


@app.get("/api/status")
async def get_status() -> dict[str, Any]:
    """Get service status, including in-process controllers."""
    container = get_container()
    return {
        "uptime_sec": time.time() - _startup_time,
        "active_sessions": len(container.get_session_tracker().sessions),
        "controllers": [c.get_status() for c in container.get_controllers()],
        "timestamp": time.time(),
    }


@app.get("/api/metrics")
async def get_metrics() -> dict[str, Any]:
    """Get aggregated buffering metrics."""
    return get_container().get_metrics().get_snapshot()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "forcebuffer"}


def run() -> None:
    """Run the status service with uvicorn."""
    import uvicorn

    config = get_container().get_config()
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    run()
