"""Internal interfaces for forcebuffer components.

Abstract Base Classes (ABCs) defining contracts for media sources, event
sinks, and the control-loop building blocks.
"""

from forcebuffer.interfaces.control import (
    IStepPlanner,
    IStrategyAdapter,
    IThroughputEstimator,
)
from forcebuffer.interfaces.events import IEventSink
from forcebuffer.interfaces.media import IMediaSource, QualityListener

__all__ = [
    # Host-side collaborators
    "IMediaSource",
    "QualityListener",
    "IEventSink",
    # Control loop interfaces
    "IThroughputEstimator",
    "IStepPlanner",
    "IStrategyAdapter",
]
