"""forcebuffer - force a streaming media player to buffer a whole asset.

This package contains the adaptive buffer-forcing controller, its building
blocks (media state reader, throughput estimator, step planner, strategy
adapter, quality-change monitor), and host-side session tracking.
"""

__version__ = "1.0.0"

from forcebuffer.config import ForceBufferConfig, get_config
from forcebuffer.controller import BufferForcingController
from forcebuffer.controller_state import ControllerPhase, ControllerState
from forcebuffer.events import BufferEvent, EventEmitter, EventStatus, FanOutSink
from forcebuffer.media_state import MediaStateReader
from forcebuffer.metrics import BufferMetrics
from forcebuffer.quality_monitor import QualityChange, QualityChangeMonitor
from forcebuffer.session_tracker import SessionTracker
from forcebuffer.simulated_source import SimulatedMediaSource
from forcebuffer.step_planner import StepPlanner
from forcebuffer.strategy import Strategy, StrategyAdapter
from forcebuffer.throughput import ThroughputEstimator

__all__ = [
    # Controller
    "BufferForcingController",
    "ControllerPhase",
    "ControllerState",
    # Control loop components
    "MediaStateReader",
    "ThroughputEstimator",
    "StepPlanner",
    "Strategy",
    "StrategyAdapter",
    "QualityChange",
    "QualityChangeMonitor",
    # Events
    "BufferEvent",
    "EventStatus",
    "EventEmitter",
    "FanOutSink",
    "SessionTracker",
    "BufferMetrics",
    # Configuration
    "ForceBufferConfig",
    "get_config",
    # Simulation
    "SimulatedMediaSource",
]
