"""Per-source controller state."""

from dataclasses import dataclass
from enum import Enum


class ControllerPhase(str, Enum):
    """Controller state machine phase."""

    IDLE = "idle"
    BUFFERING = "buffering"


@dataclass
class ControllerState:
    """Mutable session state owned by one controller for one bound source.

    Attributes:
        source_id: Identifier of the bound source (used in events and logs)
        phase: Current state machine phase
        original_position: Position captured at start, restored at stop
        original_rate: Playback rate captured at start, restored at stop
        was_paused: Paused flag captured at start
        attempts: Seek attempts made in the current session
        consecutive_faults: Source faults without an intervening clean attempt
        is_short_form: Short-form flag for the bound asset
        binding_generation: Bumped on every bind/unbind
        session_generation: Bumped on every start/stop
        exhausted: Set when a session ends on budget or persistent faults
    """

    source_id: str
    phase: ControllerPhase = ControllerPhase.IDLE
    original_position: float = 0.0
    original_rate: float = 1.0
    was_paused: bool = True
    attempts: int = 0
    consecutive_faults: int = 0
    is_short_form: bool = False
    binding_generation: int = 0
    session_generation: int = 0
    exhausted: bool = False

    @property
    def is_buffering(self) -> bool:
        """True while a forcing session is active."""
        return self.phase is ControllerPhase.BUFFERING
