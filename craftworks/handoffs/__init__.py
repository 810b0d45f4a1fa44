# Handoffs module - delegated work lifecycle
from .models import Handoff, HandoffState, HandoffStats, Priority, StateChange, TransitionResult
from .state_machine import (
    HandoffStateMachine,
    TransitionReasons,
    is_terminal_state,
    is_valid_transition,
    map_legacy_state,
    next_states,
    validate_transition,
)
from .store import HandoffStore, InMemoryHandoffStore
from .service import HandoffService

__all__ = [
    "Handoff",
    "HandoffState",
    "HandoffStats",
    "Priority",
    "StateChange",
    "TransitionResult",
    "HandoffStateMachine",
    "TransitionReasons",
    "is_terminal_state",
    "is_valid_transition",
    "map_legacy_state",
    "next_states",
    "validate_transition",
    "HandoffStore",
    "InMemoryHandoffStore",
    "HandoffService",
]
