# craftworks/handoffs/state_machine.py
"""
Handoff state machine.

States:
PENDING -> ACTIVE | FAILED
ACTIVE -> COMPLETED | FAILED
COMPLETED, FAILED are terminal
"""

from typing import Dict, Optional, Tuple, Union

from ..errors import InvalidArgument, InvalidTransition
from .models import HandoffState


# Valid state transitions, in display order
TRANSITIONS: Dict[HandoffState, Tuple[HandoffState, ...]] = {
    HandoffState.PENDING: (HandoffState.ACTIVE, HandoffState.FAILED),
    HandoffState.ACTIVE: (HandoffState.COMPLETED, HandoffState.FAILED),
    HandoffState.COMPLETED: (),  # Terminal
    HandoffState.FAILED: (),  # Terminal
}

TERMINAL_STATES = frozenset({HandoffState.COMPLETED, HandoffState.FAILED})

TIMESTAMP_FIELDS: Dict[HandoffState, str] = {
    HandoffState.PENDING: "acknowledged_at",
    HandoffState.ACTIVE: "in_progress_at",
    HandoffState.COMPLETED: "completed_at",
}

DEFAULT_REASONS: Dict[HandoffState, str] = {
    HandoffState.PENDING: "created",
    HandoffState.ACTIVE: "agent_accepted",
    HandoffState.COMPLETED: "work_completed",
    HandoffState.FAILED: "error:unknown",
}

# Older tracker vocabulary. "overdue" is computed, never stored.
LEGACY_STATES: Dict[str, Optional[HandoffState]] = {
    "created": HandoffState.PENDING,
    "initiated": HandoffState.PENDING,
    "accepted": HandoffState.ACTIVE,
    "rejected": HandoffState.FAILED,
    "abandoned": HandoffState.FAILED,
    "overdue": None,
}


class TransitionReasons:
    """Common transition reasons. Reasons are free-form; these are conventions."""
    AGENT_ACCEPTED = "agent_accepted"
    WORK_COMPLETED = "work_completed"
    SYSTEM_ERROR = "error:system"
    SLA_BREACH = "timeout:sla_breach"
    MANUAL_OVERRIDE = "manual_override"
    ABANDONED = "abandoned:unknown"


StateLike = Union[HandoffState, str]


def coerce_state(state: StateLike) -> HandoffState:
    """Accept a HandoffState or its string value."""
    if isinstance(state, HandoffState):
        return state
    try:
        return HandoffState(state)
    except ValueError:
        raise InvalidArgument(
            f"Unknown handoff state: {state!r}. "
            f"Valid states: {[s.value for s in HandoffState]}"
        )


def map_legacy_state(name: str) -> Optional[HandoffState]:
    """
    Translate a state name, including legacy aliases, to a stored state.

    Returns None for "overdue", which has no stored equivalent.
    """
    normalized = name.strip().lower()
    if normalized in LEGACY_STATES:
        return LEGACY_STATES[normalized]
    return coerce_state(normalized)


def next_states(state: StateLike) -> Tuple[HandoffState, ...]:
    """Get valid next states from the given state."""
    return TRANSITIONS[coerce_state(state)]


def is_valid_transition(from_state: StateLike, to_state: StateLike) -> bool:
    """Check if a state transition is in the allowed table."""
    return coerce_state(to_state) in next_states(from_state)


def is_terminal_state(state: StateLike) -> bool:
    """Check if a state admits no further transitions."""
    return coerce_state(state) in TERMINAL_STATES


def validate_transition(from_state: StateLike, to_state: StateLike) -> None:
    """
    Validate a transition.

    Raises:
        InvalidTransition: If from_state is terminal or the edge is not allowed
    """
    source = coerce_state(from_state)
    target = coerce_state(to_state)

    if source in TERMINAL_STATES:
        raise InvalidTransition(
            f"Invalid state transition: {source.value} is a terminal state, "
            f"cannot transition to {target.value}",
            from_state=source.value,
            to_state=target.value,
            terminal=True,
        )

    if target not in TRANSITIONS[source]:
        allowed = ", ".join(s.value for s in TRANSITIONS[source])
        raise InvalidTransition(
            f"Invalid state transition: {source.value} -> {target.value}. "
            f"Allowed transitions from {source.value}: [{allowed}]",
            from_state=source.value,
            to_state=target.value,
        )


def timestamp_field(state: StateLike) -> Optional[str]:
    """
    Timestamp field populated when a handoff enters `state`.

    FAILED has none; callers set failed_at unconditionally.
    """
    return TIMESTAMP_FIELDS.get(coerce_state(state))


def default_reason(state: StateLike) -> str:
    """Canonical reason used when a caller omits one."""
    return DEFAULT_REASONS[coerce_state(state)]


class HandoffStateMachine:
    """
    Transition-validation logic for the handoff lifecycle.

    Stateless; the methods delegate to the module-level functions so the
    service can hold one instance and tests can substitute it.
    """

    def is_valid_transition(self, from_state: StateLike, to_state: StateLike) -> bool:
        return is_valid_transition(from_state, to_state)

    def is_terminal_state(self, state: StateLike) -> bool:
        return is_terminal_state(state)

    def next_states(self, state: StateLike) -> Tuple[HandoffState, ...]:
        return next_states(state)

    def validate_transition(self, from_state: StateLike, to_state: StateLike) -> None:
        validate_transition(from_state, to_state)

    def timestamp_field(self, state: StateLike) -> Optional[str]:
        return timestamp_field(state)

    def default_reason(self, state: StateLike) -> str:
        return default_reason(state)
