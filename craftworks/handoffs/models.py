# craftworks/handoffs/models.py
"""
Handoff domain models.

4-state lifecycle:
    PENDING -> ACTIVE -> COMPLETED
       |         |
       v         v
    FAILED    FAILED

The FAILED state carries a reason prefix for diagnostics:
rejected:*, abandoned:*, error:*, timeout:*
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class HandoffState(Enum):
    """Handoff lifecycle states."""
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class Priority(Enum):
    """Priority levels for handoff triage."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Handoff:
    """A unit of delegated work passed between agents."""
    handoff_id: str
    status: HandoffState
    created_at: datetime
    updated_at: datetime
    task: str = ""
    context: str = ""
    priority: str = Priority.MEDIUM.value
    from_agent: Optional[str] = None
    to_agent: Optional[str] = None

    # Work tracking
    completed_work: List[str] = field(default_factory=list)
    blockers: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    outputs: Dict[str, Any] = field(default_factory=dict)

    # SLA
    sla: Optional[Union[int, float, str]] = None
    sla_hours: Optional[float] = None
    sla_deadline: Optional[datetime] = None

    # Per-state timestamps, each set once on first entry
    acknowledged_at: Optional[datetime] = None
    in_progress_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None

    # Grouping metadata, carried through unchanged
    repository_full_name: str = ""
    issue_number: Optional[int] = None
    initiating_comment_id: Optional[str] = None
    teams: List[str] = field(default_factory=list)
    tier: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    # Audit trail pointers
    worktree_id: Optional[str] = None
    worktree_path: Optional[str] = None
    session_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-safe primitives."""
        data: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, HandoffState):
                value = value.value
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, list):
                value = list(value)
            elif isinstance(value, dict):
                value = dict(value)
            data[f.name] = value
        return data


@dataclass(frozen=True)
class StateChange:
    """Append-only audit record of one transition."""
    change_id: str
    handoff_id: str
    from_state: HandoffState
    to_state: HandoffState
    reason: str
    triggered_by: str
    created_at: datetime
    comment_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "change_id": self.change_id,
            "handoff_id": self.handoff_id,
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "reason": self.reason,
            "triggered_by": self.triggered_by,
            "comment_id": self.comment_id,
            "metadata": dict(self.metadata),
            "created_at": _iso(self.created_at),
        }


@dataclass
class TransitionResult:
    """Result of a state transition."""
    handoff: Handoff
    state_change: StateChange


@dataclass
class HandoffStats:
    """Aggregate handoff statistics."""
    total: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    avg_completion_time: Optional[int]  # milliseconds
    sla_compliance_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "by_status": dict(self.by_status),
            "by_priority": dict(self.by_priority),
            "avg_completion_time": self.avg_completion_time,
            "sla_compliance_rate": self.sla_compliance_rate,
        }
