# craftworks/handoffs/service.py
"""
Handoff lifecycle service.

Owns the handoff records and their audit trail. Every public operation is
a single synchronous step over the store: it either completes in full or
raises before anything is written.

- "overdue" is computed on read, never stored
- legacy "created"/"initiated" map to PENDING, "accepted" to ACTIVE,
  "rejected"/"abandoned" to FAILED
- abandoning is FAILED with reason "abandoned:<reason>"
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Union
from uuid import uuid4

from ..errors import InvalidTransition, NotFound
from ..logging import get_handoff_logger, get_logger
from .models import (
    Handoff,
    HandoffState,
    HandoffStats,
    Priority,
    StateChange,
    TransitionResult,
)
from .state_machine import (
    HandoffStateMachine,
    StateLike,
    TransitionReasons,
    coerce_state,
    map_legacy_state,
)
from .store import HandoffStore, InMemoryHandoffStore

logger = get_logger(__name__)


# Non-state fields update_handoff is allowed to touch
UPDATABLE_FIELDS = (
    "task",
    "context",
    "priority",
    "outputs",
    "blockers",
    "completed_work",
    "dependencies",
    "metadata",
    "worktree_id",
    "worktree_path",
    "session_id",
)

DEFAULT_RETENTION_HOURS = 168


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO-8601 string or datetime into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _priority_value(priority: Any) -> str:
    if isinstance(priority, Priority):
        return priority.value
    return priority if priority else Priority.MEDIUM.value


class HandoffService:
    """
    Manages the handoff lifecycle.

    Handles:
    - Creation with SLA deadline computation
    - Validated state transitions with an append-only audit trail
    - Read accessors, SLA checks and statistics
    - Retention sweep of old terminal handoffs
    """

    def __init__(
        self,
        store: Optional[HandoffStore] = None,
        state_machine: Optional[HandoffStateMachine] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store if store is not None else InMemoryHandoffStore()
        self.state_machine = state_machine or HandoffStateMachine()
        self._now = clock

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_handoff(
        self,
        handoff_data: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Handoff:
        """
        Create a new handoff in PENDING.

        Never fails on absent or empty fields; rejecting bad input is the
        API layer's job.

        Args:
            handoff_data: task, to/to_agent, context, priority,
                completed_work, blockers, outputs, dependencies, sla
            metadata: issue_number/pr_number, repository_full_name/repo,
                from_agent, sla_hours, sla_deadline, comment_id, teams,
                tier, additional

        Returns:
            Created handoff
        """
        data = handoff_data or {}
        meta = metadata or {}
        now = self._now()

        sla_hours = _first_present(meta, "sla_hours", "slaHours")
        sla_deadline = parse_timestamp(meta.get("sla_deadline"))
        if sla_deadline is None and sla_hours is not None:
            sla_deadline = now + timedelta(hours=float(sla_hours))

        sla = data.get("sla")
        if sla is None:
            sla = sla_hours

        handoff = Handoff(
            handoff_id=str(uuid4()),
            status=HandoffState.PENDING,
            created_at=now,
            updated_at=now,
            task=data.get("task") or "",
            context=data.get("context") or "",
            priority=_priority_value(data.get("priority")),
            from_agent=meta.get("from_agent"),
            to_agent=_first_present(data, "to", "to_agent"),
            completed_work=list(data.get("completed_work") or []),
            blockers=list(data.get("blockers") or []),
            dependencies=list(data.get("dependencies") or []),
            outputs=dict(data.get("outputs") or {}),
            sla=sla,
            sla_hours=sla_hours,
            sla_deadline=sla_deadline,
            repository_full_name=_first_present(meta, "repository_full_name", "repo") or "",
            issue_number=_first_present(meta, "issue_number", "pr_number", "prNumber"),
            initiating_comment_id=meta.get("comment_id"),
            teams=list(meta.get("teams") or []),
            tier=meta.get("tier"),
            metadata=dict(meta.get("additional") or {}),
        )

        self.store.put(handoff)

        get_handoff_logger(handoff.handoff_id).info(
            "handoff_created",
            to_agent=handoff.to_agent,
            repository=handoff.repository_full_name,
            issue_number=handoff.issue_number,
            priority=handoff.priority,
        )
        return handoff

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_handoff(self, handoff_id: str) -> Optional[Handoff]:
        """Get handoff by ID, or None."""
        if not handoff_id:
            return None
        return self.store.get(handoff_id)

    def get_handoff_by_repo_and_issue(
        self,
        repo: str,
        issue_number: int,
    ) -> Optional[Handoff]:
        """Get the most recently created handoff for a repository issue/PR."""
        matches = self.find_by_repo_and_issue(repo, issue_number)
        return matches[0] if matches else None

    def find_by_repo_and_issue(self, repo: str, issue_number: int) -> List[Handoff]:
        """All handoffs for a repository issue/PR, newest first. Both fields match exactly."""
        results = [
            h for h in self.store.list()
            if h.repository_full_name == repo and h.issue_number == issue_number
        ]
        results.sort(key=lambda h: h.created_at, reverse=True)
        return results

    def list_handoffs(
        self,
        status: Optional[StateLike] = None,
        to_agent: Optional[str] = None,
        from_agent: Optional[str] = None,
        repository_full_name: Optional[str] = None,
        state: Optional[str] = None,
        repo: Optional[str] = None,
    ) -> List[Handoff]:
        """
        List handoffs, newest first.

        `state` and `repo` are the older tracker spellings of `status`
        and `repository_full_name`. Legacy state names are translated;
        "overdue" has no stored equivalent and yields nothing.

        Raises:
            InvalidArgument: If the status name is unknown
        """
        results = self.store.list()

        wanted = status if status is not None else state
        if wanted:
            if isinstance(wanted, HandoffState):
                target = wanted
            else:
                target = map_legacy_state(wanted)
            if target is None:
                return []
            results = [h for h in results if h.status == target]

        if to_agent:
            results = [h for h in results if h.to_agent == to_agent]
        if from_agent:
            results = [h for h in results if h.from_agent == from_agent]

        repository = repository_full_name or repo
        if repository:
            results = [h for h in results if h.repository_full_name == repository]

        results.sort(key=lambda h: h.created_at, reverse=True)
        return results

    def get_active_handoffs(self) -> List[Handoff]:
        """Non-terminal handoffs, newest first."""
        return [
            h for h in self.list_handoffs()
            if not self.state_machine.is_terminal_state(h.status)
        ]

    def get_state_change_history(self, handoff_id: str) -> List[StateChange]:
        """Audit trail for a handoff in insertion order; empty if unknown."""
        if not handoff_id:
            return []
        return self.store.list_state_changes(handoff_id)

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def transition_handoff(
        self,
        handoff_id: str,
        to_state: StateLike,
        reason: Optional[str] = None,
        triggered_by: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        comment_id: Optional[str] = None,
    ) -> TransitionResult:
        """
        Transition a handoff to a new state.

        Args:
            handoff_id: Handoff ID
            to_state: Target state
            reason: Free-form reason; defaults to "unknown"
            triggered_by: Actor; defaults to "system"
            metadata: Extra data for the audit record
            comment_id: Correlating comment ID

        Returns:
            TransitionResult with the updated handoff and the state change

        Raises:
            NotFound: If the handoff does not exist
            InvalidTransition: If the state machine rejects the edge
        """
        handoff = self.get_handoff(handoff_id)
        if handoff is None:
            raise NotFound(f"Handoff not found: {handoff_id}")

        target = coerce_state(to_state)
        from_state = handoff.status
        self.state_machine.validate_transition(from_state, target)

        now = self._now()
        change = StateChange(
            change_id=str(uuid4()),
            handoff_id=handoff.handoff_id,
            from_state=from_state,
            to_state=target,
            reason=reason if reason is not None else "unknown",
            triggered_by=triggered_by or "system",
            comment_id=comment_id,
            metadata=dict(metadata or {}),
            created_at=now,
        )

        handoff.status = target
        handoff.updated_at = now

        field_name = self.state_machine.timestamp_field(target)
        if field_name and getattr(handoff, field_name) is None:
            setattr(handoff, field_name, now)

        if target == HandoffState.FAILED:
            handoff.failed_at = now
            handoff.failure_reason = reason if reason is not None else "error:unknown"

        if not self.store.put_transition(handoff, change):
            self._raise_lost_transition(handoff_id, from_state, target)

        get_handoff_logger(handoff.handoff_id).info(
            "handoff_transitioned",
            from_state=from_state.value,
            to_state=target.value,
            reason=change.reason,
            triggered_by=change.triggered_by,
        )
        return TransitionResult(handoff=handoff, state_change=change)

    def _raise_lost_transition(
        self,
        handoff_id: str,
        from_state: HandoffState,
        target: HandoffState,
    ) -> None:
        """Another writer moved the handoff between our read and our write."""
        current = self.store.get(handoff_id)
        if current is None:
            raise NotFound(f"Handoff not found: {handoff_id}")

        get_handoff_logger(handoff_id).warning(
            "handoff_transition_conflict",
            expected_state=from_state.value,
            current_state=current.status.value,
            to_state=target.value,
        )
        self.state_machine.validate_transition(current.status, target)
        raise InvalidTransition(
            f"Invalid state transition: handoff {handoff_id} moved from "
            f"{from_state.value} to {current.status.value} concurrently",
            from_state=current.status.value,
            to_state=target.value,
        )

    def accept_handoff(
        self,
        handoff_id: str,
        accepted_by: Optional[str] = None,
    ) -> Optional[Handoff]:
        """
        Accept a handoff (PENDING -> ACTIVE).

        Returns None if the handoff does not exist.
        """
        if self.get_handoff(handoff_id) is None:
            return None

        result = self.transition_handoff(
            handoff_id,
            HandoffState.ACTIVE,
            reason=TransitionReasons.AGENT_ACCEPTED,
            triggered_by=accepted_by or "system",
            metadata={"accepted_by": accepted_by},
        )
        return result.handoff

    def complete_handoff(
        self,
        handoff_id: str,
        outputs: Optional[Dict[str, Any]] = None,
    ) -> Optional[Handoff]:
        """
        Complete a handoff.

        A PENDING handoff is fast-tracked through ACTIVE first, so the
        audit trail shows pending -> active -> completed. Outputs are merged
        into the record before the final transition.

        Returns None if the handoff does not exist.

        Raises:
            InvalidTransition: If the handoff is already terminal
        """
        handoff = self.get_handoff(handoff_id)
        if handoff is None:
            return None

        # Reject terminal handoffs before touching outputs
        if self.state_machine.is_terminal_state(handoff.status):
            self.state_machine.validate_transition(handoff.status, HandoffState.COMPLETED)

        if handoff.status == HandoffState.PENDING:
            self.transition_handoff(
                handoff_id,
                HandoffState.ACTIVE,
                reason=TransitionReasons.AGENT_ACCEPTED,
                triggered_by="system",
            )

        if outputs:
            merged = dict(handoff.outputs)
            merged.update(outputs)
            self.update_handoff(handoff_id, {"outputs": merged})

        result = self.transition_handoff(
            handoff_id,
            HandoffState.COMPLETED,
            reason=TransitionReasons.WORK_COMPLETED,
            triggered_by="system",
        )
        return result.handoff

    def fail_handoff(self, handoff_id: str, reason: str = "unknown") -> Handoff:
        """
        Fail a handoff.

        Raises:
            NotFound: If the handoff does not exist
            InvalidTransition: If the handoff is already terminal
        """
        result = self.transition_handoff(
            handoff_id,
            HandoffState.FAILED,
            reason=reason,
            triggered_by="system",
        )
        return result.handoff

    def abandon_handoff(
        self,
        handoff_id: str,
        reason: str = "PR closed or cancelled",
    ) -> Handoff:
        """Fail a handoff with reason "abandoned:<reason>"."""
        return self.fail_handoff(handoff_id, f"abandoned:{reason}")

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_handoff(
        self,
        handoff_id: str,
        updates: Dict[str, Any],
    ) -> Optional[Handoff]:
        """
        Update non-state fields.

        Keys outside UPDATABLE_FIELDS (status included) are ignored.
        updated_at is always refreshed.
        """
        handoff = self.get_handoff(handoff_id)
        if handoff is None:
            return None

        for key in UPDATABLE_FIELDS:
            if key not in updates:
                continue
            value = updates[key]
            if key == "priority":
                value = _priority_value(value)
            setattr(handoff, key, value)

        handoff.updated_at = self._now()
        self.store.put(handoff)
        return handoff

    # ------------------------------------------------------------------
    # SLA and statistics
    # ------------------------------------------------------------------

    def is_overdue(self, handoff: Handoff) -> bool:
        """
        True iff the handoff is non-terminal and its SLA deadline has passed.
        """
        if self.state_machine.is_terminal_state(handoff.status):
            return False
        if handoff.sla_deadline is None:
            return False
        return handoff.sla_deadline < self._now()

    def get_handoff_stats(self) -> HandoffStats:
        """
        Aggregate statistics.

        avg_completion_time is the mean creation-to-completion time in
        milliseconds. sla_compliance_rate counts completed handoffs with no
        deadline, or completed on or before it, as compliant.
        """
        handoffs = self.store.list()

        by_status = {state.value: 0 for state in HandoffState}
        by_priority: Dict[str, int] = {}
        for handoff in handoffs:
            by_status[handoff.status.value] += 1
            by_priority[handoff.priority] = by_priority.get(handoff.priority, 0) + 1

        completed = [
            h for h in handoffs
            if h.status == HandoffState.COMPLETED and h.completed_at is not None
        ]

        avg_completion_time = None
        sla_compliance_rate = 0.0
        if completed:
            total_ms = sum(
                (h.completed_at - h.created_at).total_seconds() * 1000
                for h in completed
            )
            avg_completion_time = int(round(total_ms / len(completed)))

            within_sla = sum(
                1 for h in completed
                if h.sla_deadline is None or h.completed_at <= h.sla_deadline
            )
            sla_compliance_rate = round(within_sla / len(completed) * 100, 2)

        return HandoffStats(
            total=len(handoffs),
            by_status=by_status,
            by_priority=by_priority,
            avg_completion_time=avg_completion_time,
            sla_compliance_rate=sla_compliance_rate,
        )

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def cleanup_old_handoffs(self, max_age_hours: float = DEFAULT_RETENTION_HOURS) -> int:
        """
        Remove terminal handoffs created before now - max_age_hours.

        Non-terminal handoffs are kept regardless of age.

        Returns:
            Number of handoffs removed
        """
        cutoff = self._now() - timedelta(hours=max_age_hours)
        cleaned = 0

        for handoff in self.store.list():
            if (
                self.state_machine.is_terminal_state(handoff.status)
                and handoff.created_at < cutoff
            ):
                if self.store.delete(handoff.handoff_id):
                    cleaned += 1

        if cleaned:
            logger.info("handoffs_cleaned_up", count=cleaned, max_age_hours=max_age_hours)
        return cleaned

    def clear_all(self) -> None:
        """Remove every handoff and state change."""
        self.store.clear()


def _first_present(source: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = source.get(key)
        if value is not None:
            return value
    return None
