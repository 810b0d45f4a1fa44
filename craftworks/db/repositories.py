# craftworks/db/repositories.py
"""
SQLAlchemy-backed stores.

Same contracts as the in-memory stores. Each call runs in its own
session and commits once, so a transition's handoff update and audit
append land together or not at all. Transitions are conditional on the
stored status, so two workers racing on one handoff cannot both win.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import sessionmaker

from ..governance.models import DialRecord
from ..governance.store import DialStore
from ..handoffs.models import Handoff, HandoffState, StateChange
from ..handoffs.store import HandoffStore
from .engine import session_scope
from .tables import DialRow, HandoffRow, StateChangeRow


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; stored values are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# Columns copied one-to-one between Handoff and HandoffRow
_HANDOFF_COLUMNS = (
    "handoff_id",
    "task",
    "context",
    "priority",
    "from_agent",
    "to_agent",
    "completed_work",
    "blockers",
    "dependencies",
    "outputs",
    "sla",
    "sla_hours",
    "failure_reason",
    "repository_full_name",
    "issue_number",
    "initiating_comment_id",
    "teams",
    "tier",
    "worktree_id",
    "worktree_path",
    "session_id",
)

_HANDOFF_TIMESTAMPS = (
    "sla_deadline",
    "created_at",
    "updated_at",
    "acknowledged_at",
    "in_progress_at",
    "completed_at",
    "failed_at",
)


def _handoff_to_row(handoff: Handoff) -> HandoffRow:
    row = HandoffRow(status=handoff.status.value, meta=dict(handoff.metadata))
    for name in _HANDOFF_COLUMNS + _HANDOFF_TIMESTAMPS:
        setattr(row, name, getattr(handoff, name))
    return row


def _handoff_from_row(row: HandoffRow) -> Handoff:
    values = {name: getattr(row, name) for name in _HANDOFF_COLUMNS}
    values.update({name: _aware(getattr(row, name)) for name in _HANDOFF_TIMESTAMPS})
    values["completed_work"] = list(row.completed_work or [])
    values["blockers"] = list(row.blockers or [])
    values["dependencies"] = list(row.dependencies or [])
    values["outputs"] = dict(row.outputs or {})
    values["teams"] = list(row.teams or [])
    return Handoff(
        status=HandoffState(row.status),
        metadata=dict(row.meta or {}),
        **values,
    )


def _change_to_row(change: StateChange) -> StateChangeRow:
    return StateChangeRow(
        change_id=change.change_id,
        handoff_id=change.handoff_id,
        from_state=change.from_state.value,
        to_state=change.to_state.value,
        reason=change.reason,
        triggered_by=change.triggered_by,
        comment_id=change.comment_id,
        meta=dict(change.metadata),
        created_at=change.created_at,
    )


def _change_from_row(row: StateChangeRow) -> StateChange:
    return StateChange(
        change_id=row.change_id,
        handoff_id=row.handoff_id,
        from_state=HandoffState(row.from_state),
        to_state=HandoffState(row.to_state),
        reason=row.reason,
        triggered_by=row.triggered_by,
        comment_id=row.comment_id,
        metadata=dict(row.meta or {}),
        created_at=_aware(row.created_at),
    )


class SqlHandoffStore(HandoffStore):
    """Handoff store backed by a SQL database."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, handoff_id: str) -> Optional[Handoff]:
        with session_scope(self._session_factory) as session:
            row = session.get(HandoffRow, handoff_id)
            return _handoff_from_row(row) if row else None

    def put(self, handoff: Handoff) -> None:
        with session_scope(self._session_factory) as session:
            session.merge(_handoff_to_row(handoff))

    def delete(self, handoff_id: str) -> bool:
        with session_scope(self._session_factory) as session:
            session.execute(
                delete(StateChangeRow).where(StateChangeRow.handoff_id == handoff_id)
            )
            result = session.execute(
                delete(HandoffRow).where(HandoffRow.handoff_id == handoff_id)
            )
            return result.rowcount > 0

    def list(self) -> List[Handoff]:
        with session_scope(self._session_factory) as session:
            rows = session.execute(select(HandoffRow)).scalars().all()
            return [_handoff_from_row(row) for row in rows]

    def put_transition(self, handoff: Handoff, change: StateChange) -> bool:
        values = {
            getattr(HandoffRow, name): getattr(handoff, name)
            for name in _HANDOFF_COLUMNS + _HANDOFF_TIMESTAMPS
        }
        values[HandoffRow.status] = handoff.status.value
        values[HandoffRow.meta] = dict(handoff.metadata)

        with session_scope(self._session_factory) as session:
            # Compare-and-set on status; a concurrent writer leaves rowcount at 0
            result = session.execute(
                update(HandoffRow)
                .where(
                    HandoffRow.handoff_id == handoff.handoff_id,
                    HandoffRow.status == change.from_state.value,
                )
                .values(values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return False
            session.add(_change_to_row(change))
            return True

    def list_state_changes(self, handoff_id: str) -> List[StateChange]:
        with session_scope(self._session_factory) as session:
            rows = session.execute(
                select(StateChangeRow)
                .where(StateChangeRow.handoff_id == handoff_id)
                .order_by(StateChangeRow.id)
            ).scalars().all()
            return [_change_from_row(row) for row in rows]

    def clear(self) -> None:
        with session_scope(self._session_factory) as session:
            session.execute(delete(StateChangeRow))
            session.execute(delete(HandoffRow))


class SqlDialStore(DialStore):
    """Dial store backed by a SQL database."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @staticmethod
    def _from_row(row: DialRow) -> DialRecord:
        return DialRecord(
            repo_owner=row.repo_owner,
            repo_name=row.repo_name,
            dial_level=row.dial_level,
            updated_by=row.updated_by,
            created_at=_aware(row.created_at),
            updated_at=_aware(row.updated_at),
        )

    def get(self, owner: str, repo: str) -> Optional[DialRecord]:
        with session_scope(self._session_factory) as session:
            row = session.get(DialRow, (owner, repo))
            return self._from_row(row) if row else None

    def put(self, record: DialRecord) -> None:
        with session_scope(self._session_factory) as session:
            session.merge(DialRow(
                repo_owner=record.repo_owner,
                repo_name=record.repo_name,
                dial_level=record.dial_level,
                updated_by=record.updated_by,
                created_at=record.created_at,
                updated_at=record.updated_at,
            ))

    def delete(self, owner: str, repo: str) -> bool:
        with session_scope(self._session_factory) as session:
            result = session.execute(
                delete(DialRow).where(
                    DialRow.repo_owner == owner,
                    DialRow.repo_name == repo,
                )
            )
            return result.rowcount > 0

    def list(self) -> List[DialRecord]:
        with session_scope(self._session_factory) as session:
            rows = session.execute(select(DialRow)).scalars().all()
            return [self._from_row(row) for row in rows]

    def clear(self) -> None:
        with session_scope(self._session_factory) as session:
            session.execute(delete(DialRow))
