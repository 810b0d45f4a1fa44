# craftworks/db/tables.py
"""
ORM tables backing the SQL stores.
"""

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)

from .engine import Base


class HandoffRow(Base):
    __tablename__ = "handoff"

    handoff_id = Column(String(36), primary_key=True)
    status = Column(String(16), nullable=False, index=True)
    task = Column(Text, nullable=False, default="")
    context = Column(Text, nullable=False, default="")
    priority = Column(String(16), nullable=False, default="medium")
    from_agent = Column(String(255))
    to_agent = Column(String(255), index=True)

    completed_work = Column(JSON, nullable=False, default=list)
    blockers = Column(JSON, nullable=False, default=list)
    dependencies = Column(JSON, nullable=False, default=list)
    outputs = Column(JSON, nullable=False, default=dict)

    sla = Column(JSON)  # number or string, as supplied
    sla_hours = Column(Float)
    sla_deadline = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    acknowledged_at = Column(DateTime(timezone=True))
    in_progress_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    failed_at = Column(DateTime(timezone=True))
    failure_reason = Column(Text)

    repository_full_name = Column(String(255), nullable=False, default="", index=True)
    issue_number = Column(Integer)
    initiating_comment_id = Column(String(255))
    teams = Column(JSON, nullable=False, default=list)
    tier = Column(String(64))
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=False, default=dict)

    worktree_id = Column(String(255))
    worktree_path = Column(Text)
    session_id = Column(String(255))


class StateChangeRow(Base):
    __tablename__ = "handoff_state_change"

    # Autoincrement id gives insertion order
    id = Column(Integer, primary_key=True, autoincrement=True)
    change_id = Column(String(36), nullable=False, unique=True)
    handoff_id = Column(
        String(36),
        ForeignKey("handoff.handoff_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_state = Column(String(16), nullable=False)
    to_state = Column(String(16), nullable=False)
    reason = Column(Text, nullable=False)
    triggered_by = Column(String(255), nullable=False)
    comment_id = Column(String(255))
    meta = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False)


class DialRow(Base):
    __tablename__ = "autonomy_dial"

    repo_owner = Column(String(255), primary_key=True)
    repo_name = Column(String(255), primary_key=True)
    dial_level = Column(Integer, nullable=False)
    updated_by = Column(String(255))
    created_at = Column(DateTime(timezone=True))
    updated_at = Column(DateTime(timezone=True))
