# craftworks/tools.py
"""
Tool-call surface for agent orchestration clients.

Six tools: create_handoff, accept_handoff, complete_handoff,
query_workflow_state, attach_context, get_context. Each is a thin adapter
over HandoffService. The structured context subsystem is not part of this
service, so the two context tools report it as unavailable.

Failures never escape call_tool; they come back as an error result the
way tool transports expect.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .errors import CraftworksError, InvalidArgument, NotFound
from .handoffs.models import Priority
from .handoffs.service import HandoffService
from .logging import get_logger

logger = get_logger(__name__)

TOOL_CLIENT_AGENT = "mcp-client"

_PRIORITIES = [p.value for p in Priority]
_STATES = ["pending", "active", "completed", "failed"]


TOOL_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "name": "create_handoff",
        "description": "Create a new agent handoff to delegate work to another agent",
        "input_schema": {
            "type": "object",
            "properties": {
                "to_agent": {
                    "type": "string",
                    "description": "Agent to hand off to (e.g. @code-reviewer, @security-specialist)",
                },
                "task": {"type": "string", "description": "Description of the task to be completed"},
                "context": {
                    "type": "string",
                    "description": "Background information for the receiving agent",
                },
                "priority": {
                    "type": "string",
                    "enum": _PRIORITIES,
                    "description": "Priority level of the handoff",
                    "default": "medium",
                },
                "repository": {"type": "string", "description": "Repository full name (owner/repo)"},
                "issue_number": {"type": "number", "description": "Issue number for this handoff"},
                "sla_hours": {"type": "number", "description": "SLA deadline in hours (optional)"},
            },
            "required": ["to_agent", "task", "repository", "issue_number"],
        },
    },
    {
        "name": "accept_handoff",
        "description": "Accept a handoff as the receiving agent and start working on it",
        "input_schema": {
            "type": "object",
            "properties": {
                "handoff_id": {"type": "string", "description": "ID of the handoff to accept"},
                "agent_name": {"type": "string", "description": "Agent accepting the handoff"},
                "notes": {"type": "string", "description": "Optional acknowledgment message"},
            },
            "required": ["handoff_id", "agent_name"],
        },
    },
    {
        "name": "complete_handoff",
        "description": "Mark a handoff as completed with results",
        "input_schema": {
            "type": "object",
            "properties": {
                "handoff_id": {"type": "string", "description": "ID of the handoff to complete"},
                "agent_name": {"type": "string", "description": "Agent completing the handoff"},
                "outputs": {
                    "type": "object",
                    "description": "Results from completing the task",
                    "properties": {
                        "summary": {"type": "string"},
                        "deliverables": {"type": "array", "items": {"type": "string"}},
                        "notes": {"type": "string"},
                    },
                },
            },
            "required": ["handoff_id", "agent_name"],
        },
    },
    {
        "name": "query_workflow_state",
        "description": "Query the current state of handoffs and workflows",
        "input_schema": {
            "type": "object",
            "properties": {
                "handoff_id": {"type": "string", "description": "Specific handoff ID (optional)"},
                "status": {"type": "string", "enum": _STATES, "description": "Filter by status"},
                "to_agent": {"type": "string", "description": "Filter by receiving agent"},
                "repository": {"type": "string", "description": "Filter by repository full name"},
            },
        },
    },
    {
        "name": "attach_context",
        "description": "Attach structured typed data to a handoff (security findings, reviews, test results)",
        "input_schema": {
            "type": "object",
            "properties": {
                "handoff_id": {"type": "string"},
                "schema_name": {"type": "string"},
                "data": {"type": "object"},
                "created_by": {"type": "string"},
            },
            "required": ["handoff_id", "schema_name", "data", "created_by"],
        },
    },
    {
        "name": "get_context",
        "description": "Retrieve structured context data attached to handoffs",
        "input_schema": {
            "type": "object",
            "properties": {
                "handoff_id": {"type": "string"},
                "schema_name": {"type": "string"},
                "context_id": {"type": "string"},
            },
        },
    },
]


@dataclass
class ToolResult:
    """Tool call outcome as text content blocks."""
    content: List[Dict[str, str]] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def ok(cls, payload: Dict[str, Any]) -> "ToolResult":
        return cls(content=[{"type": "text", "text": json.dumps(payload, indent=2, default=str)}])

    @classmethod
    def error(cls, message: str) -> "ToolResult":
        return cls(content=[{"type": "text", "text": f"Error: {message}"}], is_error=True)

    def to_dict(self) -> Dict[str, Any]:
        return {"content": list(self.content), "is_error": self.is_error}


def _require(args: Dict[str, Any], *names: str) -> None:
    missing = [n for n in names if args.get(n) in (None, "")]
    if missing:
        raise InvalidArgument(f"Missing required arguments: {', '.join(missing)}")


class ToolDispatcher:
    """Routes tool calls to HandoffService."""

    def __init__(self, service: HandoffService):
        self.service = service
        self._handlers: Dict[str, Callable[[Dict[str, Any]], ToolResult]] = {
            "create_handoff": self._create_handoff,
            "accept_handoff": self._accept_handoff,
            "complete_handoff": self._complete_handoff,
            "query_workflow_state": self._query_workflow_state,
            "attach_context": self._context_unavailable,
            "get_context": self._context_unavailable,
        }

    def list_tools(self) -> List[Dict[str, Any]]:
        return [dict(tool) for tool in TOOL_DEFINITIONS]

    def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        """
        Invoke a tool by name.

        Returns:
            ToolResult; is_error is set for unknown tools and failed calls
        """
        handler = self._handlers.get(name)
        if handler is None:
            return ToolResult.error(f"Unknown tool: {name}")

        try:
            return handler(arguments or {})
        except CraftworksError as e:
            logger.warning("tool_call_failed", tool=name, error=str(e))
            return ToolResult.error(str(e))
        except Exception as e:
            logger.exception("tool_call_crashed", tool=name)
            return ToolResult.error(str(e))

    def _create_handoff(self, args: Dict[str, Any]) -> ToolResult:
        _require(args, "to_agent", "task", "repository", "issue_number")

        priority = args.get("priority") or Priority.MEDIUM.value
        if priority not in _PRIORITIES:
            raise InvalidArgument(f"Invalid priority: {priority}. Must be one of {_PRIORITIES}")

        handoff = self.service.create_handoff(
            {
                "to_agent": args["to_agent"],
                "task": args["task"],
                "context": args.get("context") or "",
                "priority": priority,
                "sla": args.get("sla_hours"),
            },
            {
                "repository_full_name": args["repository"],
                "issue_number": args["issue_number"],
                "from_agent": TOOL_CLIENT_AGENT,
                "sla_hours": args.get("sla_hours"),
            },
        )

        return ToolResult.ok({
            "success": True,
            "handoff_id": handoff.handoff_id,
            "status": handoff.status.value,
            "to_agent": handoff.to_agent,
            "task": handoff.task,
            "priority": handoff.priority,
            "sla_deadline": handoff.sla_deadline.isoformat() if handoff.sla_deadline else None,
            "created_at": handoff.created_at.isoformat(),
        })

    def _accept_handoff(self, args: Dict[str, Any]) -> ToolResult:
        _require(args, "handoff_id", "agent_name")
        handoff_id = args["handoff_id"]

        updated = self.service.accept_handoff(handoff_id, args["agent_name"])
        if updated is None:
            raise NotFound(f"Handoff {handoff_id} not found")

        return ToolResult.ok({
            "success": True,
            "handoff_id": updated.handoff_id,
            "status": updated.status.value,
            "agent": args["agent_name"],
            "task": updated.task,
            "accepted_at": updated.updated_at.isoformat(),
            "notes": args.get("notes"),
        })

    def _complete_handoff(self, args: Dict[str, Any]) -> ToolResult:
        _require(args, "handoff_id", "agent_name")
        handoff_id = args["handoff_id"]

        outputs = dict(args.get("outputs") or {})
        if outputs:
            outputs.setdefault("completed_by", args["agent_name"])

        updated = self.service.complete_handoff(handoff_id, outputs or None)
        if updated is None:
            raise NotFound(f"Handoff {handoff_id} not found")

        return ToolResult.ok({
            "success": True,
            "handoff_id": updated.handoff_id,
            "status": updated.status.value,
            "agent": args["agent_name"],
            "completed_at": updated.completed_at.isoformat() if updated.completed_at else None,
            "outputs": updated.outputs,
        })

    def _query_workflow_state(self, args: Dict[str, Any]) -> ToolResult:
        handoff_id = args.get("handoff_id")
        if handoff_id:
            handoff = self.service.get_handoff(handoff_id)
            if handoff is None:
                raise NotFound(f"Handoff {handoff_id} not found")
            data = handoff.to_dict()
            data["is_overdue"] = self.service.is_overdue(handoff)
            return ToolResult.ok({
                "handoff": data,
                "history": [c.to_dict() for c in self.service.get_state_change_history(handoff_id)],
            })

        handoffs = self.service.list_handoffs(
            status=args.get("status"),
            to_agent=args.get("to_agent"),
            repository_full_name=args.get("repository"),
        )
        stats = self.service.get_handoff_stats()

        return ToolResult.ok({
            "count": len(handoffs),
            "handoffs": [
                {
                    "handoff_id": h.handoff_id,
                    "status": h.status.value,
                    "to_agent": h.to_agent,
                    "task": h.task,
                    "priority": h.priority,
                    "is_overdue": self.service.is_overdue(h),
                    "created_at": h.created_at.isoformat(),
                }
                for h in handoffs
            ],
            "stats": stats.to_dict(),
        })

    def _context_unavailable(self, args: Dict[str, Any]) -> ToolResult:
        return ToolResult.error("Structured context subsystem is not available in this service")
