# craftworks/api/routes_handoffs.py
"""
Handoff API routes.

Endpoints for creating handoffs and driving them through their lifecycle.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..errors import CraftworksError
from ..handoffs import Handoff, HandoffService, Priority
from ..logging import get_api_logger
from .deps import get_handoff_service, http_error

router = APIRouter(prefix="/api/handoffs", tags=["handoffs"])
logger = get_api_logger()

VALID_PRIORITIES = [p.value for p in Priority]


class CreateHandoffRequest(BaseModel):
    """Request to create a handoff."""
    task: Optional[str] = None
    to_agent: Optional[str] = None
    to: Optional[str] = None
    context: Optional[str] = None
    priority: str = "medium"
    completed_work: List[str] = []
    blockers: List[str] = []
    outputs: Dict[str, Any] = {}
    dependencies: List[str] = []
    sla: Optional[Any] = None
    issue_number: Optional[int] = None
    repository: Optional[str] = None
    from_agent: Optional[str] = None
    sla_hours: Optional[float] = None


class AcceptHandoffRequest(BaseModel):
    """Request to accept a handoff."""
    agent_name: Optional[str] = None
    accepted_by: Optional[str] = None


class CompleteHandoffRequest(BaseModel):
    """Request to complete a handoff."""
    outputs: Optional[Dict[str, Any]] = None


class FailHandoffRequest(BaseModel):
    """Request to fail a handoff."""
    reason: Optional[str] = None


def _serialize(handoff: Handoff, service: HandoffService) -> Dict[str, Any]:
    data = handoff.to_dict()
    data["is_overdue"] = service.is_overdue(handoff)
    return data


@router.post("", status_code=201)
async def create_handoff(
    request: CreateHandoffRequest,
    service: HandoffService = Depends(get_handoff_service),
) -> Dict[str, Any]:
    """
    Create a new handoff in pending.

    Returns:
        The created handoff
    """
    if not request.task or not request.task.strip():
        raise HTTPException(status_code=400, detail="task is required")

    if request.priority not in VALID_PRIORITIES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid priority: {request.priority}. Must be one of {VALID_PRIORITIES}",
        )

    handoff = service.create_handoff(
        {
            "task": request.task,
            "to_agent": request.to_agent or request.to,
            "context": request.context,
            "priority": request.priority,
            "completed_work": request.completed_work,
            "blockers": request.blockers,
            "outputs": request.outputs,
            "dependencies": request.dependencies,
            "sla": request.sla,
        },
        {
            "issue_number": request.issue_number,
            "repository_full_name": request.repository,
            "from_agent": request.from_agent,
            "sla_hours": request.sla_hours,
        },
    )

    return _serialize(handoff, service)


@router.get("")
async def list_handoffs(
    status: Optional[str] = None,
    to_agent: Optional[str] = None,
    from_agent: Optional[str] = None,
    repo: Optional[str] = None,
    repository_full_name: Optional[str] = None,
    service: HandoffService = Depends(get_handoff_service),
) -> Dict[str, Any]:
    """
    List handoffs, newest first.

    Args:
        status: Lifecycle state (legacy tracker names accepted)
        to_agent: Receiving agent
        from_agent: Delegating agent
        repo / repository_full_name: Repository filter
    """
    repository = repository_full_name or repo
    try:
        handoffs = service.list_handoffs(
            status=status,
            to_agent=to_agent,
            from_agent=from_agent,
            repository_full_name=repository,
        )
    except CraftworksError as e:
        raise http_error(e)

    return {
        "handoffs": [_serialize(h, service) for h in handoffs],
        "count": len(handoffs),
        "filters": {
            "status": status,
            "to_agent": to_agent,
            "from_agent": from_agent,
            "repository_full_name": repository,
        },
    }


@router.get("/stats")
async def handoff_stats(
    service: HandoffService = Depends(get_handoff_service),
) -> Dict[str, Any]:
    """Counts by status and priority, average completion time and SLA compliance."""
    return service.get_handoff_stats().to_dict()


@router.get("/{handoff_id}")
async def get_handoff(
    handoff_id: str,
    service: HandoffService = Depends(get_handoff_service),
) -> Dict[str, Any]:
    """Get a handoff with its transition history."""
    handoff = service.get_handoff(handoff_id)
    if handoff is None:
        raise HTTPException(status_code=404, detail=f"Handoff not found: {handoff_id}")

    data = _serialize(handoff, service)
    data["history"] = [c.to_dict() for c in service.get_state_change_history(handoff_id)]
    return data


@router.post("/{handoff_id}/accept")
async def accept_handoff(
    handoff_id: str,
    request: Optional[AcceptHandoffRequest] = None,
    service: HandoffService = Depends(get_handoff_service),
) -> Dict[str, Any]:
    """Accept a pending handoff."""
    request = request or AcceptHandoffRequest()
    try:
        handoff = service.accept_handoff(
            handoff_id,
            request.agent_name or request.accepted_by,
        )
    except CraftworksError as e:
        raise http_error(e)

    if handoff is None:
        raise HTTPException(status_code=404, detail=f"Handoff not found: {handoff_id}")
    return _serialize(handoff, service)


@router.post("/{handoff_id}/complete")
async def complete_handoff(
    handoff_id: str,
    request: Optional[CompleteHandoffRequest] = None,
    service: HandoffService = Depends(get_handoff_service),
) -> Dict[str, Any]:
    """Complete a handoff, fast-tracking it through active when still pending."""
    request = request or CompleteHandoffRequest()
    try:
        handoff = service.complete_handoff(handoff_id, request.outputs)
    except CraftworksError as e:
        raise http_error(e)

    if handoff is None:
        raise HTTPException(status_code=404, detail=f"Handoff not found: {handoff_id}")
    return _serialize(handoff, service)


@router.post("/{handoff_id}/fail")
async def fail_handoff(
    handoff_id: str,
    request: Optional[FailHandoffRequest] = None,
    service: HandoffService = Depends(get_handoff_service),
) -> Dict[str, Any]:
    """Fail a handoff."""
    request = request or FailHandoffRequest()
    try:
        handoff = service.fail_handoff(handoff_id, request.reason or "unknown")
    except CraftworksError as e:
        raise http_error(e)

    logger.info("handoff_failed_via_api", handoff_id=handoff_id, reason=handoff.failure_reason)
    return _serialize(handoff, service)
