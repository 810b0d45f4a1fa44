# craftworks/api/routes_dial.py
"""
Autonomy dial API routes.

Endpoints for reading and setting per-repository dial levels and for
checking whether an action is permitted.
"""

from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..errors import CraftworksError
from ..governance import ActionRequest, AutonomyDial, PermissionChecker, resolve_engagement_level
from ..logging import get_api_logger
from .deps import get_autonomy_dial, get_permission_checker, http_error

router = APIRouter(prefix="/api/dial", tags=["dial"])
logger = get_api_logger()


class CheckActionRequest(BaseModel):
    """Request to check an action against a repository's dial."""
    action: Optional[str] = None
    owner: Optional[str] = None
    repo: Optional[str] = None
    environment: Optional[str] = None
    agent: str = "api"


class SetDialRequest(BaseModel):
    """Request to set a dial level, by number or engagement level name."""
    dial_level: Optional[Any] = None
    engagement: Optional[Union[int, str]] = None
    updated_by: Optional[str] = None


@router.get("/actions")
async def list_actions(
    dial: AutonomyDial = Depends(get_autonomy_dial),
) -> Dict[str, Any]:
    """Action catalog with tier summaries."""
    actions = dial.classifier.get_all_actions()
    return {
        "actions": actions,
        "tiers": dial.classifier.get_tier_summary(),
        "total_actions": len(actions),
    }


@router.post("/check")
async def check_action(
    request: CheckActionRequest,
    checker: PermissionChecker = Depends(get_permission_checker),
) -> Dict[str, Any]:
    """
    Check whether an action is permitted for a repository.

    Returns:
        Classification plus the permit decision and its reason
    """
    if not request.action or not request.owner or not request.repo:
        raise HTTPException(status_code=400, detail="action, owner, and repo are required")

    try:
        result = checker.check_action_permission(
            ActionRequest(
                repo_owner=request.owner,
                repo_name=request.repo,
                agent_slug=request.agent or "api",
                action_type=request.action,
                env_tier=request.environment,
            )
        )
    except CraftworksError as e:
        raise http_error(e)

    classification = checker.dial.classifier.classify_action(request.action)

    return {
        "action": result.action_type,
        "tier": result.tier.value,
        "tier_name": result.tier_details.name,
        "is_known_action": classification.is_known_action,
        "permitted": result.permitted,
        "dial_level": result.dial_level,
        "effective_level": result.effective_level,
        "required_level": result.required_level,
        "reason": result.reason,
        "environment": request.environment,
    }


@router.get("/{owner}/{repo}")
async def get_dial(
    owner: str,
    repo: str,
    dial: AutonomyDial = Depends(get_autonomy_dial),
) -> Dict[str, Any]:
    """Dial configuration for a repository (level 1 default when unset)."""
    try:
        return dial.get_dial_level(owner, repo).to_dict()
    except CraftworksError as e:
        raise http_error(e)


@router.post("/{owner}/{repo}")
async def set_dial(
    owner: str,
    repo: str,
    request: SetDialRequest,
    dial: AutonomyDial = Depends(get_autonomy_dial),
) -> Dict[str, Any]:
    """
    Set the dial level for a repository.

    Accepts either `dial_level` (1-5) or `engagement` (a level name such
    as "peer-programmer", or a legacy 1-11 number).
    """
    if not request.updated_by:
        raise HTTPException(status_code=400, detail="updated_by is required")

    try:
        if request.engagement is not None:
            level = resolve_engagement_level(request.engagement)
        elif request.dial_level is not None:
            level = request.dial_level
        else:
            raise HTTPException(
                status_code=400,
                detail="dial_level or engagement is required",
            )
        config = dial.set_dial_level(owner, repo, level, request.updated_by)
    except CraftworksError as e:
        raise http_error(e)

    logger.info("dial_updated_via_api", repo=f"{owner}/{repo}", dial_level=config.dial_level)
    return config.to_dict()
