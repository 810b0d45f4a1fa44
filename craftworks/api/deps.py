# craftworks/api/deps.py
"""
Service wiring and FastAPI dependencies.

The app holds one ServiceRegistry on `app.state.services`. Routes pull
services out of it through the dependency getters below, so tests can
install a registry with fresh stores.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from fastapi import HTTPException, Request
from sqlalchemy.orm import sessionmaker

from ..db.engine import build_engine, init_db, make_session_factory
from ..db.repositories import SqlDialStore, SqlHandoffStore
from ..errors import InvalidArgument, InvalidTransition, NotFound, SchemaRejected
from ..governance import ActionRequest, AutonomyDial, PermissionChecker, PermissionResult
from ..handoffs import HandoffService
from ..logging import get_logger
from ..settings import Settings, settings as default_settings
from ..tools import ToolDispatcher

logger = get_logger(__name__)


@dataclass
class ServiceRegistry:
    """Long-lived services shared by all requests."""
    handoffs: HandoffService
    dial: AutonomyDial
    permissions: PermissionChecker
    tools: ToolDispatcher
    settings: Settings
    session_factory: Optional[sessionmaker] = None


def build_services(
    config: Optional[Settings] = None,
    session_factory: Optional[sessionmaker] = None,
) -> ServiceRegistry:
    """
    Build services for the configured storage backend.

    STORAGE_BACKEND=memory keeps everything in process; sql uses
    DATABASE_URL (or the given session factory) for both stores.
    """
    config = config or default_settings
    backend = (config.storage_backend or "memory").lower()

    if backend == "memory":
        handoffs = HandoffService()
        dial = AutonomyDial()
    elif backend == "sql":
        if session_factory is None:
            engine = build_engine(config.database_url)
            init_db(engine)
            session_factory = make_session_factory(engine)
        handoffs = HandoffService(store=SqlHandoffStore(session_factory))
        dial = AutonomyDial(store=SqlDialStore(session_factory))
    else:
        raise InvalidArgument(
            f"Unknown storage backend: {config.storage_backend}. Must be memory or sql"
        )

    logger.info("services_built", storage_backend=backend)

    return ServiceRegistry(
        handoffs=handoffs,
        dial=dial,
        permissions=PermissionChecker(dial),
        tools=ToolDispatcher(handoffs),
        settings=config,
        session_factory=session_factory,
    )


def get_services(request: Request) -> ServiceRegistry:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Services not initialized")
    return services


def get_handoff_service(request: Request) -> HandoffService:
    return get_services(request).handoffs


def get_autonomy_dial(request: Request) -> AutonomyDial:
    return get_services(request).dial


def get_permission_checker(request: Request) -> PermissionChecker:
    return get_services(request).permissions


def get_tool_dispatcher(request: Request) -> ToolDispatcher:
    return get_services(request).tools


def get_settings(request: Request) -> Settings:
    return get_services(request).settings


def http_error(error: Exception) -> HTTPException:
    """Map a control plane error to an HTTPException."""
    if isinstance(error, InvalidArgument):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, NotFound):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InvalidTransition):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, SchemaRejected):
        return HTTPException(status_code=422, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def require_permission(action_type: str) -> Callable[..., PermissionResult]:
    """
    Dependency factory gating a route on the autonomy dial.

    Reads owner, repo, agent and environment from the path or query
    string. 400 when owner/repo are missing, 403 with the reason when the
    dial blocks the action.

    Usage:
        @router.post("/{owner}/{repo}/merge")
        async def merge(permission = Depends(require_permission("merge_pr"))):
            ...
    """

    def dependency(request: Request) -> PermissionResult:
        params: Dict[str, Any] = {**request.query_params, **request.path_params}
        owner = params.get("owner")
        repo = params.get("repo")
        if not owner or not repo:
            raise HTTPException(
                status_code=400,
                detail="Repository owner and name required for permission check",
            )

        checker = get_permission_checker(request)
        try:
            result = checker.check_action_permission(
                ActionRequest(
                    repo_owner=owner,
                    repo_name=repo,
                    agent_slug=params.get("agent") or "api",
                    action_type=action_type,
                    env_tier=params.get("environment"),
                )
            )
        except InvalidArgument as e:
            raise http_error(e)

        if not result.permitted:
            raise HTTPException(status_code=403, detail=result.reason)
        return result

    return dependency
