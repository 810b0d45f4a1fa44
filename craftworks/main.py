# craftworks/main.py
"""
Craftworks Control Plane - Main Application

Tracks work delegated between agents as handoffs with an audited
lifecycle, and gates agent actions behind a per-repository autonomy dial.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .settings import settings
from .logging import configure_logging, get_logger
from .db.engine import check_connection
from .api import dial_router, handoffs_router, tools_router, webhook_router
from .api.deps import ServiceRegistry, build_services

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add basic security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Server"] = "Craftworks Control Plane"
        return response


def create_app(services: Optional[ServiceRegistry] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        services: Pre-built services; built from settings at startup if omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # Startup
        configure_logging(
            level=settings.log_level,
            json_output=settings.log_json,
            log_file=settings.log_file,
        )

        if getattr(app.state, "services", None) is None:
            app.state.services = build_services(settings)
        registry: ServiceRegistry = app.state.services

        if registry.settings.cleanup_on_startup:
            removed = registry.handoffs.cleanup_old_handoffs(
                registry.settings.handoff_retention_hours
            )
            logger.info("startup_cleanup_complete", removed=removed)

        logger.info(
            "control_plane_started",
            storage_backend=registry.settings.storage_backend,
        )

        yield

        # Shutdown
        logger.info("control_plane_stopped")

    app = FastAPI(
        title="Craftworks Control Plane",
        description="""
        Agent handoff lifecycle and autonomy governance.

        Key features:
        - Handoff state machine (pending -> active -> completed | failed)
          with an append-only transition history
        - SLA deadlines, overdue checks and lifecycle statistics
        - Autonomy dial per repository with environment caps
        - Five-tier action classification and permission checks
        - GitHub pull request webhook ingress
        - Tool-call surface for agent orchestration clients
        """,
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services

    # In production, set ALLOWED_ORIGINS to specific domains
    allowed_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    app.include_router(handoffs_router)
    app.include_router(dial_router)
    app.include_router(webhook_router)
    app.include_router(tools_router)

    @app.get("/health")
    async def health_check():
        """Basic health check."""
        return {"status": "ok", "service": "craftworks-control-plane"}

    @app.get("/health/db")
    async def db_health_check():
        """Database health check (sql backend only)."""
        registry: Optional[ServiceRegistry] = app.state.services
        if registry is None or registry.session_factory is None:
            return {"status": "ok", "database": "not configured", "storage_backend": "memory"}
        if check_connection(registry.session_factory):
            return {"status": "ok", "database": "connected", "storage_backend": "sql"}
        raise HTTPException(status_code=503, detail="Database connection failed")

    return app


app = create_app()


def run():
    """Run the server (entry point for CLI)."""
    import uvicorn
    uvicorn.run(
        "craftworks.main:app",
        host=settings.api_host,
        port=settings.api_port,
    )


if __name__ == "__main__":
    run()
