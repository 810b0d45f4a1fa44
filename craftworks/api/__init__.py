# craftworks/api/__init__.py
"""API routes package."""

from .routes_handoffs import router as handoffs_router
from .routes_dial import router as dial_router
from .routes_webhooks import router as webhook_router
from .routes_tools import router as tools_router

__all__ = [
    "handoffs_router",
    "dial_router",
    "webhook_router",
    "tools_router",
]
