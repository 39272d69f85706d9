"""API routes package."""

from .routes_approvals import router as approvals_router
from .routes_templates import router as templates_router
from .routes_webhooks import router as webhooks_router

__all__ = [
    "approvals_router",
    "templates_router",
    "webhooks_router",
]
