from __future__ import annotations

from app.api.routes.accounts import router as accounts_router
from app.api.routes.health import router as health_router
from app.api.routes.profile import router as profile_router

__all__ = ["accounts_router", "health_router", "profile_router"]
