from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (resources, middleware, handlers, routers) so
tests can build isolated instances with their own settings, database and
rate limiter.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from app.adapters.db.database import Database
from app.adapters.storage.factory import create_asset_store
from app.api.routes import accounts_router, health_router, profile_router
from app.core.config import Settings, settings as default_settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import build_rate_limiter, enforce_rate_limit
from app.services.account_service import AccountService
from app.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


def _build_lifespan(app_settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(app_settings.database)
        assets = create_asset_store(app_settings.storage, database)
        credentials = CredentialStore(
            database, rounds=app_settings.app.password_hash_rounds
        )

        await database.ping()
        if app_settings.database.create_schema:
            await database.create_schema()

        app.state.database = database
        app.state.asset_store = assets
        app.state.account_service = AccountService(credentials, assets)
        logger.info(
            "app.started",
            extra={"storage_backend": assets.backend_name, "app_env": app_settings.app_env},
        )
        try:
            yield
        finally:
            await database.dispose()
            logger.info("app.stopped")

    return lifespan


def create_app(app_settings: Settings | None = None, *, configure_logs: bool = True) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to use; defaults to the environment-loaded ones.
        configure_logs: Install the root logging handler (tests may opt out).

    Returns:
        Configured FastAPI app. Its database pool is opened on startup and
        drained on shutdown by the lifespan handler.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    if configure_logs:
        configure_logging(cfg.log)

    app = FastAPI(
        title="Account Service API",
        description=(
            "Registers accounts, checks credentials and stores one profile "
            "picture per account. Every endpoint is rate limited per client IP."
        ),
        version="0.1.0",
        lifespan=_build_lifespan(cfg),
        dependencies=[Depends(enforce_rate_limit)],
    )
    app.state.settings = cfg
    app.state.rate_limiter = build_rate_limiter(cfg.app)

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(accounts_router)
    app.include_router(profile_router)

    apply_openapi_customizations(app)

    return app
