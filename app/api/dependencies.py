"""FastAPI dependencies resolving per-application services from ``app.state``."""

from __future__ import annotations

from fastapi import Request

from app.core.config import Settings
from app.services.account_service import AccountService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service
