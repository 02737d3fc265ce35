from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.api.dependencies import get_settings
from app.core.config import Settings

router = APIRouter(tags=["Health"])


@router.get("/", response_class=PlainTextResponse)
def greeting(settings: Settings = Depends(get_settings)) -> str:
    """Static greeting confirming the server is up."""

    return settings.app.greeting


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Returns a simple status response to verify the API is operational.
    Used by load balancers and monitoring systems to determine service health.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}
