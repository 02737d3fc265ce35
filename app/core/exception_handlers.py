"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses → the status declared on the error class
- RequestValidationError (malformed body/form) → 400 ``invalid_request``
- Unexpected Exception → generic 500 (safety net, nothing leaked)
- All responses include request_id for tracing
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import AppError, RateLimitedError
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."


def _error_body(code: str, message: str, details=None) -> dict:
    error_content = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    if details:
        error_content["details"] = details
    return {"error": error_content}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a domain error with the status code its class declares.

    Server-side errors (5xx) keep their message out of the response body.
    """
    status_code = exc.status_code

    if status_code >= 500:
        logger.error(
            "app_error_handled",
            extra={
                "error_code": exc.code,
                "error_message": exc.message,
                "status_code": status_code,
                "request_path": request.url.path,
            },
        )
        return JSONResponse(
            status_code=status_code,
            content=_error_body("internal_server_error", GENERIC_ERROR_MESSAGE),
        )

    logger.info(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "request_path": request.url.path,
        },
    )

    headers = exc.headers if isinstance(exc, RateLimitedError) else None
    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, exc.details),
        headers=headers or None,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Map FastAPI's body/form validation failures to a plain 400."""
    fields = sorted(
        {".".join(str(part) for part in err.get("loc", ())[1:]) for err in exc.errors()}
    )
    logger.info(
        "request_validation_failed",
        extra={"fields": fields, "request_path": request.url.path},
    )
    return JSONResponse(
        status_code=400,
        content=_error_body("invalid_request", "Malformed request body"),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the error type, message and traceback server-side while returning a
    generic message; no stack trace or internal identifier reaches the client.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content=_error_body("internal_server_error", GENERIC_ERROR_MESSAGE),
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
