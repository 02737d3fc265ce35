"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from app.core.errors import (
    AccountNotFoundError,
    AppError,
    DatabaseClosedError,
    DuplicateEmailError,
    InternalAppError,
    InvalidCredentialsError,
    PayloadTooLargeError,
    RateLimitedError,
    ValidationAppError,
)
from app.core.exception_handlers import GENERIC_ERROR_MESSAGE, setup_exception_handlers


class _Body(BaseModel):
    name: str


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers, raise_server_exceptions=False)


def _route_raising(app: FastAPI, path: str, exc: Exception) -> None:
    @app.get(path)
    async def _endpoint():
        raise exc


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    @pytest.mark.parametrize(
        "exc, status",
        [
            (ValidationAppError(code="v", message="bad"), 400),
            (InvalidCredentialsError(code="invalid_credentials", message="Invalid credentials"), 400),
            (AccountNotFoundError(code="account_not_found", message="User not found"), 404),
            (DuplicateEmailError(code="email_already_registered", message="Email already registered"), 409),
            (PayloadTooLargeError(code="file_too_large", message="too big"), 413),
        ],
    )
    def test_client_errors_keep_code_and_message(
        self, client: TestClient, app_with_handlers: FastAPI, exc: AppError, status: int
    ):
        _route_raising(app_with_handlers, "/boom", exc)

        response = client.get("/boom")

        assert response.status_code == status
        data = response.json()
        assert data["error"]["code"] == exc.code
        assert data["error"]["message"] == exc.message
        assert "request_id" in data["error"]

    def test_details_are_included_when_provided(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        _route_raising(
            app_with_handlers,
            "/missing",
            ValidationAppError(
                code="missing_required_fields",
                message="Please fill all required fields",
                details={"missing_fields": ["email"]},
            ),
        )

        data = client.get("/missing").json()

        assert data["error"]["details"]["missing_fields"] == ["email"]

    @pytest.mark.parametrize(
        "exc",
        [
            InternalAppError(code="disk_full", message="No space left on /var/uploads"),
            DatabaseClosedError(code="database_closed", message="Pool at db-host-17 closed"),
        ],
    )
    def test_server_errors_are_opaque(
        self, client: TestClient, app_with_handlers: FastAPI, exc: AppError
    ):
        _route_raising(app_with_handlers, "/internal", exc)

        response = client.get("/internal")

        assert response.status_code == 500
        data = response.json()
        assert data["error"]["code"] == "internal_server_error"
        assert data["error"]["message"] == GENERIC_ERROR_MESSAGE
        assert exc.message not in response.text

    def test_rate_limited_error_carries_headers(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        _route_raising(
            app_with_handlers,
            "/limited",
            RateLimitedError(
                code="rate_limited",
                message="Too many requests",
                details={"retry_after": 42},
                headers={"Retry-After": "42"},
            ),
        )

        response = client.get("/limited")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"
        assert response.json()["error"]["details"]["retry_after"] == 42


class TestRequestValidationHandler:
    def test_malformed_body_is_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.post("/items")
        async def _create(body: _Body):
            return body

        response = client.post("/items", json={"unexpected": 1})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "invalid_request"
        assert error["message"] == "Malformed request body"
        assert "details" not in error


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_becomes_generic_500(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        _route_raising(app_with_handlers, "/crash", RuntimeError("connection to db-host-17 refused"))

        response = client.get("/crash")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "internal_server_error"
        assert "db-host-17" not in response.text

    def test_general_exception_handler_never_leaks_stack_trace(self):
        """Verify stack traces are never included in response."""
        from app.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_text = bytes(response.body).decode()
        data = json.loads(response_text)
        assert response.status_code == 500
        assert data["error"]["message"] == GENERIC_ERROR_MESSAGE
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text


class TestErrorHandlerIntegration:
    """Integration tests for exception handler setup."""

    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
