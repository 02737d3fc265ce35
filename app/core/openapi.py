"""OpenAPI metadata customization.

Adds tag descriptions and documents the shared error envelope and the
rate-limit response on every operation, keeping documentation concerns out
of the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {"name": "Accounts", "description": "Registration and credential checks."},
    {"name": "Profile", "description": "Profile picture upload and retrieval."},
    {"name": "Health", "description": "Greeting and liveness checks."},
]

ERROR_SCHEMA = {
    "type": "object",
    "properties": {
        "error": {
            "type": "object",
            "properties": {
                "code": {"type": "string"},
                "message": {"type": "string"},
                "request_id": {"type": "string", "nullable": True},
                "details": {"type": "object"},
            },
            "required": ["code", "message"],
        }
    },
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation with tags and error responses."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        components.setdefault("schemas", {}).setdefault("ErrorResponse", ERROR_SCHEMA)
        error_ref = {"$ref": "#/components/schemas/ErrorResponse"}

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for methods in schema.get("paths", {}).values():
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                responses = method_obj.setdefault("responses", {})
                responses.setdefault(
                    "429",
                    {
                        "description": "Too many requests from this client",
                        "content": {"application/json": {"schema": error_ref}},
                    },
                )
                responses.setdefault(
                    "500",
                    {
                        "description": "Unexpected server error",
                        "content": {"application/json": {"schema": error_ref}},
                    },
                )

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
