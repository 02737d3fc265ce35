"""HTTP middleware for request ID propagation and correlation.

Every request/response pair carries a correlation id: the incoming
``X-Request-ID`` (header name configurable) is reused, otherwise a UUID4 is
generated. The id lives in a context variable for the duration of the
request so that log lines emitted by services and stores can be correlated.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from app.core.exception_handlers import general_exception_handler
from app.core.logging import clear_request_id, set_request_id


async def request_id_middleware(request: Request, call_next) -> Response:
    """Attach a request id to the context and echo it on the response.

    Also adds ``X-Request-Duration-ms`` with the total handling time. Unexpected
    exceptions are rendered here, while the id is still set, so the opaque 500
    body and its headers keep the correlation id.
    """

    header_name = request.app.state.settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        response = await general_exception_handler(request, exc)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
