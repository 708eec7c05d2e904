"""HTTP middleware and request guards.

- ``request_id_middleware`` gives every request/response pair a correlation
  id (incoming ``X-Request-ID`` or a fresh UUID), stores it in contextvars
  for log correlation and reports the request duration.
- ``enforce_json_content_type`` is a route dependency that only lets
  ``application/json`` requests through.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from ratecount.core.config import settings
from ratecount.core.errors import UnsupportedMediaTypeAppError, ValidationAppError
from ratecount.core.logging import clear_request_id, set_request_id


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation and propagation.

    If the client provides the configured request id header (default
    X-Request-ID), that value is used. Otherwise, a new UUID is generated.
    The ID is propagated back in the response headers together with an
    X-Request-Duration-ms header.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response from the next handler with request_id and
            duration headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


def _media_type(content_type: str) -> str | None:
    """Return the lower-cased ``type/subtype`` of a Content-Type header.

    Returns ``None`` when the header is empty or not shaped like a media type.
    """

    media_type = content_type.split(";", 1)[0].strip().lower()
    main, sep, sub = media_type.partition("/")
    if not sep or not main or not sub or " " in media_type:
        return None
    return media_type


async def enforce_json_content_type(request: Request) -> None:
    """FastAPI dependency rejecting requests that are not application/json.

    Disabled with APP_ENFORCE_JSON_CONTENT_TYPE=false.

    Raises:
        ValidationAppError: 400 when the Content-Type header is missing or malformed.
        UnsupportedMediaTypeAppError: 415 when it names another media type.
    """

    if not settings.app.enforce_json_content_type:
        return

    content_type = request.headers.get("content-type", "")
    media_type = _media_type(content_type)
    if media_type is None:
        raise ValidationAppError(
            code="malformed_content_type",
            message="Malformed Content-Type header",
            details={"content_type": content_type},
        )
    if media_type != "application/json":
        raise UnsupportedMediaTypeAppError(
            code="unsupported_media_type",
            message="Content-Type header must be application/json",
            details={"content_type": content_type},
        )
