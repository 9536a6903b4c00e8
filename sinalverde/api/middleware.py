"""API-key authentication and request-logging middleware for FastAPI."""

from __future__ import annotations

import hmac
import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

logger = logging.getLogger("sinalverde.api")

API_KEY_HEADER = "x-api-key"
API_KEY_QUERY_PARAM = "apiKey"
REQUEST_ID_HEADER = "X-Request-ID"

_REQUEST_ID_RE = re.compile(r"[A-Za-z0-9._-]{1,64}")

# ---------------------------------------------------------------------------
# Request logging
# ---------------------------------------------------------------------------


def _request_id(request: Request) -> str:
    """Reuse a caller-supplied ``X-Request-ID`` when it is a safe token."""
    incoming = request.headers.get(REQUEST_ID_HEADER)
    if incoming and _REQUEST_ID_RE.fullmatch(incoming):
        return incoming
    return uuid.uuid4().hex


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID, log it, and echo the ID back to the caller.

    Callers (a dashboard, a cron job pushing batches) may pass their own
    ``X-Request-ID`` so their logs and ours line up.
    """

    async def dispatch(self, request: Request, call_next):  # noqa: ANN001
        request_id = _request_id(request)
        request.state.request_id = request_id

        start = time.perf_counter()
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "%s %s -> %s in %.1fms [%s]",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

_EXEMPT_PATHS = ("/health",)


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Shared-secret authentication via ``X-API-Key`` header or ``?apiKey=``."""

    def __init__(self, app: ASGIApp, api_key: str) -> None:
        super().__init__(app)
        self._api_key = api_key.encode()

    async def dispatch(self, request: Request, call_next):  # noqa: ANN001
        if request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        key = request.headers.get(API_KEY_HEADER) or request.query_params.get(API_KEY_QUERY_PARAM)
        if not key or not hmac.compare_digest(key.encode(), self._api_key):
            return JSONResponse({"error": "Invalid API key"}, status_code=401)

        return await call_next(request)
