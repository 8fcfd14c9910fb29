"""Access log for the distinct-values API.

One record per HTTP request on the ``distinct_api.access`` logger.  The
record carries the correlation id that the lookup service also stamps on its
own diagnostics, so a slow or failing lookup can be traced from the access
line to the composed SQL.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("distinct_api.access")

CORRELATION_HEADER: str = "X-Correlation-ID"

# Credentials a gateway in front of the service may forward.
_MASKED_HEADERS: frozenset[str] = frozenset({"authorization", "cookie", "x-api-key"})


def _loggable_headers(request: Request) -> dict[str, str]:
    return {name: "***" if name.lower() in _MASKED_HEADERS else value for name, value in request.headers.items()}


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def _access_record(request: Request, status_code: int, elapsed: float, correlation_id: str) -> dict[str, Any]:
    return {
        "method": request.method,
        "path": request.url.path,
        "layer": request.query_params.get("layerName"),
        "query": request.url.query or None,
        "status_code": status_code,
        "duration_ms": round(elapsed * 1000, 2),
        "client": request.client.host if request.client else None,
        "correlation_id": correlation_id,
        "headers": _loggable_headers(request),
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with a correlation id and log its outcome.

    The id comes from the caller's ``X-Correlation-ID`` header when present
    and is generated otherwise.  Routers read it from
    ``request.state.correlation_id``; the response echoes it back.  Client
    errors log at WARNING, server errors at ERROR.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        request.state.correlation_id = correlation_id

        started = time.monotonic()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            record = _access_record(request, status_code, time.monotonic() - started, correlation_id)
            logger.log(
                _level_for(status_code),
                "%s %s -> %d",
                request.method,
                request.url.path,
                status_code,
                extra={"request": record},
            )
