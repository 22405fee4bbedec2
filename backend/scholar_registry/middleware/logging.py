"""
Scholar Registry: Request Logging Middleware
=============================================

What:  One access-log line per request.
When:  Runs inside RequestIDMiddleware, so the request ID is already set.

Line format:
    PATCH /record/{record_id} 200 12.4ms in=48213B [a1b2c3d4] from 10.0.0.7

    The route template is logged instead of the concrete path, so record
    ids do not fragment log aggregation; the concrete path is kept in the
    record's `path` extra. `in=` is the declared request size, which for
    POST/PATCH is dominated by the image part.

Log level follows the status class:
    5xx → ERROR, 413 and other 4xx → WARNING, everything else → INFO

Request bodies are never logged (forms carry personal data and image bytes).
"""

import logging
import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from scholar_registry.middleware.request_id import request_id_var

logger = logging.getLogger("scholar_registry.access")

# Probed every few seconds by orchestrators
QUIET_PATHS = {"/health"}


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def route_template(request: Request) -> str:
    """The matched route's path template, or the raw path when nothing matched."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def declared_size(request: Request) -> Optional[int]:
    value = request.headers.get("content-length")
    return int(value) if value and value.isdigit() else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        template = route_template(request)
        size = declared_size(request)
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        logger.log(
            level_for_status(response.status_code),
            "%s %s %d %.1fms in=%sB [%s] from %s",
            request.method,
            template,
            response.status_code,
            duration_ms,
            size if size is not None else "-",
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "route": template,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "request_bytes": size,
                "client_ip": client_ip,
            },
        )
        return response
