"""
Scholar Registry: Request ID Middleware
========================================

What:  Gives every request a short correlation ID and echoes it back in the
       X-Request-ID response header.
How:   A client-supplied X-Request-ID is reused only when it is a plain
       token (letters, digits, ".", "_", "-", at most 64 chars); anything
       else is replaced by a generated ID. The ID lives in a ContextVar so
       loggers and exception handlers can include it in their output.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Client IDs end up in log lines and response headers
_CLIENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def resolve_request_id(client_value: Optional[str]) -> str:
    """
    Pick the ID for this request.

    >>> resolve_request_id("ui-7f3a")
    'ui-7f3a'
    >>> len(resolve_request_id("bad id\\r\\nX-Injected: 1"))
    8
    """
    if client_value and _CLIENT_ID_PATTERN.match(client_value):
        return client_value
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns and propagates the request correlation ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
