"""
Notepin — Request ID Middleware
================================

What:  Tags every request with a short correlation ID, echoed back in the
       X-Request-ID header and included in access log lines and error
       bodies.
How:   A client-supplied X-Request-ID is reused only when it is a short
       token of safe characters; anything else (missing, too long, or with
       characters that could forge log lines) is replaced by 8 hex chars.
       The ID lives in a ContextVar that is reset when the request ends.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

HEADER = "X-Request-ID"

# Letters, digits, dot, underscore and dash; at most 64 characters
_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def current_request_id() -> str:
    """ID of the request being handled, or "" outside a request."""
    return request_id_var.get()


def resolve_request_id(supplied: Optional[str]) -> str:
    if supplied and _ACCEPTED_ID.match(supplied):
        return supplied
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Outermost middleware; everything after it can call current_request_id()."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(HEADER))
        request.state.request_id = rid

        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[HEADER] = rid
        return response


def request_id_for(request: Request) -> str:
    """
    ID stored on the request itself.

    Exception handlers use this: the catch-all 500 handler runs outside the
    middleware stack, after the ContextVar has been reset.
    """
    return getattr(request.state, "request_id", "") or request_id_var.get()
