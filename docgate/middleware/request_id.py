"""
DocGate — Request ID Middleware
=================================

What:  Tags each request with a short correlation ID, used as the prefix of
       access-log and error-log lines and echoed in X-Request-ID.
How:   A client-supplied X-Request-ID is reused when it is a plain token of
       at most 64 characters; anything else is replaced by 8 hex characters
       of a fresh UUID, so headers cannot inject text into log lines.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

CLIENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def choose_request_id(supplied: str) -> str:
    if supplied and CLIENT_ID_PATTERN.match(supplied):
        return supplied
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = choose_request_id(request.headers.get(REQUEST_ID_HEADER, ""))
        # Left set after the call: the catch-all 500 handler runs outside
        # this middleware and still reads it
        request_id_var.set(rid)
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
