"""
DocGate — Access Log Middleware
=================================

What:  One access-log line per HTTP request, in the "short" layout the
       gateway has always written, prefixed with the request ID.
How:   Times the rest of the stack and logs on the ``docgate.access`` logger.

Log line:
    [1f3a9c2b] 127.0.0.1 - GET /collections/products/2/price/desc HTTP/1.1 200 312 - 3.412 ms

The response length is "-" when the response is streamed without a
Content-Length header. Request bodies are never logged; documents may carry
personal data (order phone numbers, for instance).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from docgate.middleware.request_id import request_id_var

logger = logging.getLogger("docgate.access")

ACCESS_FORMAT = "[%s] %s - %s %s HTTP/%s %d %s - %.3f ms"


def format_url(request: Request) -> str:
    """Path plus query string, as the client sent it."""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """5xx lines go out at ERROR, 4xx at WARNING, the rest at INFO."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        status = response.status_code
        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        logger.log(
            level,
            ACCESS_FORMAT,
            request_id_var.get(""),
            request.client.host if request.client else "-",
            request.method,
            format_url(request),
            request.scope.get("http_version", "1.1"),
            status,
            response.headers.get("content-length", "-"),
            elapsed_ms,
        )
        return response
