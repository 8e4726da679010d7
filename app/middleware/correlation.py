"""
Request and correlation ids for log lines and problem responses.

X-Correlation-ID comes from the booking frontend and spans a session;
X-Request-ID identifies a single call. Either is generated when absent and
both are echoed back on the response.
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")

_HEADERS = (("X-Correlation-ID", correlation_id_ctx), ("X-Request-ID", request_id_ctx))


def short_id() -> str:
    return uuid.uuid4().hex[:12]


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        ids = {}
        tokens = []
        for header, var in _HEADERS:
            ids[header] = request.headers.get(header) or short_id()
            tokens.append((var, var.set(ids[header])))

        request.state.correlation_id = ids["X-Correlation-ID"]
        request.state.request_id = ids["X-Request-ID"]

        try:
            response = await call_next(request)
        finally:
            for var, token in tokens:
                var.reset(token)

        response.headers.update(ids)
        return response


class CorrelationLogFilter(logging.Filter):
    """Adds ``correlation_id`` and ``request_id`` ("-" outside a request) to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_ctx.get() or "-"
        record.request_id = request_id_ctx.get() or "-"
        return True
