# Correlation-ID middleware: lay X-Correlation-ID tu header hoac tao moi, bind vao structlog va tra lai o response header.
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

HEADER_CORRELATION_ID = "X-Correlation-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Moi log trong request (ke ca background task cua request) mang correlation_id."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(HEADER_CORRELATION_ID, "").strip() or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            path=request.url.path,
        )
        response = await call_next(request)
        response.headers[HEADER_CORRELATION_ID] = correlation_id
        return response
