"""Custom FastAPI middleware."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.context import bind_request_id

logger = logging.getLogger("app.access")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, echo it back and log the outcome."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id
        started = perf_counter()

        with bind_request_id(request_id):
            try:
                response = await call_next(request)
            except Exception:
                logger.exception("%s %s failed", request.method, request.url.path)
                raise
            latency_ms = (perf_counter() - started) * 1000
            logger.info(
                "%s %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                latency_ms,
            )

        response.headers["X-Request-Id"] = request_id
        return response
