"""
Access Logging Middleware

Logs every API request with its duration and tags the response with a
request id for correlation with error reports.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from agro_auth.core.config import settings
from agro_auth.logging import get_logger

logger = get_logger("access")

SKIP_PATHS = ["/", "/health", "/docs", "/openapi.json"]


class AccessLoggingMiddleware(BaseHTTPMiddleware):
    """
    Captures method, path, status, client IP and duration per request.
    Requests slower than `slow_threshold` seconds are also logged as slow.
    """

    def __init__(self, app: ASGIApp, enabled: bool = True, slow_threshold: float = None):
        super().__init__(app)
        self.enabled = enabled
        self.slow_threshold = slow_threshold if slow_threshold is not None else settings.SLOW_REQUEST_THRESHOLD

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        if not self.enabled or request.url.path in SKIP_PATHS:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        logger.request(
            "API request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration=round(duration, 4),
            ip=self._get_client_ip(request),
            request_id=request_id,
        )
        if duration > self.slow_threshold:
            logger.slow(
                "Slow request",
                duration=round(duration, 4),
                threshold=self.slow_threshold,
                path=request.url.path,
                request_id=request_id,
            )

        response.headers["X-Request-ID"] = request_id
        return response

    def _get_client_ip(self, request: Request) -> str:
        """X-Forwarded-For first (proxied requests), then the direct peer."""
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        if request.client:
            return request.client.host
        return "unknown"
