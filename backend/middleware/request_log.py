"""
Request logging middleware.
Logs method, path, status and duration of every request at the HTTP boundary.
"""
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from backend.utils.logger import get_logger

logger = get_logger(__name__)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log each request once it has been handled.

    The Authorization header is never logged.
    """

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            f"[RequestLog] {request.method} {request.url.path} | "
            f"Status: {response.status_code} | {elapsed_ms:.1f}ms"
        )
        return response
