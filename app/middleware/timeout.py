"""
Request Timeout Middleware

The review service never applies its own timeout to document store calls;
this middleware bounds the whole request instead. A request that runs past
the limit is abandoned and answered with 504 in the standard error envelope.

Health checks are excluded so a slow store shows up as DEGRADED rather than
as a timeout.
"""

import asyncio
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class TimeoutMiddleware(BaseHTTPMiddleware):
    """Enforce a maximum request duration, returning 504 on timeout."""

    def __init__(self, app, timeout_seconds: float = 30.0, excluded_paths: tuple[str, ...] = ()):
        super().__init__(app)
        self.timeout_seconds = timeout_seconds
        self.excluded_paths = excluded_paths

    async def dispatch(self, request: Request, call_next):
        if any(request.url.path.startswith(path) for path in self.excluded_paths):
            return await call_next(request)

        try:
            async with asyncio.timeout(self.timeout_seconds):
                return await call_next(request)
        except TimeoutError:
            logger.warning(
                f"Request timed out after {self.timeout_seconds}s: "
                f"{request.method} {request.url.path}"
            )
            return JSONResponse(
                status_code=504,
                content={"success": False, "error": "Request timed out"},
            )
