"""Custom middleware for request handling."""

import time
import uuid
from typing import Awaitable, Callable, Dict, List

import structlog
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from mystep.config import get_settings

logger = structlog.get_logger()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and bind it to the log context."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        response.headers["X-Request-ID"] = request_id
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window request limit per client address."""

    def __init__(self, app):
        super().__init__(app)
        self.hits: Dict[str, List[float]] = {}
        self.settings = get_settings()

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path == "/api/health":
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.settings.rate_limit_window

        recent = [ts for ts in self.hits.get(client, []) if ts > window_start]
        if len(recent) >= self.settings.rate_limit_requests:
            self.hits[client] = recent
            logger.warning("rate_limited", client=client)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "error": {
                        "code": "RATE_LIMITED",
                        "message": "Too many requests, please try again later",
                        "details": {"retry_after": self.settings.rate_limit_window},
                    }
                },
            )

        recent.append(now)
        self.hits[client] = recent
        return await call_next(request)
