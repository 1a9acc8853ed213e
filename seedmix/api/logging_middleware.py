"""
Request logging for the SeedMix API.

Each request gets an id (taken from `X-Request-ID` when the caller sends one)
that is bound into the structlog context for the lifetime of the request and
echoed back in the response headers.
"""

import time
import uuid
from typing import Callable, Iterable, Optional

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..utils.logging_config import log_api_request, log_error, set_request_context

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
DEFAULT_UNLOGGED_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, status and duration of every API call.

    Headers are never logged: they carry the caller's provider access token.
    """

    def __init__(self, app, exclude_paths: Optional[Iterable[str]] = None):
        """
        Args:
            app: ASGI application
            exclude_paths: Paths served without logging or a request id
        """
        super().__init__(app)
        self.unlogged_paths = frozenset(exclude_paths or DEFAULT_UNLOGGED_PATHS)
        self.logger = logger.bind(component="LoggingMiddleware")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in self.unlogged_paths:
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        set_request_context(request_id=request_id)
        self.logger.debug("Request received", method=request.method, path=path, client=self._client_address(request))

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            log_error(e, {"method": request.method, "path": path}, request_id=request_id)
            self.logger.error(
                "Request failed with unhandled error",
                method=request.method,
                path=path,
                error=str(e),
                duration_seconds=round(time.perf_counter() - started, 4)
            )
            raise

        log_api_request(request.method, path, response.status_code, time.perf_counter() - started)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @staticmethod
    def _client_address(request: Request) -> str:
        # Behind a proxy the first X-Forwarded-For hop is the real client
        forwarded = request.headers.get("X-Forwarded-For", "")
        if forwarded:
            return forwarded.split(",", 1)[0].strip()
        return request.client.host if request.client else "unknown"
