"""Request logging middleware with timing and request ids."""

import logging
import time
import uuid
from collections.abc import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each API request and its outcome.

    Every response carries ``X-Process-Time`` and ``X-Request-ID`` headers; an
    incoming ``X-Request-ID`` is reused so calls can be traced across services.
    Health checks and API docs are not logged.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self._quiet_prefixes = ("/health", "/docs", "/openapi.json", "/redoc")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        quiet = request.url.path.startswith(self._quiet_prefixes)

        if not quiet:
            logger.info(f"[{request_id}] {request.method} {request.url.path}")

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        if not quiet:
            # Client and server errors are surfaced at WARNING
            log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
            logger.log(
                log_level,
                f"[{request_id}] {request.method} {request.url.path} - "
                f"{response.status_code} ({duration:.3f}s)",
            )

        response.headers[PROCESS_TIME_HEADER] = f"{duration:.3f}"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
