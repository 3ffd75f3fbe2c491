"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

Emits one access-log line per routed request:

    127.0.0.1 - - [2026-10-19T12:00:00+00:00] "GET /echo/abc" 200 3 0.12ms

Requests that never reach the router (closed, unreadable or malformed
connections) are logged by the server itself, not here.

The middleware only observes. It adds no headers (the wire format is
fixed), and a handler exception passes through unchanged after being
noted at DEBUG level.
"""

import time
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


# Separate logger name, so access lines can be routed on their own:
#   logging.getLogger("minihttp.access").addHandler(file_handler)
logger = logging.getLogger("minihttp.access")


@dataclass(frozen=True)
class RequestLog:
    """One access-log entry."""

    client_ip: str
    method: str
    path: str
    status: int
    size: int               # body bytes sent
    duration_ms: float
    timestamp: str

    @classmethod
    def from_exchange(
        cls,
        request: HTTPRequest,
        response: HTTPResponse,
        duration_ms: float,
    ) -> "RequestLog":
        return cls(
            client_ip=request.client_address[0],
            method=request.method,
            path=request.path,
            status=int(response.kind),
            size=len(response.body_bytes),
            duration_ms=duration_ms,
            timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )

    def to_text(self) -> str:
        return (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status} '
            f'{self.size} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Access logger. The server installs it first, so its timing covers every
    middleware added later with HTTPServer.use().

        LoggingMiddleware()                      # INFO, every path
        LoggingMiddleware(skip_paths=["/"])      # quiet for the index page
    """

    def __init__(
        self,
        log_level: int = logging.INFO,
        skip_paths: Optional[list[str]] = None,
    ):
        self.log_level = log_level
        self.skip_paths = frozenset(skip_paths or ())

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        started = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            # process_connection logs the failure itself
            logger.debug(f'"{request.method} {request.path}" aborted: {type(e).__name__}')
            raise

        if request.path not in self.skip_paths:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.log(self.log_level, RequestLog.from_exchange(request, response, elapsed_ms).to_text())

        return response
