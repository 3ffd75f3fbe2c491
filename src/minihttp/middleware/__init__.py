"""
=============================================================================
MIDDLEWARE MODULE
=============================================================================

Cross-cutting behavior wrapped around the router.

    base.py      - Middleware ABC and MiddlewarePipeline
    logging.py   - Access logging (always installed by HTTPServer)
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    # Base classes
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",

    # Built-in middleware
    "LoggingMiddleware",
    "RequestLog",
]
