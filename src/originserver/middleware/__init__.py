"""
=============================================================================
MIDDLEWARE
=============================================================================

Cross-cutting request processing that wraps the router. The server
installs LoggingMiddleware for access logs around the router.

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
]
