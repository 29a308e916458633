"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One log line per request on the "originserver.access" logger:

    127.0.0.1:52114 - [18/Oct/2026:10:02:11 +0000] "POST scripts/echo" 200 6 12.41ms
    ──────┬──────      ─────────┬──────────────     ──┬─ ─────┬──── ─┬─ ┬  ──┬───
      peer addr           timestamp              method   path   status│ duration
                                                                    body bytes

Or, with log_format="json", the same fields as one JSON object per line
for log aggregators.

Requests that never reach the router (400s from the parser) are logged
through the same RequestLog, by the server calling emit() directly.

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass, asdict
from typing import Tuple

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


# Namespaced so operators can route access logs separately:
#   logging.getLogger("originserver.access").addHandler(file_handler)
logger = logging.getLogger("originserver.access")


@dataclass
class RequestLog:
    """
    Structured log entry for a request.

    Fields:
        method:         Method token as sent
        path:           Request path (relative, decoded)
        client_ip:      Peer address
        client_port:    Peer port
        status_code:    Response status
        content_length: Response body size in bytes
        duration_ms:    Handling time
        timestamp:      When the request finished
    """

    method: str
    path: str
    client_ip: str
    client_port: int
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    @classmethod
    def create(
        cls,
        method: str,
        path: str,
        client_address: Tuple[str, int],
        response: HTTPResponse,
        duration_ms: float = 0.0,
    ) -> "RequestLog":
        return cls(
            method=method,
            path=path,
            client_ip=client_address[0],
            client_port=client_address[1],
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Format as a single Apache-style line."""
        return (
            f'{self.client_ip}:{self.client_port} - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Should be the FIRST middleware so its timing covers everything.

        pipeline.add(LoggingMiddleware())                   # text
        pipeline.add(LoggingMiddleware(log_format="json"))  # JSON lines
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        """
        Args:
            log_format: "text" (Apache-style) or "json".
            log_level: Level used for access lines.
        """
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown log format: {log_format!r}")
        self.log_format = log_format
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        start_time = time.time()

        try:
            response = next(request)
        except Exception as e:
            # Still log failed requests, then let the server answer 500
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        self.emit(RequestLog.create(
            request.method, request.path, request.client_address, response, duration_ms
        ))
        return response

    def emit(self, entry: RequestLog) -> None:
        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())
