"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION
=============================================================================

The protocol layer: bytes in, HTTPRequest out; HTTPResponse in, bytes out.
Nothing here touches the filesystem or spawns processes - that's the job of
the handlers package.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ request.py       raw head bytes → HTTPRequest (or HTTPParseError)   │
    │ response.py      HTTPResponse / ResponseBuilder → wire bytes        │
    │ status_codes.py  the handful of status codes this server uses       │
    │ mime_types.py    file suffix → Content-Type                         │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,
    bad_request,
    forbidden,
    not_found,
    method_not_allowed,
    internal_error,
)
from .status_codes import HTTPStatus
from .mime_types import get_content_type

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "bad_request",
    "forbidden",
    "not_found",
    "method_not_allowed",
    "internal_error",

    # Status codes
    "HTTPStatus",

    # MIME types
    "get_content_type",
]
