"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses and serializes them for the socket.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    HTTP/1.1 200 OK\\r\\n                          ← status line
    Content-Type: text/html; charset=utf-8\\r\\n  ← only when there's a typed body
    Content-Length: 27\\r\\n                      ← always, computed
    Date: Wed, 01 Jan 2026 12:00:00 GMT\\r\\n     ← always
    Server: originserver/1.0\\r\\n                ← always
    Connection: close\\r\\n                       ← always, no keep-alive
    \\r\\n
    <body bytes>

Every connection carries exactly one request and one response, so
"Connection: close" is forced at serialization time no matter what a
handler put in the headers.

=============================================================================
ERROR BODIES
=============================================================================

Error responses built here have an EMPTY body - the status line says it
all. The one exception is a failed script, whose stderr becomes the body;
that response is built in handlers/scripts.py.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Union, Optional, Iterable

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    A plain data container. Handlers return one of these and the server
    writes it out with to_bytes(). Use ResponseBuilder (or the helper
    functions at the bottom of this module) to construct them.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "originserver/1.0") -> bytes:
        """
        Serialize the response to bytes for sending over the socket.

        Content-Length, Date and Server are added if the handler didn't
        set them. Connection is always overwritten with "close".

        Args:
            server_name: Server identifier for the Server header.

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        response_headers = dict(self.headers)

        response_headers.setdefault("Content-Length", str(len(self.body)))
        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)
        response_headers["Connection"] = "close"

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        # Headers are latin-1 on the wire; body bytes go out untouched
        header_bytes = "\r\n".join(lines).encode("latin-1", errors="replace") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type("image/png")
            .body(png_bytes)
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """
        Set the response body.

        Strings are encoded as UTF-8; bytes are used as-is (file contents
        and script output must reach the client byte-for-byte).
        """
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def html(self, html: str) -> "ResponseBuilder":
        """Set an HTML body with the matching Content-Type."""
        return self.content_type("text/html; charset=utf-8").body(html)

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Wed, 01 Jan 2026 12:00:00 GMT

    HTTP dates are ALWAYS in GMT (UTC), never local time.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One-liners for the responses every handler needs.
#
#     return ok(content, "image/png")
#     return not_found()
#
# =============================================================================

def ok(body: Union[str, bytes] = b"", content_type: Optional[str] = None) -> HTTPResponse:
    """
    Create a 200 OK response.

    Content-Type is only set when given: script output goes out with no
    declared type at all.
    """
    builder = ResponseBuilder().status(HTTPStatus.OK).body(body)
    if content_type:
        builder.content_type(content_type)
    return builder.build()


def error(status: HTTPStatus, body: bytes = b"") -> HTTPResponse:
    """Create an error response with the given status and (usually empty) body."""
    return ResponseBuilder().status(status).body(body).build()


def bad_request() -> HTTPResponse:
    """400 - the request line could not be parsed."""
    return error(HTTPStatus.BAD_REQUEST)


def forbidden() -> HTTPResponse:
    """403 - the target exists but can't be read, or lies outside the root."""
    return error(HTTPStatus.FORBIDDEN)


def not_found() -> HTTPResponse:
    """404 - nothing to serve or run at this path."""
    return error(HTTPStatus.NOT_FOUND)


def method_not_allowed(allowed_methods: Iterable[str]) -> HTTPResponse:
    """
    Create a 405 Method Not Allowed response.

    Includes the Allow header listing valid methods (RFC 7231 requirement).
    """
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(allowed_methods))
        .build())


def internal_error(body: bytes = b"") -> HTTPResponse:
    """500 - a script failed or could not be started."""
    return error(HTTPStatus.INTERNAL_SERVER_ERROR, body)
