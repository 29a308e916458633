"""
=============================================================================
HTTP STATUS CODES (RFC 7231)
=============================================================================

The status codes this server can answer with, plus their reason phrases.

=============================================================================
STATUS CODES IN USE
=============================================================================

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  200   │ OK - file, directory listing, or script stdout            │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  400   │ Bad Request - request line could not be parsed           │
    │  403   │ Forbidden - file/directory unreadable, path escapes root │
    │  404   │ Not Found - missing file, missing or disallowed script   │
    │  405   │ Method Not Allowed - anything but GET and POST           │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  500   │ Internal Server Error - script failed or could not start │
    └────────┴───────────────────────────────────────────────────────────┘

A script's non-zero exit is a server error, not a client error: the
request was fine, the handler behind it was not.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    This enum extends IntEnum, so status codes can be used as integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx SUCCESS
    OK = 200

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self < 600

    @property
    def is_error(self) -> bool:
        """Check if this is an error status code (4xx or 5xx)."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
