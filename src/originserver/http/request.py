"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Parses the raw head of an HTTP/1.x request into an immutable HTTPRequest.

=============================================================================
WHAT WE PARSE (AND WHAT WE DON'T)
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  POST /scripts/echo?x=1 HTTP/1.1\r\n    ← request line  (parsed)   │
    │  Host: localhost:8080\r\n               ← headers       (parsed)   │
    │  X-Token: abc\r\n                                                   │
    │  \r\n                                   ← terminator               │
    │  name=value                             ← body          (ignored)  │
    └─────────────────────────────────────────────────────────────────────┘

Scripts talk to us only through environment variables, so the body is
never read. Only the request line and header block matter.

=============================================================================
PATH HANDLING
=============================================================================

    request-target      "/docs/My%20Notes.txt?raw=1"
         │
         ├── split at "?"     path "/docs/My%20Notes.txt", query "raw=1"
         ├── percent-decode   "/docs/My Notes.txt"
         └── strip ONE "/"    "docs/My Notes.txt"   → HTTPRequest.path

Decoding happens here, BEFORE the filesystem sees the path, so an encoded
traversal like "%2e%2e/" becomes a plain "../" and is caught by the same
containment check as any other "..". See handlers/paths.py.

=============================================================================
HEADERS
=============================================================================

Headers are kept as an ordered tuple of (name, value) pairs, exactly as
the client sent them: original case, duplicates allowed. Scripts receive
one environment variable per header, so order matters - the last
duplicate wins.

=============================================================================
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import unquote


Headers = Tuple[Tuple[str, str], ...]


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the HTTP status code that should be returned to the client.
    Every parse failure in this server is a 400 Bad Request.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code  # HTTP status to return


@dataclass(frozen=True)
class HTTPRequest:
    """
    Represents a parsed HTTP request.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:         Method token exactly as sent ("GET", "POST", ...)
                        Not validated here - the router answers 405.

        target:         Raw request-target, undecoded ("/a%20b?x=1")

        path:           Decoded path, query removed, leading "/" stripped
                        "/docs/a b.txt" → "docs/a b.txt",  "/" → ""

        query:          Raw query string without "?" ("" if none)

        version:        "HTTP/1.1", "HTTP/1.0", or "" for a bare
                        two-token request line

        headers:        ((name, value), ...) in arrival order

        client_address: (ip, port) of the peer, for logging

    =========================================================================
    """

    method: str
    path: str
    target: str = ""
    query: str = ""
    version: str = "HTTP/1.1"
    headers: Headers = ()
    client_address: Tuple[str, int] = ("", 0)

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a header value (case-insensitive lookup).

        If the header was sent more than once, the LAST value wins,
        matching how the script environment is built.
        """
        wanted = name.lower()
        value = default
        for header_name, header_value in self.headers:
            if header_name.lower() == wanted:
                value = header_value
        return value

    @property
    def user_agent(self) -> str:
        return self.get_header("User-Agent", "") or ""


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    ==========================================================================
    PARSER STEPS
    ==========================================================================

        1. Cut at the header terminator (\\r\\n\\r\\n or \\n\\n).
           No terminator? Parse what we have - the connection may have
           hit its read limit or the client half-closed early.
        2. Parse the request line:  METHOD SP TARGET [SP VERSION]
           Anything else → HTTPParseError (400)
        3. Parse headers, skipping lines without a colon.
        4. Split and decode the path.

    ==========================================================================
    """

    # Method is an RFC 7230 token; unknown methods still parse (→ 405 later)
    METHOD_PATTERN = re.compile(r"^[!#$%&'*+.^_`|~0-9A-Za-z-]+$")
    VERSION_PATTERN = re.compile(r"^HTTP/\d\.\d$")

    def parse(
        self,
        data: bytes,
        client_address: Tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Raw request bytes (head, possibly followed by body bytes).
            client_address: Client's (ip, port) tuple for logging.

        Returns:
            Parsed HTTPRequest object.

        Raises:
            HTTPParseError: If the request line is missing or malformed.
        """
        head = self._split_head(data)
        text = head.decode("utf-8", errors="replace")

        lines = [line.rstrip("\r") for line in text.split("\n")]
        if not lines or not lines[0].strip():
            raise HTTPParseError("Empty request")

        method, target, version = self._parse_request_line(lines[0])
        path, query = self._parse_target(target)
        headers = self._parse_headers(lines[1:])

        return HTTPRequest(
            method=method,
            path=path,
            target=target,
            query=query,
            version=version,
            headers=headers,
            client_address=client_address,
        )

    @staticmethod
    def _split_head(data: bytes) -> bytes:
        # Whichever terminator comes first ends the head
        ends = [i for i in (data.find(b"\r\n\r\n"), data.find(b"\n\n")) if i != -1]
        return data[:min(ends)] if ends else data

    def _parse_request_line(self, line: str) -> Tuple[str, str, str]:
        """
        Parse the HTTP request line.

            "GET /index.html HTTP/1.1"   → ("GET", "/index.html", "HTTP/1.1")
            "GET /index.html"            → ("GET", "/index.html", "")
            "GET"                        → HTTPParseError
        """
        parts = line.split()
        if len(parts) not in (2, 3):
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, target = parts[0], parts[1]
        version = parts[2] if len(parts) == 3 else ""

        if not self.METHOD_PATTERN.match(method):
            raise HTTPParseError(f"Invalid method token: {method!r}")
        if version and not self.VERSION_PATTERN.match(version):
            raise HTTPParseError(f"Invalid HTTP version: {version!r}")

        return method, target, version

    @staticmethod
    def _parse_target(target: str) -> Tuple[str, str]:
        """
        Split the request-target into a decoded relative path and a query.

        Only ONE leading slash is stripped: "//etc/passwd" keeps its second
        slash and is rejected later by the containment check.
        """
        raw_path, _, query = target.partition("?")
        raw_path = raw_path.partition("#")[0]

        path = unquote(raw_path)
        if "\x00" in path:
            raise HTTPParseError("Invalid path: contains NUL byte")

        if path.startswith("/"):
            path = path[1:]
        return path, query

    @staticmethod
    def _parse_headers(lines: list) -> Headers:
        """
        Parse header lines into ordered (name, value) pairs.

        Lines starting with whitespace continue the previous header
        (obsolete line folding, still seen from old clients). Lines without
        a colon are skipped (lenient parsing).
        """
        headers: list = []

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if headers:
                    name, value = headers[-1]
                    headers[-1] = (name, f"{value} {line.strip()}")
                continue

            name, sep, value = line.partition(":")
            name = name.strip()
            if not sep or not name:
                continue

            headers.append((name, value.strip()))

        return tuple(headers)


def parse_request(
    data: bytes,
    client_address: Tuple[str, int] = ("", 0),
) -> HTTPRequest:
    """Convenience function to parse an HTTP request in one call."""
    return RequestParser().parse(data, client_address)
