"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Serves files and directory listings from the root folder for GET requests.

=============================================================================
FLOW
=============================================================================

    GET /docs/guide.html
         │
         ▼
    resolve_target(root, "docs/guide.html")
         │
         ├── escapes root?  ──────────────►  403 Forbidden
         ├── MISSING        ──────────────►  404 Not Found
         ├── DIRECTORY      ──────────────►  200 HTML listing
         │                    (unreadable ►  403 Forbidden)
         └── FILE           ── read all ──►  200 + Content-Type
                              (fails    ──►  403 Forbidden)

=============================================================================
WHOLE-FILE READS
=============================================================================

Files are read fully into memory before a single response byte is
written. No ranges, no streaming, no caching headers: every GET pays for a
fresh read. Fine for a small site, wrong for multi-gigabyte downloads.

=============================================================================
DIRECTORY LISTINGS
=============================================================================

A directory always gets a generated index page - there's no index.html
lookup. The page links to the parent ("../") and to each direct child,
directories marked with a trailing "/":

    Index of /docs/
      ../
      images/
      guide.html
      notes.txt

Links are relative, and a <base href="/docs/"> tag makes them work even
when the directory was requested without its trailing slash.

=============================================================================
"""

import html
import logging
import os
from pathlib import Path
from typing import Tuple, Union
from urllib.parse import quote

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder, ok, forbidden, not_found
from ..http.mime_types import get_content_type
from .paths import resolve_target, PathTraversalError


logger = logging.getLogger(__name__)


class StaticFileHandler:
    """
    Handler for GET requests: files and directory listings.

    Usage:
        static = StaticFileHandler("/srv/site")
        response = static.handle(request)
    """

    def __init__(self, root_dir: Union[str, Path]):
        """
        Args:
            root_dir: Root folder to serve from. Must already exist;
                      ServerConfig checks that at startup.
        """
        self.root_dir = Path(root_dir).resolve()

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Handle a static file request.

        Args:
            request: The parsed request; request.path is relative to root.

        Returns:
            HTTP response with file content, a listing, or an error status.
        """
        try:
            target = resolve_target(self.root_dir, request.path)
        except PathTraversalError:
            return forbidden()

        if target.is_directory:
            return self._directory_listing(target.absolute_path, request.path)

        if not target.is_file:
            logger.debug(f"File not found: {target.absolute_path}")
            return not_found()

        return self._serve_file(target.absolute_path)

    def _serve_file(self, path: Path) -> HTTPResponse:
        """
        Read a file fully and return it with its Content-Type.

        Any read failure - permission denied, file removed since the stat,
        a directory swapped in - is reported as 403.
        """
        try:
            content = path.read_bytes()
        except OSError as e:
            logger.info(f"Forbidden: cannot read file {path}: {e}")
            return forbidden()

        return ok(content, get_content_type(path))

    def _directory_listing(self, path: Path, url_path: str) -> HTTPResponse:
        """
        Generate a directory listing page.

        Args:
            path: Directory on disk.
            url_path: Request path (relative, may lack a trailing slash).

        Returns:
            HTML response with the listing, or 403 if it can't be read.
        """
        try:
            children = sorted(path.iterdir(), key=lambda entry: entry.name)
        except OSError as e:
            logger.info(f"Forbidden: cannot list directory {path}: {e}")
            return forbidden()

        directory_url = "/" + url_path.strip("/")
        if not directory_url.endswith("/"):
            directory_url += "/"

        entries = ['<li><a href="../">../</a></li>']
        for entry in children:
            href, name = self._entry_link(entry)
            entries.append(f'<li><a href="{html.escape(href)}">{html.escape(name)}</a></li>')

        title = html.escape(f"Index of {directory_url}")
        base = html.escape(quote(directory_url))
        page = f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <base href="{base}">
    <title>{title}</title>
</head>
<body>
    <h1>{title}</h1>
    <ul>
        {"".join(entries)}
    </ul>
</body>
</html>
"""
        return ResponseBuilder().html(page).build()

    @staticmethod
    def _entry_link(entry: Path) -> Tuple[str, str]:
        """
        Build (href, display name) for one listing entry.

        Names are bytes on disk and need not be UTF-8: the link
        percent-encodes the raw bytes so it maps back to the same file,
        the label shows undecodable bytes as U+FFFD.
        """
        try:
            is_dir = entry.is_dir()
        except OSError:
            # Readable but not searchable parent: list it as a plain entry
            is_dir = False

        suffix = b"/" if is_dir else b""
        raw_name = os.fsencode(entry.name) + suffix
        return quote(raw_name), raw_name.decode("utf-8", errors="replace")
