"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps a file name to the Content-Type header value sent with it.

=============================================================================
RULES
=============================================================================

    1. Match on the file name's SUFFIX, case-sensitively.
       "logo.png" → image/png, "LOGO.PNG" → application/octet-stream

    2. Text types carry their charset in the value itself, so the table
       holds complete header values, not bare MIME types.

    3. No content sniffing. Anything not in the table is
       application/octet-stream and the browser decides what to do.

=============================================================================
"""

from pathlib import PurePath
from typing import Union


# =============================================================================
# CONTENT TYPE TABLE
# =============================================================================
#
# Suffix (with dot) → full Content-Type header value.
#
# =============================================================================

CONTENT_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "text/javascript; charset=utf-8",
    ".txt": "text/plain; charset=utf-8",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".zip": "application/zip",
}

# application/octet-stream = "I don't know what this is, treat as binary"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def get_content_type(path: Union[str, PurePath]) -> str:
    """
    Get the Content-Type header value for a file.

    Only the final suffix counts: "archive.tar.zip" is a zip,
    "notes.html.bak" is octet-stream.

    Args:
        path: File path or bare file name.

    Returns:
        Content-Type header value.

    Examples:
        >>> get_content_type("index.html")
        'text/html; charset=utf-8'

        >>> get_content_type("/srv/site/photo.jpeg")
        'image/jpeg'

        >>> get_content_type("Makefile")
        'application/octet-stream'
    """
    suffix = PurePath(path).suffix  # no .lower(): matching is case-sensitive
    return CONTENT_TYPES.get(suffix, DEFAULT_CONTENT_TYPE)
