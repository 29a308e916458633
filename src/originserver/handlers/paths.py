"""
=============================================================================
PATH RESOLUTION
=============================================================================

Turns a request path into a filesystem path under the root folder and
tells the caller what lives there.

=============================================================================
THE CONTAINMENT RULE
=============================================================================

Whatever the client sends, the path we touch must stay inside the root:

    root = /srv/site

    "docs/a.html"           → /srv/site/docs/a.html          ok
    "docs/../index.html"    → /srv/site/index.html           ok
    "../../etc/passwd"      → /etc/passwd                    REJECTED
    "/etc/passwd"           → /etc/passwd  (absolute join!)  REJECTED
    "link-to-etc/passwd"    → /etc/passwd  (via symlink)     REJECTED

Path.resolve() collapses ".." AND follows symlinks, so the check runs on
the path the OS will really open. A symlink pointing somewhere else inside
the root is fine; one pointing outside is treated like a traversal.

Encoded traversals ("%2e%2e/") were already decoded by the request parser,
so they arrive here as plain ".." and get the same treatment.

=============================================================================
"""

import logging
import os
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union


logger = logging.getLogger(__name__)


class PathTraversalError(Exception):
    """Raised when a request path resolves outside its containment base."""

    def __init__(self, relative_path: str, resolved: Path):
        super().__init__(f"Path escapes root: {relative_path!r} → {resolved}")
        self.relative_path = relative_path
        self.resolved = resolved


class TargetKind(Enum):
    """What a resolved path points at."""
    FILE = "file"
    DIRECTORY = "directory"
    MISSING = "missing"


@dataclass(frozen=True)
class ResolvedTarget:
    """
    A request path mapped onto the filesystem.

    absolute_path is always inside the containment base it was resolved
    against. Derived per request, never cached.
    """

    absolute_path: Path
    kind: TargetKind

    @property
    def is_file(self) -> bool:
        return self.kind is TargetKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind is TargetKind.DIRECTORY

    @property
    def exists(self) -> bool:
        return self.kind is not TargetKind.MISSING


def resolve_target(
    root: Union[str, Path],
    relative_path: str,
    base: Optional[Union[str, Path]] = None,
) -> ResolvedTarget:
    """
    Join a request path to the root and classify the result.

    Args:
        root: The root folder (absolute).
        relative_path: Decoded request path, leading "/" already stripped.
        base: Containment base, defaults to root. Scripts pass
              <root>/scripts so nothing outside it can ever be executed.

    Returns:
        ResolvedTarget with the real (symlink-free) absolute path.

    Raises:
        PathTraversalError: If the resolved path lies outside base.
    """
    root_path = Path(root).resolve()
    base_path = Path(base).resolve() if base is not None else root_path

    joined = root_path / relative_path
    try:
        # strict=False: a missing target still resolves, so we can report 404
        candidate = joined.resolve()
        unresolvable = False
    except (OSError, RuntimeError, ValueError) as e:
        # Symlink loop or NUL byte: fall back to a lexical check and give up
        logger.debug(f"Cannot resolve {joined}: {e}")
        candidate = Path(os.path.normpath(joined))
        unresolvable = True

    # Both checks: base itself could be a symlink pointing out of the root
    if not (_is_within(candidate, root_path) and _is_within(candidate, base_path)):
        logger.warning(f"Path traversal attempt: {relative_path!r}")
        raise PathTraversalError(relative_path, candidate)

    if unresolvable:
        return ResolvedTarget(candidate, TargetKind.MISSING)
    return ResolvedTarget(candidate, _classify(candidate))


def _is_within(path: Path, base: Path) -> bool:
    try:
        path.relative_to(base)
    except ValueError:
        return False
    return True


def _classify(path: Path) -> TargetKind:
    try:
        mode = os.stat(path).st_mode
    except (FileNotFoundError, NotADirectoryError):
        return TargetKind.MISSING
    except OSError as e:
        # A parent we can't traverse: we can't serve it, so it isn't there
        logger.debug(f"stat failed for {path}: {e}")
        return TargetKind.MISSING

    if stat.S_ISDIR(mode):
        return TargetKind.DIRECTORY
    if stat.S_ISREG(mode):
        return TargetKind.FILE
    # FIFOs, sockets, devices: reading them could block forever
    return TargetKind.MISSING
