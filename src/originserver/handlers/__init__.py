"""
=============================================================================
REQUEST HANDLERS
=============================================================================

The two things this server does with a request, plus the path resolution
they share:

    static.py   GET  → file bytes or a directory listing
    scripts.py  POST → run <root>/scripts/<name>, return its output
    paths.py    request path → contained filesystem path + what's there

=============================================================================
"""

from .paths import resolve_target, ResolvedTarget, TargetKind, PathTraversalError
from .static import StaticFileHandler
from .scripts import (
    ScriptHandler,
    ScriptExecutor,
    SubprocessExecutor,
    ScriptResult,
    ScriptLaunchError,
    build_environment,
)

__all__ = [
    "resolve_target",
    "ResolvedTarget",
    "TargetKind",
    "PathTraversalError",
    "StaticFileHandler",
    "ScriptHandler",
    "ScriptExecutor",
    "SubprocessExecutor",
    "ScriptResult",
    "ScriptLaunchError",
    "build_environment",
]
