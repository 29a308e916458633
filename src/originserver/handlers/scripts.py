"""
=============================================================================
SCRIPT HANDLER
=============================================================================

Runs executables under <root>/scripts/ for POST requests, CGI-style.

=============================================================================
THE SCRIPT CONTRACT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  IN:   environment variables only                                   │
    │          Method=POST                                                │
    │          Path=scripts/echo                                          │
    │          Host=localhost:8080        ← one per request header,       │
    │          User-Agent=curl/8.5.0        name and value as sent        │
    │        no arguments, stdin is /dev/null, request body not passed   │
    │                                                                      │
    │  OUT:  exit 0      → 200 OK, body = stdout (bytes, untouched)      │
    │        exit != 0   → 500,    body = stderr (bytes, untouched)      │
    │        won't start → 500,    empty body                            │
    └─────────────────────────────────────────────────────────────────────┘

A failing script's stderr goes back to the client as-is. That's part of
the contract: scripts report their own errors.

The variables are layered over the server's own environment, so a script
with "#!/usr/bin/env python3" still finds its interpreter on PATH. A
header named like an inherited variable (say, "PATH") overrides it.

=============================================================================
NO TIMEOUT
=============================================================================

The handler waits for the script to exit, however long that takes. A
script that hangs pins its connection thread until someone kills it.
Other connections are unaffected - each runs on its own thread.

=============================================================================
WHY AN EXECUTOR INTERFACE?
=============================================================================

Spawning processes is the one side effect here that tests shouldn't need.
ScriptExecutor is the seam:

    execute(path, env) -> ScriptResult(exit_code, stdout, stderr)

SubprocessExecutor is the real one; tests pass a fake that records the
environment it was given and returns canned output.

=============================================================================
"""

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok, not_found, internal_error
from .paths import resolve_target, PathTraversalError


logger = logging.getLogger(__name__)

SCRIPTS_DIR = "scripts"


class ScriptLaunchError(Exception):
    """Raised when a script process could not be started at all."""

    def __init__(self, path: Path, cause: OSError):
        super().__init__(f"Failed to execute script {path}: {cause}")
        self.path = path
        self.cause = cause


@dataclass(frozen=True)
class ScriptResult:
    """What a finished script left behind."""

    exit_code: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class ScriptExecutor(ABC):
    """
    Runs one script and collects its outcome.

    Implementations must not raise for a non-zero exit - that's a normal
    ScriptResult. Only a failure to start the process raises
    ScriptLaunchError.
    """

    @abstractmethod
    def execute(self, path: Path, env: Mapping[str, str]) -> ScriptResult:
        pass


class SubprocessExecutor(ScriptExecutor):
    """Executes scripts as child processes via subprocess.run()."""

    def __init__(self, inherit_environment: bool = True):
        """
        Args:
            inherit_environment: Layer the script variables over this
                                 process's environment (default) instead
                                 of passing them alone.
        """
        self.inherit_environment = inherit_environment

    def execute(self, path: Path, env: Mapping[str, str]) -> ScriptResult:
        full_env = {**os.environ, **env} if self.inherit_environment else dict(env)

        try:
            completed = subprocess.run(
                [str(path)],
                env=full_env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
            )
        except OSError as e:
            # ENOENT, EACCES, ENOEXEC, bad interpreter...
            raise ScriptLaunchError(path, e) from e

        return ScriptResult(completed.returncode, completed.stdout, completed.stderr)


def build_environment(
    method: str,
    path: str,
    headers: Iterable[Tuple[str, str]],
) -> Dict[str, str]:
    """
    Build the variables a script is run with.

    Method and Path come first, then one variable per header in the order
    the client sent them - so a repeated header keeps its LAST value, and
    a header called "Path" would replace the request path.

    Headers that can't be environment entries at all (empty name, "=" in
    the name, NUL anywhere) are dropped.

    Example:
        >>> build_environment("POST", "scripts/echo", [("X-Token", "abc")])
        {'Method': 'POST', 'Path': 'scripts/echo', 'X-Token': 'abc'}
    """
    env = {"Method": method, "Path": path}

    for name, value in headers:
        if not name or "=" in name or "\x00" in name or "\x00" in value:
            logger.debug(f"Skipping header unusable as env var: {name!r}")
            continue
        env[name] = value.strip()

    return env


class ScriptHandler:
    """
    Handler for POST requests under scripts/.

    Usage:
        scripts = ScriptHandler("/srv/site")
        response = scripts.handle(request)   # request.path = "scripts/echo"
    """

    def __init__(
        self,
        root_dir: Union[str, Path],
        executor: Optional[ScriptExecutor] = None,
    ):
        self.root_dir = Path(root_dir).resolve()
        self.scripts_dir = self.root_dir / SCRIPTS_DIR
        self.executor = executor or SubprocessExecutor()

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Resolve, run, and translate one script invocation.

        The "scripts/" prefix is the router's business. Here the resolved
        path must additionally stay inside <root>/scripts, so
        "scripts/../index.html" is a 404, not an execution.
        """
        try:
            target = resolve_target(self.root_dir, request.path, base=self.scripts_dir)
        except PathTraversalError:
            return not_found()

        if not target.is_file:
            logger.info(f"Script not found: {target.absolute_path}")
            return not_found()

        env = build_environment(request.method, request.path, request.headers)
        return self.run(target.absolute_path, env)

    def run(self, path: Path, env: Mapping[str, str]) -> HTTPResponse:
        """Execute a resolved script and map its outcome to a response."""
        logger.debug(f"Executing script: {path}")

        try:
            result = self.executor.execute(path, env)
        except ScriptLaunchError as e:
            logger.error(str(e))
            return internal_error()

        if result.succeeded:
            return ok(result.stdout)

        logger.info(f"Script {path} exited with status {result.exit_code}")
        return internal_error(result.stderr)
