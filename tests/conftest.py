"""
pytest configuration and fixtures.
"""

import os
import socket
import stat
import threading
from pathlib import Path
from typing import Dict, Generator, List, Mapping, Optional, Tuple
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from originserver import OriginServer, ServerConfig
from originserver.handlers.scripts import ScriptExecutor, ScriptResult, ScriptLaunchError


SCRIPTS = {
    "echo": (
        "#!/bin/sh\n"
        "printf 'method=%s path=%s' \"$Method\" \"$Path\"\n"
    ),
    "fail": (
        "#!/bin/sh\n"
        "echo 'partial output'\n"
        "echo 'something broke' >&2\n"
        "exit 3\n"
    ),
    # No shell here: dash drops variables whose names aren't identifiers
    "token": (
        f"#!{sys.executable}\n"
        "import os\n"
        "print(os.environ.get('X-Token', ''))\n"
    ),
    "slow": (
        "#!/bin/sh\n"
        "sleep 1\n"
        "printf done\n"
    ),
}


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /docs/guide.txt?raw=1 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/plain\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request for a script, with a body that gets ignored."""
    body = b"name=value"
    return (
        b"POST /scripts/echo HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"X-Token: abc123\r\n" +
        b"Content-Length: %d\r\n" % len(body) +
        b"\r\n"
    ) + body


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """
    A small site to serve:

        index.html  style.css  notes.txt  logo.png  data.bin
        docs/guide.txt  docs/sub/
        scripts/echo  fail  token  slow   (executable)
        scripts/notexec                   (mode 644)
        scripts/lib/                      (directory)
    """
    root = tmp_path / "site"
    root.mkdir()

    (root / "index.html").write_text("<h1>Hello</h1>")
    (root / "style.css").write_text("body { color: red; }")
    (root / "notes.txt").write_text("plain notes\n")
    (root / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\xff")
    (root / "data.bin").write_bytes(bytes(range(256)))

    docs = root / "docs"
    docs.mkdir()
    (docs / "guide.txt").write_text("the guide")
    (docs / "sub").mkdir()

    scripts = root / "scripts"
    scripts.mkdir()
    for name, body in SCRIPTS.items():
        script = scripts / name
        script.write_text(body)
        script.chmod(0o755)

    (scripts / "notexec").write_text("#!/bin/sh\necho never\n")
    (scripts / "notexec").chmod(0o644)
    (scripts / "lib").mkdir()

    return root


@pytest.fixture
def outside_file(tmp_path: Path) -> Path:
    """A file next to the site root, reachable only by escaping it."""
    secret = tmp_path / "secret.txt"
    secret.write_text("top secret")
    return secret


@pytest.fixture
def config(site_root: Path) -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig.create(
        0,  # Let OS pick a free port
        site_root,
        host="127.0.0.1",
        log_level="WARNING",
    )


class FakeExecutor(ScriptExecutor):
    """Records every execution and returns a canned result."""

    def __init__(
        self,
        result: Optional[ScriptResult] = None,
        launch_error: Optional[OSError] = None,
    ):
        self.result = result or ScriptResult(0, b"fake output")
        self.launch_error = launch_error
        self.calls: List[Tuple[Path, Dict[str, str]]] = []

    def execute(self, path: Path, env: Mapping[str, str]) -> ScriptResult:
        self.calls.append((path, dict(env)))
        if self.launch_error is not None:
            raise ScriptLaunchError(path, self.launch_error)
        return self.result


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


def running_as_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # not a test class, despite the name

    def __init__(self, server: OriginServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        return self.server.address

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"configure_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def send(self, data: bytes, half_close: bool = False) -> bytes:
        """
        Send raw bytes on a fresh connection and read until the server
        closes it.

        half_close shuts down our write side after sending, for requests
        that never finish their header block.
        """
        with socket.create_connection(self.address, timeout=10.0) as sock:
            sock.sendall(data)
            if half_close:
                sock.shutdown(socket.SHUT_WR)

            chunks = []
            while True:
                chunk = sock.recv(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)

    def request(self, method: str, target: str, headers: Optional[Dict[str, str]] = None) -> "ParsedResponse":
        lines = [f"{method} {target} HTTP/1.1", "Host: localhost"]
        for name, value in (headers or {}).items():
            lines.append(f"{name}: {value}")
        raw = ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")
        return ParsedResponse.from_bytes(self.send(raw))


class ParsedResponse:
    """Minimal client-side view of a raw response."""

    def __init__(self, status: int, reason: str, headers: Dict[str, str], body: bytes):
        self.status = status
        self.reason = reason
        self.headers = headers
        self.body = body

    @classmethod
    def from_bytes(cls, raw: bytes) -> "ParsedResponse":
        head, _, body = raw.partition(b"\r\n\r\n")
        lines = head.decode("latin-1").split("\r\n")

        _, code, reason = lines[0].split(" ", 2)
        headers = {}
        for line in lines[1:]:
            name, _, value = line.partition(":")
            headers[name.strip().lower()] = value.strip()

        return cls(int(code), reason, headers, body)


@pytest.fixture
def test_server(config: ServerConfig) -> Generator[TestServer, None, None]:
    """A live server on a random port, serving the site_root fixture."""
    test_srv = TestServer(OriginServer(config))
    test_srv.start()

    yield test_srv

    test_srv.stop()


def make_unreadable(path: Path):
    path.chmod(path.stat().st_mode & ~(stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH))
