"""
Unit tests for script execution.
"""

from pathlib import Path

import pytest

from originserver.handlers.scripts import (
    ScriptHandler,
    ScriptResult,
    SubprocessExecutor,
    ScriptLaunchError,
    build_environment,
)
from originserver.http.request import HTTPRequest
from originserver.http.status_codes import HTTPStatus

from conftest import FakeExecutor


def post(path: str, headers=()) -> HTTPRequest:
    return HTTPRequest(method="POST", path=path, headers=tuple(headers))


class TestBuildEnvironment:

    def test_method_and_path(self):
        env = build_environment("POST", "scripts/echo", [])
        assert env == {"Method": "POST", "Path": "scripts/echo"}

    def test_headers_verbatim(self):
        env = build_environment("POST", "scripts/echo", [
            ("Host", "localhost:8080"),
            ("X-Token", "abc"),
        ])

        assert env["Host"] == "localhost:8080"
        assert env["X-Token"] == "abc"

    def test_duplicate_header_last_wins(self):
        env = build_environment("POST", "scripts/echo", [("X-Dup", "1"), ("X-Dup", "2")])
        assert env["X-Dup"] == "2"

    def test_header_can_override_path(self):
        env = build_environment("POST", "scripts/echo", [("Path", "spoofed")])
        assert env["Path"] == "spoofed"

    @pytest.mark.parametrize("name, value", [
        ("", "x"),
        ("A=B", "x"),
        ("X-Nul\x00", "x"),
        ("X-Ok-Name", "bad\x00value"),
    ])
    def test_unusable_headers_skipped(self, name: str, value: str):
        env = build_environment("POST", "scripts/echo", [(name, value)])
        assert env == {"Method": "POST", "Path": "scripts/echo"}


class TestScriptHandlerWithFake:
    """Routing and response mapping, without spawning processes."""

    def test_success_returns_stdout(self, site_root: Path):
        fake = FakeExecutor(ScriptResult(0, b"hello\n", b"ignored"))
        response = ScriptHandler(site_root, fake).handle(post("scripts/echo"))

        assert response.status == HTTPStatus.OK
        assert response.body == b"hello\n"
        assert "Content-Type" not in response.headers

    def test_failure_returns_stderr(self, site_root: Path):
        fake = FakeExecutor(ScriptResult(2, b"out", b"bad things"))
        response = ScriptHandler(site_root, fake).handle(post("scripts/echo"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.body == b"bad things"

    def test_launch_error_is_500_empty(self, site_root: Path):
        fake = FakeExecutor(launch_error=PermissionError(13, "Permission denied"))
        response = ScriptHandler(site_root, fake).handle(post("scripts/echo"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.body == b""

    def test_environment_passed(self, site_root: Path):
        fake = FakeExecutor()
        ScriptHandler(site_root, fake).handle(post("scripts/echo", [("X-Token", "abc")]))

        (path, env), = fake.calls
        assert path == (site_root / "scripts" / "echo").resolve()
        assert env == {"Method": "POST", "Path": "scripts/echo", "X-Token": "abc"}

    @pytest.mark.parametrize("path", [
        "scripts/missing",
        "scripts/lib",
        "scripts/",
        "scripts/../index.html",
        "scripts/../../secret.txt",
    ])
    def test_not_runnable_is_404(self, site_root: Path, path: str):
        fake = FakeExecutor()
        response = ScriptHandler(site_root, fake).handle(post(path))

        assert response.status == HTTPStatus.NOT_FOUND
        assert fake.calls == []

    def test_symlink_out_of_scripts_is_404(self, site_root: Path):
        (site_root / "scripts" / "sneaky").symlink_to(site_root / "index.html")
        fake = FakeExecutor()

        response = ScriptHandler(site_root, fake).handle(post("scripts/sneaky"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert fake.calls == []


class TestSubprocessExecutor:
    """Real processes, using the /bin/sh scripts from the site fixture."""

    def test_stdout_and_env(self, site_root: Path):
        result = SubprocessExecutor().execute(
            site_root / "scripts" / "echo",
            {"Method": "POST", "Path": "scripts/echo"},
        )

        assert result.succeeded
        assert result.stdout == b"method=POST path=scripts/echo"

    def test_nonzero_exit(self, site_root: Path):
        result = SubprocessExecutor().execute(site_root / "scripts" / "fail", {})

        assert result.exit_code == 3
        assert not result.succeeded
        assert result.stderr == b"something broke\n"

    def test_header_variable(self, site_root: Path):
        result = SubprocessExecutor().execute(site_root / "scripts" / "token", {"X-Token": "abc"})
        assert result.stdout == b"abc\n"

    def test_inherits_environment(self, site_root: Path, monkeypatch):
        script = site_root / "scripts" / "inherit"
        script.write_text("#!/bin/sh\nprintf '%s' \"$ORIGIN_TEST_VAR\"\n")
        script.chmod(0o755)
        monkeypatch.setenv("ORIGIN_TEST_VAR", "inherited")

        assert SubprocessExecutor().execute(script, {}).stdout == b"inherited"

        isolated = SubprocessExecutor(inherit_environment=False)
        assert isolated.execute(script, {}).stdout == b""

    def test_not_executable_raises_launch_error(self, site_root: Path):
        with pytest.raises(ScriptLaunchError) as exc_info:
            SubprocessExecutor().execute(site_root / "scripts" / "notexec", {})

        assert isinstance(exc_info.value.cause, OSError)

    def test_stdin_is_empty(self, site_root: Path):
        script = site_root / "scripts" / "cat"
        script.write_text("#!/bin/sh\ncat\n")
        script.chmod(0o755)

        result = SubprocessExecutor().execute(script, {})

        assert result.succeeded
        assert result.stdout == b""


class TestScriptHandlerEndToEnd:

    def test_echo(self, site_root: Path):
        response = ScriptHandler(site_root).handle(post("scripts/echo"))

        assert response.status == HTTPStatus.OK
        assert response.body == b"method=POST path=scripts/echo"

    def test_fail(self, site_root: Path):
        response = ScriptHandler(site_root).handle(post("scripts/fail"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.body == b"something broke\n"
        assert b"partial output" not in response.body

    def test_not_executable_is_500(self, site_root: Path):
        response = ScriptHandler(site_root).handle(post("scripts/notexec"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.body == b""
