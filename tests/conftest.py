"""Pytest fixtures and utilities for visionsetup tests."""

import io
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from visionsetup.config import SetupSettings
from visionsetup.execution import TIMEOUT_RETURNCODE, CommandResult
from visionsetup.tui.console import Console
from visionsetup.tui.render import RenderConfig


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keep the developer's own settings and install dir out of tests."""
    monkeypatch.delenv("VISION_UI_MCP_DIR", raising=False)
    monkeypatch.delenv("VISION_UI_MCP_SETUP_CONFIG", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def settings(temp_dir: Path) -> SetupSettings:
    """Settings pointing the install directory into a temp dir."""
    return SetupSettings(install_dir=temp_dir / "vision-ui-mcp", health_interval=0.01)


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def plain_console(output: io.StringIO) -> Console:
    """Console for a pipe: no colour, no cursor control, ASCII glyphs."""
    return Console(RenderConfig(), stream=output)


@pytest.fixture
def ansi_console(output: io.StringIO) -> Console:
    """Console for a UTF-8 terminal without colour."""
    return Console(RenderConfig(ansi=True, unicode=True, width=80), stream=output)


def ok_result(output: str = "", argv=("true",)) -> CommandResult:
    return CommandResult(argv=list(argv), returncode=0, output=output)


def failed_result(output: str = "boom", returncode: int = 1, argv=("false",)) -> CommandResult:
    return CommandResult(argv=list(argv), returncode=returncode, output=output)


def timed_out_result(argv=("sleep",)) -> CommandResult:
    return CommandResult(argv=list(argv), returncode=TIMEOUT_RETURNCODE, output="", timed_out=True)


class FakeStack:
    """Records compose calls in order instead of running docker."""

    registry = "ghcr.io"

    def __init__(self, install_dir: Path, clone_files: dict[str, str] | None = None):
        self.install_dir = install_dir
        self.calls: list[str] = []
        self.results: dict[str, CommandResult] = {}
        self.clone_files = clone_files if clone_files is not None else {".env.example": "GIT_TOKEN=ghp_your_github_token\n"}
        self.ps_output = ""
        self.log_output = ""
        self.login_token: str | None = None

    def _result(self, name: str) -> CommandResult:
        self.calls.append(name)
        return self.results.get(name, ok_result())

    def command_hint(self, *args: str) -> str:
        return f"cd {self.install_dir} && docker compose {' '.join(args)}"

    def clone(self, console, repo_url):
        result = self._result("clone")
        if result.ok:
            self.install_dir.mkdir(parents=True, exist_ok=True)
            for name, content in self.clone_files.items():
                (self.install_dir / name).write_text(content)
        return result

    def login(self, console, token, timeout):
        self.login_token = token
        return self._result("login")

    def pull(self, console):
        return self._result("pull")

    def up(self, console):
        return self._result("up")

    def down(self, volumes=True):
        return self._result("down -v" if volumes else "down")

    def ps(self):
        self.calls.append("ps")
        return self.ps_output

    def logs(self, service, tail=30):
        self.calls.append("logs")
        return self.log_output

    def follow_logs(self, service=None, tail=20):
        self.calls.append("follow_logs")
        return 0


@pytest.fixture
def fake_stack(settings: SetupSettings) -> FakeStack:
    return FakeStack(settings.install_dir)
