"""Command lines for the container stack.

This is the only module that knows how docker, docker compose and git are
invoked; everything else deals in CommandResult values.
"""

import logging
import shutil
import subprocess
from pathlib import Path

from ..execution import PROBE_TIMEOUT, CommandResult, run_command
from ..tui.console import Console
from ..tui.spinner import run_with_progress

_logging = logging.getLogger(__name__)

DOWN_TIMEOUT = 120


class ComposeStack:
    """The compose project living in ``install_dir``."""

    def __init__(self, install_dir: Path, registry: str = "ghcr.io", registry_user: str = "token"):
        self.install_dir = install_dir
        self.registry = registry
        self.registry_user = registry_user

    def compose_argv(self, *args: str) -> list[str]:
        return ["docker", "compose", *args]

    def command_hint(self, *args: str) -> str:
        """Shell line an operator can paste to run a compose command themselves."""
        return f"cd {self.install_dir} && {' '.join(self.compose_argv(*args))}"

    def clone(self, console: Console, repo_url: str) -> CommandResult:
        """Shallow-clone the setup repository into the install directory."""
        result = run_with_progress(
            console,
            ["git", "clone", "--depth", "1", repo_url, str(self.install_dir)],
            f"Downloading setup files to {self.install_dir}",
        )
        if result.ok:
            shutil.rmtree(self.install_dir / ".git", ignore_errors=True)
        return result

    def login(self, console: Console, token: str, timeout: float) -> CommandResult:
        """Log in to the registry, passing the token on stdin."""
        return run_with_progress(
            console,
            ["docker", "login", self.registry, "-u", self.registry_user, "--password-stdin"],
            f"Logging into {self.registry}",
            timeout=timeout,
            input_text=token,
        )

    def pull(self, console: Console) -> CommandResult:
        return run_with_progress(
            console,
            self.compose_argv("pull"),
            "Pulling Docker images (this may take a few minutes on first run)",
            cwd=self.install_dir,
        )

    def up(self, console: Console) -> CommandResult:
        return run_with_progress(
            console,
            self.compose_argv("up", "-d"),
            "Starting services",
            cwd=self.install_dir,
        )

    def down(self, volumes: bool = True) -> CommandResult:
        args = ("down", "-v") if volumes else ("down",)
        return run_command(self.compose_argv(*args), timeout=DOWN_TIMEOUT, cwd=self.install_dir)

    def ps(self) -> str:
        """Raw ``docker compose ps -a`` output, empty on failure."""
        result = run_command(self.compose_argv("ps", "-a"), timeout=PROBE_TIMEOUT, cwd=self.install_dir)
        if not result.ok:
            _logging.debug(f"compose ps failed ({result.returncode}): {result.output[:200]}")
            return ""
        return result.output

    def logs(self, service: str | None, tail: int = 30) -> str:
        """Last ``tail`` log lines of one service (all when None), empty on failure."""
        argv = self.compose_argv("logs", "--no-color", "--tail", str(tail))
        if service:
            argv.append(service)
        result = run_command(argv, timeout=PROBE_TIMEOUT, cwd=self.install_dir)
        return result.output if result.ok else ""

    def follow_logs(self, service: str | None = None, tail: int = 20) -> int:
        """Stream logs in the foreground until the command ends.

        KeyboardInterrupt propagates to the caller, which decides whether it
        is a normal exit.
        """
        argv = self.compose_argv("logs", "-f", "--tail", str(tail))
        if service:
            argv.append(service)
        return subprocess.run(argv, cwd=self.install_dir).returncode


__all__ = ["ComposeStack"]
