"""Command execution utilities."""

import logging
import os
import shlex
import shutil
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

DEFAULT_TIMEOUT = 30
PROBE_TIMEOUT = 10

# Same convention as coreutils timeout(1). Callers branch on
# CommandResult.timed_out, never on this value.
TIMEOUT_RETURNCODE = 124
NOT_FOUND_RETURNCODE = 127

_logging = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    argv: list[str]
    returncode: int
    output: str
    timed_out: bool = False
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    def head(self, lines: int = 5) -> list[str]:
        """First non-empty lines of the captured output."""
        return [line for line in self.output.splitlines() if line.strip()][:lines]


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def command_exists(name: str) -> bool:
    return shutil.which(name) is not None


def _kill_process_tree(process: subprocess.Popen) -> None:
    if process.poll() is not None:
        return
    try:
        if os.name == "posix":
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except (ProcessLookupError, PermissionError):
        process.kill()


def run_command(
    argv: Sequence[str],
    timeout: float | None = DEFAULT_TIMEOUT,
    cwd: Path | str | None = None,
    input_text: str | None = None,
    merge_stderr: bool = True,
) -> CommandResult:
    """Run a command and return its combined output and exit status.

    If the command does not finish within ``timeout`` seconds, it and any
    children it spawned are killed and reaped, and the result has
    ``timed_out`` set. A ``timeout`` of None waits indefinitely.

    ``input_text`` is written to the command's stdin and is never logged.
    """
    argv_list = [str(a) for a in argv]
    _logging.debug(f"Running command: {format_argv(argv_list)} (timeout={timeout})")
    started = time.monotonic()

    try:
        process = subprocess.Popen(
            argv_list,
            cwd=str(cwd) if cwd is not None else None,
            stdin=subprocess.PIPE if input_text is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if merge_stderr else subprocess.DEVNULL,
            text=True,
            errors="replace",
            start_new_session=(os.name == "posix"),
        )
    except FileNotFoundError:
        _logging.debug(f"Command not found: {argv_list[0]}")
        return CommandResult(
            argv=argv_list,
            returncode=NOT_FOUND_RETURNCODE,
            output=f"{argv_list[0]}: command not found",
        )
    except OSError as e:
        _logging.error(f"Command execution failed: {type(e).__name__}: {e} | Command: {argv_list[0]}")
        return CommandResult(argv=argv_list, returncode=1, output=f"Error: {e}")

    try:
        output, _ = process.communicate(input=input_text, timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill_process_tree(process)
        output, _ = process.communicate()
        duration = time.monotonic() - started
        _logging.warning(f"Command timed out after {timeout} seconds: {format_argv(argv_list)}")
        return CommandResult(
            argv=argv_list,
            returncode=TIMEOUT_RETURNCODE,
            output=output or "",
            timed_out=True,
            duration=duration,
        )
    except BaseException:
        # Interrupted (Ctrl-C): the child runs in its own session, so it
        # would not have received the signal.
        _kill_process_tree(process)
        process.wait()
        raise

    duration = time.monotonic() - started
    _logging.debug(f"Command exited {process.returncode} after {duration:.1f}s: {argv_list[0]}")
    return CommandResult(
        argv=argv_list,
        returncode=process.returncode,
        output=output or "",
        duration=duration,
    )


__all__ = [
    "DEFAULT_TIMEOUT",
    "PROBE_TIMEOUT",
    "TIMEOUT_RETURNCODE",
    "NOT_FOUND_RETURNCODE",
    "CommandResult",
    "format_argv",
    "command_exists",
    "run_command",
]
