"""Animated progress indicator for long-running commands."""

import threading
import time
from pathlib import Path
from typing import Sequence

from .. import is_debug
from ..execution import CommandResult, run_command
from .console import Console

CLEAR_LINE = "\r\033[2K"
FRAME_INTERVAL = 0.1
FAILURE_OUTPUT_LINES = 5


class Spinner:
    """Animate ``label`` on the current line from a background thread.

    Used as a context manager; leaving the block stops the thread, joins it
    and clears the line before any other output is written. On terminals
    without cursor control, and in debug mode where log records share the
    terminal, the label is printed once instead.
    """

    def __init__(self, console: Console, label: str):
        self.console = console
        self.label = label
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._started_at = 0.0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "Spinner":
        self._started_at = time.monotonic()
        if not self.console.render.ansi or is_debug():
            self.console.echo(f"  ... {self.label}")
            return self
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._animate, name="spinner", daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join()
        self._thread = None
        self.console.write_raw(CLEAR_LINE)

    def _animate(self) -> None:
        frames = self.console.render.spinner_frames
        idx = 0
        while not self._stop_event.is_set():
            frame = self.console.style(frames[idx % len(frames)], fg="cyan")
            elapsed = int(time.monotonic() - self._started_at)
            self.console.write_raw(f"{CLEAR_LINE}  {frame} {self.label} ({elapsed}s)")
            idx += 1
            self._stop_event.wait(FRAME_INTERVAL)

    def __enter__(self) -> "Spinner":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()


def report_result(console: Console, label: str, result: CommandResult, failure_lines: int = FAILURE_OUTPUT_LINES) -> None:
    """Print the final mark for a finished command."""
    if result.ok:
        console.echo(f"  {console.style(console.render.ok_mark, fg='green')} {label}")
        return

    suffix = " (timed out)" if result.timed_out else ""
    console.echo(f"  {console.style(console.render.fail_mark, fg='red')} {label}{suffix}")
    for line in result.head(failure_lines):
        console.echo(console.style(f"      {line}", dim=True))


def run_with_progress(
    console: Console,
    argv: Sequence[str],
    label: str,
    cwd: Path | str | None = None,
    timeout: float | None = None,
    input_text: str | None = None,
) -> CommandResult:
    """Run a command behind a spinner, then show a success or failure mark.

    On failure the first few lines of the command's combined output are
    shown; the full output stays available on the returned result.
    """
    with Spinner(console, label):
        result = run_command(argv, timeout=timeout, cwd=cwd, input_text=input_text)
    report_result(console, label, result)
    return result


__all__ = ["Spinner", "run_with_progress", "report_result", "FAILURE_OUTPUT_LINES"]
