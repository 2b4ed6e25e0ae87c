"""Line-oriented status output."""

import logging
import signal
import sys
from contextlib import contextmanager
from typing import Iterator, TextIO

import click

from .render import RenderConfig

_logging = logging.getLogger(__name__)

HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"


class Console:
    """Writes installer messages with markers and colours from a RenderConfig."""

    def __init__(self, render: RenderConfig, stream: TextIO | None = None):
        self.render = render
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def style(self, text: str, **styles) -> str:
        if not self.render.color:
            return text
        return click.style(text, **styles)

    def echo(self, message: str = "", nl: bool = True) -> None:
        click.echo(message, file=self.stream, nl=nl, color=self.render.color)

    def write_raw(self, text: str) -> None:
        """Write control sequences or partial lines and flush."""
        self.stream.write(text)
        self.stream.flush()

    def info(self, message: str) -> None:
        self.echo(f"{self.style('[INFO]', fg='blue')}  {message}")

    def ok(self, message: str) -> None:
        self.echo(f"{self.style('  [OK]', fg='green')}  {message}")

    def warn(self, message: str) -> None:
        _logging.warning(message)
        self.echo(f"{self.style('[WARN]', fg='yellow')}  {message}")

    def fail(self, message: str) -> None:
        _logging.error(message)
        self.echo(f"{self.style('[FAIL]', fg='red')}  {message}")

    def detail(self, lines: str | list[str], indent: int = 4) -> None:
        """Print an indented block (remediation text, command examples)."""
        if isinstance(lines, str):
            lines = lines.splitlines()
        for line in lines:
            self.echo(" " * indent + line if line else "")

    def heading(self, message: str) -> None:
        self.echo(self.style(message, bold=True))

    def step(self, index: int, total: int, title: str) -> None:
        self.echo("")
        self.echo(self.style(f"[{index}/{total}] {title}", bold=True))

    def rule(self, width: int = 45) -> None:
        self.echo("  " + self.render.rule_char * width)

    def banner(self, lines: list[str], fg: str = "blue") -> None:
        for line in self.render.box(lines):
            self.echo(self.style(line, fg=fg))

    def hide_cursor(self) -> None:
        if self.render.ansi:
            self.write_raw(HIDE_CURSOR)

    def show_cursor(self) -> None:
        if self.render.ansi:
            self.write_raw(SHOW_CURSOR)

    @contextmanager
    def cursor_shown(self) -> Iterator[None]:
        """Show the cursor while the operator types, then hide it again."""
        self.show_cursor()
        try:
            yield
        finally:
            self.hide_cursor()


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt


@contextmanager
def terminal_session(console: Console) -> Iterator[Console]:
    """Hide the cursor for the duration of a run and always restore it.

    SIGTERM is turned into KeyboardInterrupt inside the block so that a
    terminated run unwinds through the same cleanup as Ctrl-C.
    """
    previous_handler = None
    try:
        previous_handler = signal.signal(signal.SIGTERM, _raise_interrupt)
    except ValueError:
        # Not on the main thread
        previous_handler = None

    console.hide_cursor()
    try:
        yield console
    finally:
        console.show_cursor()
        if previous_handler is not None:
            signal.signal(signal.SIGTERM, previous_handler)


__all__ = ["Console", "terminal_session", "HIDE_CURSOR", "SHOW_CURSOR"]
