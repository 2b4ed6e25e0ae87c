"""Operator input that works even when stdin is a pipe.

When the installer is started as ``curl ... | bash`` the process's stdin is the
script itself, so prompts read from the controlling terminal (``/dev/tty``)
instead. Secret prompts switch the terminal to no-echo, non-canonical mode
for the duration of the read: API tokens can be longer than the 4096 byte
line buffer of a canonical-mode terminal and would otherwise be truncated.
"""

import codecs
import logging
import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Sequence, TextIO

import click
import questionary
from prompt_toolkit.styles import Style

from .config import DEFAULT_REPO_URL, SCRIPT_URL
from .errors import NoTerminalError

try:
    import termios
except ImportError:  # native Windows
    termios = None

_logging = logging.getLogger(__name__)

TTY_DEVICE = "/dev/tty"
MASK_PREFIX_LENGTH = 10
MASK_MARKER = "..."

_BACKSPACE = ("\x7f", "\x08")
_END_OF_LINE = ("\n", "\r")
_END_OF_INPUT = "\x04"
_INTERRUPT = "\x03"


@dataclass
class TerminalInput:
    """Where operator input is read from."""
    stream: TextIO
    is_stdin: bool

    def fileno(self) -> int:
        return self.stream.fileno()


def _no_terminal_error() -> NoTerminalError:
    hint = "\n".join([
        "Run this script directly instead of piping:",
        f"  bash <(curl -fsSL {SCRIPT_URL})",
        "",
        "Or clone and run manually:",
        f"  git clone {DEFAULT_REPO_URL} ~/vision-ui-mcp && cd ~/vision-ui-mcp",
        "  cp .env.example .env && nano .env",
        "  docker compose up -d",
    ])
    return NoTerminalError("Cannot read input: no terminal available.", hint=hint)


@contextmanager
def open_terminal() -> Iterator[TerminalInput]:
    """Yield the input source for one prompt.

    Resolution order: stdin when it is a terminal, then the controlling
    terminal device, otherwise NoTerminalError.
    """
    if sys.stdin is not None and sys.stdin.isatty():
        yield TerminalInput(stream=sys.stdin, is_stdin=True)
        return

    try:
        tty = open(TTY_DEVICE, "r", encoding="utf-8", errors="replace")
    except OSError as e:
        _logging.debug(f"Cannot open {TTY_DEVICE}: {e}")
        raise _no_terminal_error()

    try:
        yield TerminalInput(stream=tty, is_stdin=False)
    finally:
        tty.close()


class RawModeGuard:
    """Disable echo and line editing on a terminal until released.

    The previous terminal attributes are restored exactly once, by
    ``restore()`` or on leaving the ``with`` block, whichever comes first.
    """

    def __init__(self, fd: int):
        self.fd = fd
        self._saved = None
        self._restored = False

    def __enter__(self) -> "RawModeGuard":
        self._saved = termios.tcgetattr(self.fd)
        mode = termios.tcgetattr(self.fd)
        mode[3] &= ~(termios.ECHO | termios.ICANON)
        mode[6][termios.VMIN] = 1
        mode[6][termios.VTIME] = 0
        termios.tcsetattr(self.fd, termios.TCSANOW, mode)
        return self

    def restore(self) -> None:
        if self._restored or self._saved is None:
            return
        self._restored = True
        # Drop anything typed or pasted after the line end, e.g. the second
        # half of a CRLF, so it does not answer the next prompt.
        termios.tcflush(self.fd, termios.TCIFLUSH)
        termios.tcsetattr(self.fd, termios.TCSADRAIN, self._saved)

    def __exit__(self, *exc_info) -> None:
        self.restore()


def read_raw_line(fd: int) -> str:
    """Read one line byte-wise from a terminal in raw mode.

    Handles backspace, stops at end of line or Ctrl-D, and accepts lines of
    any length.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    chars: list[str] = []
    while True:
        chunk = os.read(fd, 4096)
        if not chunk:
            break
        for char in decoder.decode(chunk):
            if char in _END_OF_LINE or char == _END_OF_INPUT:
                return "".join(chars)
            if char == _INTERRUPT:
                raise KeyboardInterrupt
            if char in _BACKSPACE:
                if chars:
                    chars.pop()
                continue
            chars.append(char)
    return "".join(chars)


def clean_pasted(value: str) -> str:
    """Strip whitespace and carriage returns left by clipboard pastes."""
    return value.replace("\r", "").strip()


def mask_preview(value: str, visible: int = MASK_PREFIX_LENGTH) -> str:
    """Return the first ``visible`` characters followed by the mask marker.

    Values no longer than ``visible`` are returned unchanged.
    """
    if len(value) <= visible:
        return value
    return value[:visible] + MASK_MARKER


def describe_secret(value: str) -> str:
    """Preview plus length, e.g. ``ghp_abcdef... (40 characters)``."""
    return f"{mask_preview(value)} ({len(value)} characters)"


def prompt_value(label: str, default: str | None = None) -> str:
    """Prompt for a visible value. Returns ``default`` (or "") on empty input."""
    with open_terminal() as terminal:
        if terminal.is_stdin:
            try:
                value = click.prompt(
                    label,
                    default=default if default is not None else "",
                    show_default=bool(default),
                    prompt_suffix="",
                )
            except click.exceptions.Abort:
                # EOF on stdin
                value = ""
        else:
            click.echo(label, nl=False)
            value = terminal.stream.readline()

    value = clean_pasted(value)
    if not value and default is not None:
        return default
    return value


def prompt_secret(label: str) -> str:
    """Prompt for a secret without echoing it.

    The caller must only ever display the result via ``describe_secret``.
    """
    with open_terminal() as terminal:
        if termios is None:
            value = click.prompt(label, default="", show_default=False, hide_input=True, prompt_suffix="")
        else:
            fd = terminal.fileno()
            click.echo(label, nl=False)
            try:
                with RawModeGuard(fd):
                    value = read_raw_line(fd)
            finally:
                click.echo("")

    value = clean_pasted(value)
    _logging.debug(f"Secret captured for prompt {label.strip()!r} ({len(value)} chars)")
    return value


CHOICE_STYLE = Style([
    ("qmark", "fg:ansiblue bold"),
    ("pointer", "fg:ansicyan bold"),
    ("highlighted", "fg:ansicyan"),
])


def prompt_choice(label: str, choices: Sequence[tuple[str, str]], default: str | None = None) -> str:
    """Ask the operator to pick one of ``choices`` (pairs of key and title).

    On an interactive stdin this is an arrow-key menu and the result is
    always one of the keys. Otherwise the options are listed and the typed
    answer is returned as entered; the caller decides what to do with an
    answer that is not a key.
    """
    if sys.stdin.isatty():
        selection = questionary.select(
            label,
            choices=[questionary.Choice(title=title, value=key) for key, title in choices],
            default=default,
            style=CHOICE_STYLE,
        ).ask()
        if selection is None:
            # questionary swallows Ctrl-C and returns None
            raise KeyboardInterrupt
        return selection

    for key, title in choices:
        click.echo(f"    {key}. {title}")
    keys = "/".join(key for key, _ in choices)
    suffix = f" (default {default})" if default else ""
    return prompt_value(f"  {label} [{keys}]{suffix}: ", default=default)


__all__ = [
    "MASK_PREFIX_LENGTH",
    "MASK_MARKER",
    "TerminalInput",
    "open_terminal",
    "RawModeGuard",
    "read_raw_line",
    "clean_pasted",
    "mask_preview",
    "describe_secret",
    "prompt_value",
    "prompt_secret",
    "prompt_choice",
]
