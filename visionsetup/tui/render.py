"""Terminal capability detection.

Capabilities are detected once at startup into an immutable RenderConfig
that is passed to every function that writes to the terminal.
"""

import os
import shutil
import sys
from dataclasses import dataclass
from typing import TextIO

UNICODE_SPINNER = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
ASCII_SPINNER = ("|", "/", "-", "\\")


@dataclass(frozen=True)
class RenderConfig:
    """What the output terminal can display.

    Attributes:
        color: ANSI colours may be used
        ansi: cursor movement and line erasing may be used
        unicode: non-ASCII glyphs may be used
        width: terminal width in columns
    """
    color: bool = False
    ansi: bool = False
    unicode: bool = False
    width: int = 80

    @classmethod
    def detect(cls, stream: TextIO | None = None, environ: dict | None = None) -> "RenderConfig":
        stream = stream if stream is not None else sys.stdout
        env = environ if environ is not None else os.environ

        is_tty = hasattr(stream, "isatty") and stream.isatty()
        dumb = env.get("TERM", "") == "dumb"
        ansi = is_tty and not dumb
        color = ansi and not env.get("NO_COLOR")

        return cls(
            color=color,
            ansi=ansi,
            unicode=_locale_is_utf8(env),
            width=_terminal_width(),
        )

    @property
    def spinner_frames(self) -> tuple[str, ...]:
        return UNICODE_SPINNER if self.unicode else ASCII_SPINNER

    @property
    def ok_mark(self) -> str:
        return "✔" if self.unicode else "[OK]"

    @property
    def fail_mark(self) -> str:
        return "✖" if self.unicode else "[FAIL]"

    @property
    def arrow(self) -> str:
        return "→" if self.unicode else "->"

    @property
    def rule_char(self) -> str:
        return "─" if self.unicode else "-"

    def box(self, lines: list[str], width: int = 56) -> list[str]:
        """Frame ``lines`` in a box ``width`` columns wide inside the borders."""
        if self.unicode:
            top, bottom, side = "╔" + "═" * width + "╗", "╚" + "═" * width + "╝", "║"
        else:
            top = bottom = "+" + "-" * width + "+"
            side = "|"
        body = [f"{side}{('   ' + line).ljust(width)[:width]}{side}" for line in ["", *lines, ""]]
        return [top, *body, bottom]


def _locale_is_utf8(env) -> bool:
    for name in ("LC_ALL", "LC_CTYPE", "LANG"):
        value = env.get(name)
        if value:
            return "utf-8" in value.lower() or "utf8" in value.lower()
    return False


def _terminal_width() -> int:
    try:
        return shutil.get_terminal_size(fallback=(80, 24)).columns
    except (ValueError, OSError):
        return 80


__all__ = ["RenderConfig", "UNICODE_SPINNER", "ASCII_SPINNER"]
