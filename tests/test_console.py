"""Tests for console output and the terminal session guard."""

import os
import signal
import sys

import pytest

from visionsetup.errors import StepFailedError
from visionsetup.tui.console import HIDE_CURSOR, SHOW_CURSOR, terminal_session


@pytest.fixture
def sigterm_handler():
    """Install a known SIGTERM handler and put the original back afterwards."""

    def marker(signum, frame):
        pass

    original = signal.signal(signal.SIGTERM, marker)
    yield marker
    signal.signal(signal.SIGTERM, original)


class TestConsole:
    """Tests for Console output helpers."""

    def test_plain_console_writes_no_cursor_codes(self, plain_console, output):
        plain_console.hide_cursor()
        with plain_console.cursor_shown():
            pass
        plain_console.show_cursor()

        assert output.getvalue() == ""

    def test_cursor_shown_hides_again_on_error(self, ansi_console, output):
        with pytest.raises(KeyboardInterrupt):
            with ansi_console.cursor_shown():
                raise KeyboardInterrupt

        assert output.getvalue() == SHOW_CURSOR + HIDE_CURSOR

    def test_markers(self, plain_console, output):
        plain_console.ok("Docker daemon is running")
        plain_console.warn("Low RAM: 2GB")

        assert output.getvalue().splitlines() == [
            "  [OK]  Docker daemon is running",
            "[WARN]  Low RAM: 2GB",
        ]


class TestTerminalSession:
    """Tests for terminal_session."""

    def test_cursor_hidden_then_shown(self, ansi_console, output):
        with terminal_session(ansi_console):
            assert output.getvalue() == HIDE_CURSOR

        assert output.getvalue() == HIDE_CURSOR + SHOW_CURSOR

    @pytest.mark.parametrize("error", [KeyboardInterrupt(), StepFailedError("Failed to pull Docker images")])
    def test_cursor_restored_when_run_stops(self, ansi_console, output, sigterm_handler, error):
        with pytest.raises(type(error)):
            with terminal_session(ansi_console):
                ansi_console.echo("  Pulling images")
                raise error

        assert output.getvalue().startswith(HIDE_CURSOR)
        assert output.getvalue().endswith(SHOW_CURSOR)
        assert signal.getsignal(signal.SIGTERM) is sigterm_handler

    def test_sigterm_handler_replaced_inside_session(self, ansi_console, sigterm_handler):
        with terminal_session(ansi_console):
            assert signal.getsignal(signal.SIGTERM) is not sigterm_handler

        assert signal.getsignal(signal.SIGTERM) is sigterm_handler

    @pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX signals")
    def test_sigterm_unwinds_like_ctrl_c(self, ansi_console, output, sigterm_handler):
        with pytest.raises(KeyboardInterrupt):
            with terminal_session(ansi_console):
                os.kill(os.getpid(), signal.SIGTERM)

        assert output.getvalue().endswith(SHOW_CURSOR)
        assert signal.getsignal(signal.SIGTERM) is sigterm_handler
