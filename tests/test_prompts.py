"""Tests for operator input."""

import os
import select
import sys
import threading
import time

import pytest

from visionsetup.errors import NoTerminalError
from visionsetup.prompts import (
    MASK_MARKER,
    RawModeGuard,
    clean_pasted,
    describe_secret,
    mask_preview,
    open_terminal,
    prompt_choice,
    prompt_secret,
    prompt_value,
    read_raw_line,
)

try:
    import termios
except ImportError:
    termios = None

needs_tty = pytest.mark.skipif(termios is None, reason="needs POSIX terminal support")


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    yield read_fd, write_fd
    for fd in (read_fd, write_fd):
        try:
            os.close(fd)
        except OSError:
            pass


def feed(pipe, data: bytes, close: bool = True) -> int:
    read_fd, write_fd = pipe
    os.write(write_fd, data)
    if close:
        os.close(write_fd)
    return read_fd


class TestMaskPreview:
    """Tests for mask_preview function."""

    def test_long_value(self):
        assert mask_preview("ghp_abcdefghijklmnop") == "ghp_abcdef" + MASK_MARKER

    def test_value_at_limit_shown_verbatim(self):
        assert mask_preview("0123456789") == "0123456789"

    def test_short_value_shown_verbatim(self):
        assert mask_preview("abc") == "abc"

    def test_describe_secret_includes_length(self):
        value = "sk-" + "x" * 47
        described = describe_secret(value)

        assert described == "sk-xxxxxxx... (50 characters)"
        assert value not in described


class TestCleanPasted:
    """Tests for clean_pasted function."""

    def test_strips_carriage_returns_and_whitespace(self):
        assert clean_pasted("  ghp_token\r\n") == "ghp_token"
        assert clean_pasted("ghp_\rtoken\r") == "ghp_token"


class TestReadRawLine:
    """Tests for read_raw_line function."""

    def test_stops_at_newline(self, pipe):
        fd = feed(pipe, b"secret\nnext", close=False)
        assert read_raw_line(fd) == "secret"

    def test_stops_at_carriage_return(self, pipe):
        fd = feed(pipe, b"secret\r\n")
        assert read_raw_line(fd) == "secret"

    def test_long_line_survives(self, pipe):
        """Test input longer than a canonical-mode line buffer is read whole."""
        value = "A" * 6000
        read_fd, write_fd = pipe
        os.write(write_fd, value.encode() + b"\n")
        os.close(write_fd)

        assert read_raw_line(read_fd) == value

    def test_backspace_removes_last_char(self, pipe):
        fd = feed(pipe, b"abx\x7fc\x08d\n")
        assert read_raw_line(fd) == "abd"

    def test_backspace_on_empty_input(self, pipe):
        fd = feed(pipe, b"\x7f\x7fok\n")
        assert read_raw_line(fd) == "ok"

    def test_ctrl_d_ends_input(self, pipe):
        fd = feed(pipe, b"partial\x04ignored", close=False)
        assert read_raw_line(fd) == "partial"

    def test_eof_ends_input(self, pipe):
        fd = feed(pipe, b"no newline")
        assert read_raw_line(fd) == "no newline"

    def test_ctrl_c_interrupts(self, pipe):
        fd = feed(pipe, b"abc\x03")
        with pytest.raises(KeyboardInterrupt):
            read_raw_line(fd)

    def test_utf8_split_across_reads(self, pipe):
        fd = feed(pipe, "päss\n".encode())
        assert read_raw_line(fd) == "päss"


class TestOpenTerminal:
    """Tests for open_terminal function."""

    def test_no_terminal_raises_with_guidance(self, mocker):
        mocker.patch.object(sys, "stdin", mocker.Mock(isatty=lambda: False))
        mocker.patch("visionsetup.prompts.TTY_DEVICE", "/nonexistent/tty")

        with pytest.raises(NoTerminalError) as exc_info:
            with open_terminal():
                pass

        assert "no terminal" in exc_info.value.message
        assert "bash <(curl" in exc_info.value.hint
        assert "git clone" in exc_info.value.hint

    def test_reads_from_tty_device_when_stdin_is_piped(self, mocker, temp_dir):
        fake_tty = temp_dir / "tty"
        fake_tty.write_text("from-terminal\n")
        mocker.patch.object(sys, "stdin", mocker.Mock(isatty=lambda: False))
        mocker.patch("visionsetup.prompts.TTY_DEVICE", str(fake_tty))

        with open_terminal() as terminal:
            assert not terminal.is_stdin
            line = terminal.stream.readline()

        assert line == "from-terminal\n"
        assert terminal.stream.closed


class TestPromptValue:
    """Tests for prompt_value via the terminal device."""

    @pytest.fixture
    def fake_tty(self, mocker, temp_dir):
        path = temp_dir / "tty"
        mocker.patch.object(sys, "stdin", mocker.Mock(isatty=lambda: False))
        mocker.patch("visionsetup.prompts.TTY_DEVICE", str(path))
        return path

    def test_returns_cleaned_answer(self, fake_tty):
        fake_tty.write_text("  9090\r\n")
        assert prompt_value("Port: ") == "9090"

    def test_empty_answer_returns_default(self, fake_tty):
        fake_tty.write_text("\n")
        assert prompt_value("Region: ", default="us-east-1") == "us-east-1"

    def test_empty_answer_without_default(self, fake_tty):
        fake_tty.write_text("\n")
        assert prompt_value("Choice: ") == ""

    def test_choice_fallback_lists_options(self, fake_tty, capsys):
        fake_tty.write_text("2\n")

        answer = prompt_choice("Embedding provider", [("1", "OpenAI"), ("2", "AWS Bedrock")], default="1")

        assert answer == "2"
        out = capsys.readouterr().out
        assert "1. OpenAI" in out
        assert "2. AWS Bedrock" in out

    def test_choice_fallback_returns_invalid_answer_as_typed(self, fake_tty):
        fake_tty.write_text("7\n")
        assert prompt_choice("What would you like to do?", [("1", "Update"), ("3", "Quit")]) == "7"


@pytest.fixture
def pty_pair():
    """A pseudo-terminal: (controller fd, terminal fd)."""
    controller, terminal = os.openpty()
    yield controller, terminal
    for fd in (controller, terminal):
        try:
            os.close(fd)
        except OSError:
            pass


def local_flags(fd: int) -> int:
    return termios.tcgetattr(fd)[3]


def type_once_silent(controller: int, terminal: int, data: bytes, timeout: float = 5.0) -> None:
    """Write ``data`` as keyboard input once the terminal stops echoing."""
    deadline = time.monotonic() + timeout
    while local_flags(terminal) & termios.ECHO and time.monotonic() < deadline:
        time.sleep(0.01)
    os.write(controller, data)


@needs_tty
class TestRawModeGuard:
    """Tests for RawModeGuard on a real pseudo-terminal."""

    def test_disables_echo_and_line_editing_then_restores(self, pty_pair):
        _, terminal = pty_pair
        before = termios.tcgetattr(terminal)

        with RawModeGuard(terminal):
            assert not local_flags(terminal) & termios.ECHO
            assert not local_flags(terminal) & termios.ICANON

        assert termios.tcgetattr(terminal) == before

    def test_restores_when_body_raises(self, pty_pair):
        _, terminal = pty_pair
        before = termios.tcgetattr(terminal)

        with pytest.raises(KeyboardInterrupt):
            with RawModeGuard(terminal):
                raise KeyboardInterrupt

        assert termios.tcgetattr(terminal) == before

    def test_restore_runs_once(self, mocker, pty_pair):
        _, terminal = pty_pair
        before = termios.tcgetattr(terminal)

        with RawModeGuard(terminal) as guard:
            guard.restore()
            assert termios.tcgetattr(terminal) == before
            tcsetattr = mocker.spy(termios, "tcsetattr")

        tcsetattr.assert_not_called()
        assert termios.tcgetattr(terminal) == before


@needs_tty
class TestPromptSecret:
    """Tests for prompt_secret over a pseudo-terminal."""

    @pytest.fixture
    def terminal_device(self, mocker, pty_pair):
        _, terminal = pty_pair
        mocker.patch.object(sys, "stdin", mocker.Mock(isatty=lambda: False))
        mocker.patch("visionsetup.prompts.TTY_DEVICE", os.ttyname(terminal))
        return pty_pair

    def test_secret_is_read_without_echo(self, terminal_device, capsys):
        controller, terminal = terminal_device
        typist = threading.Thread(target=type_once_silent, args=(controller, terminal, b"ghp_s3cret-token\r"))
        typist.start()

        value = prompt_secret("  GitHub token (ghp_...): ")
        typist.join()

        assert value == "ghp_s3cret-token"
        ready, _, _ = select.select([controller], [], [], 0.2)
        echoed = os.read(controller, 1024) if ready else b""
        assert b"s3cret" not in echoed
        assert capsys.readouterr().out == "  GitHub token (ghp_...): \n"

    def test_terminal_echoes_again_afterwards(self, terminal_device):
        controller, terminal = terminal_device
        typist = threading.Thread(target=type_once_silent, args=(controller, terminal, b"sk-test\n"))
        typist.start()

        prompt_secret("  OpenAI API key (sk-...): ")
        typist.join()

        assert local_flags(terminal) & termios.ECHO
        assert local_flags(terminal) & termios.ICANON
