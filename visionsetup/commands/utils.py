"""Shared plumbing for commands: settings, console and error handling."""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator

import click

from visionsetup import (
    ConfigError,
    SetupError,
    SetupSettings,
    format_error,
    format_suggestion,
    is_debug,
    load_settings,
    setup_logging,
)
from visionsetup.errors import EXIT_FAILURE
from visionsetup.installer.stack import ComposeStack
from visionsetup.paths import get_log_path, get_settings_path
from visionsetup.tui.console import Console, terminal_session
from visionsetup.tui.render import RenderConfig

_logging = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_INTERRUPTED = 130


def prepare(ctx: click.Context) -> tuple[SetupSettings, Console]:
    """Configure logging, load settings and build the console for a command."""
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug, get_log_path())
    try:
        settings = load_settings()
    except ConfigError as e:
        click.echo(format_suggestion(str(e), f"fix or remove {get_settings_path()}"), err=True)
        sys.exit(EXIT_FAILURE)
    _logging.debug(f"Settings: {settings}")
    return settings, Console(RenderConfig.detect())


def report_error(error: SetupError) -> None:
    _logging.error(f"{type(error).__name__}: {error.message}")
    if is_debug():
        _logging.debug("Traceback", exc_info=error)
    click.echo("", err=True)
    click.echo(format_error(error.message), err=True)
    if error.hint:
        for line in error.hint.splitlines():
            click.echo(f"  {line}" if line else "", err=True)


@contextmanager
def guarded_run(console: Console) -> Iterator[Console]:
    """Run a command body with the cursor guard and map failures to exit codes.

    ``SetupError`` exits with its own code after printing message and hint;
    Ctrl-C or SIGTERM exits with 130.
    """
    try:
        with terminal_session(console):
            yield console
    except SetupError as e:
        report_error(e)
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        _logging.warning("Interrupted by user")
        click.echo("", err=True)
        click.echo("Interrupted. Nothing further was changed; re-run the installer to continue.", err=True)
        sys.exit(EXIT_INTERRUPTED)


def require_install(settings: SetupSettings) -> ComposeStack:
    """Stack adapter for an existing install.

    Raises:
        SetupError: If the install directory does not exist
    """
    if not settings.install_dir.is_dir():
        raise SetupError(
            f"No installation found at {settings.install_dir}",
            hint="Run vision-ui-mcp-setup to install, or set VISION_UI_MCP_DIR to the install directory.",
        )
    return ComposeStack(settings.install_dir, registry=settings.registry, registry_user=settings.registry_user)


__all__ = [
    "EXIT_SUCCESS",
    "EXIT_INTERRUPTED",
    "prepare",
    "report_error",
    "guarded_run",
    "require_install",
]
