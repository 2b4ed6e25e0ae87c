"""Install command implementation."""

import logging
import sys

import click

from visionsetup.commands.utils import EXIT_SUCCESS, guarded_run, prepare
from visionsetup.installer.orchestrator import InstallOutcome, Installer

_logging = logging.getLogger(__name__)


@click.command()
@click.option("--no-follow", is_flag=True, help="Exit after setup instead of streaming server logs")
@click.pass_context
def install(ctx, no_follow: bool):
    """Install and start the Vision UI MCP Server (the default command)."""
    settings, console = prepare(ctx)
    _logging.info(f"Install started: dir={settings.install_dir} port={settings.default_port}")

    with guarded_run(console):
        installer = Installer(settings, console)
        outcome = installer.run()
        _logging.info(f"Install finished: {outcome.value}")

        if outcome == InstallOutcome.INSTALLED and settings.follow_logs and not no_follow:
            installer.follow_logs()

    sys.exit(EXIT_SUCCESS)
