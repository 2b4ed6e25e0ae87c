"""Uninstall command implementation."""

import logging
import shutil

import click

from visionsetup import SetupError
from visionsetup.commands.utils import guarded_run, prepare, require_install

_logging = logging.getLogger(__name__)


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def uninstall(ctx, yes: bool):
    """Stop the services, delete their data and remove the install directory."""
    settings, console = prepare(ctx)
    with guarded_run(console):
        stack = require_install(settings)
        directory = settings.install_dir
        if not yes:
            with console.cursor_shown():
                confirmed = click.confirm(
                    f"Remove {directory} and all MCP server data (database volume included)?", default=False
                )
            if not confirmed:
                console.info("Nothing removed.")
                return

        result = stack.down(volumes=True)
        if not result.ok:
            console.warn("docker compose down failed; removing files anyway.")
            console.detail(result.head())

        try:
            shutil.rmtree(directory)
        except OSError as e:
            raise SetupError(
                f"Could not remove {directory}: {e.strerror or e}",
                hint=f"Remove it manually: rm -rf {directory}",
            )
        _logging.info(f"Removed installation at {directory}")
        console.ok(f"Removed {directory}")
