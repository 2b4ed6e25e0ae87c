"""Update command implementation."""

import click

from visionsetup.commands.utils import guarded_run, prepare, require_install
from visionsetup.installer.orchestrator import update_stack


@click.command()
@click.pass_context
def update(ctx):
    """Pull the latest images and restart the services."""
    settings, console = prepare(ctx)
    with guarded_run(console):
        stack = require_install(settings)
        console.info(f"Updating installation in {settings.install_dir}...")
        update_stack(stack, console)
        console.ok("Updated! MCP server is restarting.")
