"""CLI command definitions for vision-ui-mcp-setup."""

import click

from visionsetup import __version__
from visionsetup.commands.install import install
from visionsetup.commands.logs import logs
from visionsetup.commands.status import status
from visionsetup.commands.uninstall import uninstall
from visionsetup.commands.update import update


@click.group(invoke_without_command=True)
@click.option("--debug", is_flag=True, help="Enable debug output for troubleshooting")
@click.version_option(__version__, prog_name="vision-ui-mcp-setup")
@click.pass_context
def cli(ctx, debug):
    """Set up and manage a local Vision UI MCP Server.

    Run without a command to install.
    """
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    if ctx.invoked_subcommand is None:
        ctx.invoke(install)


# Register all commands
cli.add_command(install)
cli.add_command(update)
cli.add_command(status)
cli.add_command(logs)
cli.add_command(uninstall)

__all__ = ["cli"]


if __name__ == "__main__":
    cli()
