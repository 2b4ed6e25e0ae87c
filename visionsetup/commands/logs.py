"""Logs command implementation."""

import click

from visionsetup.commands.utils import guarded_run, prepare, require_install
from visionsetup.installer.models import SERVICES


@click.command()
@click.option(
    "--service", "-s",
    type=click.Choice([s.name for s in SERVICES]),
    help="Only show logs of this service",
)
@click.option("--tail", "-n", type=click.IntRange(min=0), default=30, show_default=True, help="Lines to show")
@click.option("--follow", "-f", is_flag=True, help="Keep streaming new log lines")
@click.pass_context
def logs(ctx, service: str | None, tail: int, follow: bool):
    """Show recent service logs."""
    settings, console = prepare(ctx)
    with guarded_run(console):
        stack = require_install(settings)
        if not follow:
            console.echo(stack.logs(service, tail=tail), nl=False)
            return
        try:
            stack.follow_logs(service, tail=tail)
        except KeyboardInterrupt:
            # Ctrl-C is how streaming is meant to end.
            console.echo("")
