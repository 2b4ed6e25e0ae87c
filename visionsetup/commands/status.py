"""Status command implementation."""

import click

from visionsetup.commands.utils import guarded_run, prepare, require_install
from visionsetup.envfile import read_env_value
from visionsetup.installer.health import ServiceState, classify_status, find_service_lines, probe_http
from visionsetup.installer.models import SERVICES
from visionsetup.paths import get_env_path


def configured_port(settings) -> int:
    """MCP_PORT from the install's .env, falling back to the default port."""
    value = read_env_value(get_env_path(settings.install_dir), "MCP_PORT")
    if value and value.strip().isdigit():
        return int(value.strip())
    return settings.default_port


@click.command()
@click.pass_context
def status(ctx):
    """Show service states and whether the MCP endpoint answers."""
    settings, console = prepare(ctx)
    with guarded_run(console):
        stack = require_install(settings)
        port = configured_port(settings)
        url = f"http://localhost:{port}/mcp"

        console.heading(f"Vision UI MCP Server ({settings.install_dir})")
        console.echo("")
        lines = find_service_lines(stack.ps(), [s.name for s in SERVICES])
        for service in SERVICES:
            state = classify_status(lines[service.name])
            label = state.state.value
            if state.state == ServiceState.FAILED:
                label = f"failed (exit {state.exit_code})"
            console.echo(f"  {service.display_name:<18} {label}")
        console.echo("")

        if probe_http(url):
            console.ok(f"MCP endpoint answering at {url}")
        else:
            console.warn(f"MCP endpoint not answering at {url}")
            console.detail([f"Watch logs: {stack.command_hint('logs', '-f', 'mcp-server')}"])
