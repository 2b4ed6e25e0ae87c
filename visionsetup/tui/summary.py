"""Banners and end-of-run summaries."""

import json

from ..installer.models import InstallSession
from .console import Console

MCP_SERVER_NAME = "vision-ui"


def print_welcome(console: Console) -> None:
    console.echo("")
    console.banner([
        "Vision UI MCP Server - Setup",
        "",
        "Connects the Vision UI component library to your",
        "AI coding tools (GitHub Copilot, Claude, Cursor).",
    ])


def editor_config(server_url: str, servers_key: str) -> str:
    """JSON snippet registering the MCP server under ``servers_key``."""
    document = {servers_key: {MCP_SERVER_NAME: {"type": "http", "url": server_url}}}
    return json.dumps(document, indent=2)


def day_to_day_commands(install_dir) -> list[tuple[str, str]]:
    cd = f"cd {install_dir} &&"
    return [
        ("Start", f"{cd} docker compose up -d"),
        ("Stop", f"{cd} docker compose down"),
        ("Logs", f"{cd} docker compose logs -f"),
        ("Update", f"{cd} docker compose pull && docker compose up -d"),
        ("Uninstall", f"{cd} docker compose down -v && rm -rf {install_dir}"),
    ]


def print_success(console: Console, session: InstallSession) -> None:
    url = session.server_url
    console.echo("")
    console.banner(["Vision UI MCP Server is running!", "", f"Endpoint: {url}"], fg="green")
    console.echo("")

    console.heading("  Step 1: Add MCP config to your AI tool")
    console.echo("")
    console.echo(console.style("  For VS Code / GitHub Copilot / Cursor:", fg="yellow"))
    console.echo("  Create .vscode/mcp.json in your project:")
    console.echo("")
    console.detail(editor_config(url, "servers"))
    console.echo("")
    console.echo(console.style("  For Claude Code:", fg="yellow"))
    console.echo("  Add to .claude/settings.json:")
    console.echo("")
    console.detail(editor_config(url, "mcpServers"))
    console.echo("")

    console.heading("  Step 2: Reload your editor")
    console.echo(
        f"  VS Code: Cmd+Shift+P (Mac) / Ctrl+Shift+P (Windows/Linux) {console.render.arrow} 'Reload Window'"
    )
    console.echo("")
    console.heading("  Step 3: Try it out")
    console.echo('  In Copilot Chat or Claude Code, ask: "Search for Button component"')
    console.echo("")
    console.rule()
    console.echo("")
    print_commands(console, session.install_directory)
    console.echo(f"  Need help? Check the README in {session.install_directory}")
    console.echo("")


def print_commands(console: Console, install_dir) -> None:
    console.echo("  Day-to-day commands:")
    for name, command in day_to_day_commands(install_dir):
        console.echo(f"    {name + ':':<11}{command}")
    console.echo("")


def print_timeout_warning(console: Console, session: InstallSession, waited: float) -> None:
    console.warn(f"Timed out after {int(waited)}s. The server may still be indexing.")
    console.detail([
        f"Check status: cd {session.install_directory} && docker compose ps",
        f"Watch logs:   cd {session.install_directory} && docker compose logs -f mcp-server",
        f"When ready, the server answers at {session.server_url}",
    ], indent=5)


__all__ = [
    "MCP_SERVER_NAME",
    "print_welcome",
    "editor_config",
    "day_to_day_commands",
    "print_success",
    "print_commands",
    "print_timeout_warning",
]
