"""Port availability and ownership for the MCP server port."""

import logging
import socket
from enum import Enum
from typing import Callable

from ..errors import InvalidInputError
from ..execution import PROBE_TIMEOUT, command_exists, run_command
from ..prompts import prompt_value
from ..tui.console import Console
from .models import InstallSession

_logging = logging.getLogger(__name__)

MIN_PORT = 1024
MAX_PORT = 65535

# Processes the container engine uses to publish container ports on the host.
# lsof cuts command names to nine characters ("com.docker.backend" -> "com.docke").
ENGINE_HELPERS = ("docker-proxy", "com.docke", "vpnkit", "wslrelay", "docker")

# Container names that mean the port is held by a previous install of this stack.
OWN_CONTAINER_MARKERS = ("vision-ui-mcp", "mcp-server")


class PortOwner(Enum):
    FREE = "free"
    OWN_INSTALL = "own_install"
    ENGINE_HELPER = "engine_helper"
    FOREIGN = "foreign"


def is_port_in_use(port: int, host: str = "127.0.0.1") -> bool:
    """True if something accepts TCP connections on ``host:port``."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.settimeout(1)
        return sock.connect_ex((host, port)) == 0


def listening_processes(port: int) -> list[str]:
    """Names of processes listening on ``port``, from lsof or ss.

    Returns [] when neither tool is available or the owner is hidden from us
    (other users' processes without root).
    """
    if command_exists("lsof"):
        result = run_command(["lsof", "-nP", f"-iTCP:{port}", "-sTCP:LISTEN"], timeout=PROBE_TIMEOUT)
        lines = result.output.splitlines()[1:] if result.ok else []
        return [line.split()[0] for line in lines if line.split()]

    if command_exists("ss"):
        result = run_command(["ss", "-tlnpH", f"sport = :{port}"], timeout=PROBE_TIMEOUT)
        names = []
        for line in result.output.splitlines() if result.ok else []:
            # users:(("docker-proxy",pid=1234,fd=4))
            if 'users:(("' in line:
                names.append(line.split('users:(("', 1)[1].split('"', 1)[0])
        return names

    return []


def published_containers(port: int) -> list[str]:
    """Names of running containers publishing ``port``."""
    if not command_exists("docker"):
        return []
    result = run_command(
        ["docker", "ps", "--filter", f"publish={port}", "--format", "{{.Names}}"],
        timeout=PROBE_TIMEOUT,
    )
    if not result.ok:
        return []
    return [line.strip() for line in result.output.splitlines() if line.strip()]


def identify_port_owner(
    port: int,
    in_use: Callable[[int], bool] = is_port_in_use,
    containers: Callable[[int], list[str]] = published_containers,
    processes: Callable[[int], list[str]] = listening_processes,
) -> PortOwner:
    if not in_use(port):
        return PortOwner.FREE

    for name in containers(port):
        if any(marker in name for marker in OWN_CONTAINER_MARKERS):
            _logging.debug(f"Port {port} held by own container {name}")
            return PortOwner.OWN_INSTALL

    for name in processes(port):
        if any(name.startswith(helper) for helper in ENGINE_HELPERS):
            _logging.debug(f"Port {port} held by engine helper {name}")
            return PortOwner.ENGINE_HELPER

    return PortOwner.FOREIGN


def validate_port(text: str) -> int | None:
    """Parse an alternate port answer.

    Returns None for an empty answer (keep the current port).

    Raises:
        InvalidInputError: If the answer is not a number in 1024-65535
    """
    text = text.strip()
    if not text:
        return None
    if not (text.isascii() and text.isdigit()):
        raise InvalidInputError(
            f"'{text}' is not a port number",
            hint=f"Re-run and enter a number between {MIN_PORT} and {MAX_PORT}.",
        )
    port = int(text)
    if not MIN_PORT <= port <= MAX_PORT:
        raise InvalidInputError(
            f"Port {port} is out of range",
            hint=f"Re-run and choose a port between {MIN_PORT} and {MAX_PORT}.",
        )
    return port


def negotiate_port(
    session: InstallSession,
    console: Console,
    prompt: Callable[[str], str] = prompt_value,
    owner_of: Callable[[int], PortOwner] = identify_port_owner,
) -> PortOwner:
    """Check the session port and ask for another one if a stranger holds it.

    Returns the owner found for the original port. On a foreign owner the
    session port is updated to the operator's choice, or left unchanged when
    the answer is empty.
    """
    port = session.port
    owner = owner_of(port)

    if owner == PortOwner.FREE:
        console.ok(f"Port {port} is available")
    elif owner == PortOwner.OWN_INSTALL:
        console.warn(f"Port {port} is used by a previous Vision UI MCP install; it will be reclaimed.")
    elif owner == PortOwner.ENGINE_HELPER:
        console.warn(f"Port {port} is held by the Docker engine; it will be reclaimed when the stack restarts.")
    else:
        console.warn(f"Port {port} is already in use by another program.")
        answer = prompt(f"  Enter a different port ({MIN_PORT}-{MAX_PORT}), or press Enter to keep {port}: ")
        new_port = validate_port(answer)
        if new_port is None:
            console.warn(f"Keeping port {port}; the MCP server may fail to start.")
        else:
            session.set_port(new_port)
            console.ok(f"Using port {new_port}")
    return owner


__all__ = [
    "MIN_PORT",
    "MAX_PORT",
    "PortOwner",
    "is_port_in_use",
    "listening_processes",
    "published_containers",
    "identify_port_owner",
    "validate_port",
    "negotiate_port",
]
