"""In-place status display for the health wait."""

from ..installer.health import ServiceState, StatusSnapshot
from ..installer.models import SERVICES
from .console import Console
from .render import RenderConfig

ERASE_LINE = "\033[1A\033[2K"

_ICONS = {
    ServiceState.WAITING: ("○", "o", "white"),
    ServiceState.STARTING: ("◐", "~", "yellow"),
    ServiceState.RUNNING: ("●", "*", "cyan"),
    ServiceState.HEALTHY: ("✔", "+", "green"),
    ServiceState.COMPLETED: ("✔", "+", "green"),
    ServiceState.FAILED: ("✖", "x", "red"),
}


def _format_elapsed(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs:02d}s" if minutes else f"{secs}s"


def _state_label(state: ServiceState, exit_code: int | None) -> str:
    if state == ServiceState.FAILED and exit_code is not None:
        return f"failed (exit {exit_code})"
    if state == ServiceState.COMPLETED:
        return "done"
    return state.value


def render_lines(snapshot: StatusSnapshot, render: RenderConfig) -> list[tuple[str, str | None]]:
    """Lines of one dashboard frame as (text, colour) pairs.

    Text is cut to the terminal width so no line wraps; the line count of a
    frame is then exactly the number of terminal rows it occupies.
    """
    width = max(render.width - 1, 20)
    lines: list[tuple[str, str | None]] = [
        (f"  Waiting for services ({_format_elapsed(snapshot.elapsed)})", None),
    ]
    for service in SERVICES:
        status = snapshot.services.get(service.name)
        state = status.state if status else ServiceState.WAITING
        exit_code = status.exit_code if status else None
        unicode_icon, ascii_icon, colour = _ICONS[state]
        icon = unicode_icon if render.unicode else ascii_icon
        label = _state_label(state, exit_code)
        lines.append((f"    {icon} {service.display_name:<18} {label}", colour))
    lines.append((f"  {render.arrow} {snapshot.phase}", None))
    return [(text[:width], colour) for text, colour in lines]


def plain_line(snapshot: StatusSnapshot) -> str:
    """One-line summary for terminals without cursor control."""
    states = ", ".join(
        f"{service.name}={snapshot.services[service.name].state.value}"
        for service in SERVICES
        if service.name in snapshot.services
    )
    return f"  {snapshot.phase}: {states}" if states else f"  {snapshot.phase}"


class StatusDashboard:
    """Redraws the service table in place on every poll."""

    def __init__(self, console: Console):
        self.console = console
        self._drawn = 0
        self._last_plain: str | None = None

    def update(self, snapshot: StatusSnapshot) -> None:
        if not self.console.render.ansi:
            line = plain_line(snapshot)
            if line != self._last_plain:
                self.console.echo(line)
                self._last_plain = line
            return

        frame = render_lines(snapshot, self.console.render)
        self.console.write_raw(ERASE_LINE * self._drawn)
        for text, colour in frame:
            self.console.echo(self.console.style(text, fg=colour) if colour else text)
        self._drawn = len(frame)

    def clear(self) -> None:
        """Erase the last frame so the next output starts where the table was."""
        if self.console.render.ansi and self._drawn:
            self.console.write_raw(ERASE_LINE * self._drawn)
        self._drawn = 0


__all__ = ["StatusDashboard", "render_lines", "plain_line", "ERASE_LINE"]
