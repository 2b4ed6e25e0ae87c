"""Terminal output for the installer.

- render: capability detection (colour, cursor control, glyphs)
- console: message markers, banners and the cursor/signal session guard
- spinner: progress animation around long-running commands
- dashboard: in-place service status during the health wait
- summary: welcome banner and end-of-run summaries

``dashboard`` and ``summary`` render installer models and are imported from
their modules directly.
"""

from .console import Console, terminal_session
from .render import RenderConfig
from .spinner import Spinner, report_result, run_with_progress

__all__ = [
    "Console",
    "terminal_session",
    "RenderConfig",
    "Spinner",
    "report_result",
    "run_with_progress",
]
