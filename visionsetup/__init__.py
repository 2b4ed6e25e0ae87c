import logging
import sys
from pathlib import Path

from .config import ConfigError, SetupSettings, load_settings
from .errors import (
    InvalidInputError,
    NoTerminalError,
    PrerequisiteError,
    SetupError,
    StepFailedError,
    format_error,
    format_suggestion,
)
from .versions import compare_versions, extract_version_number, version_gte

__version__ = "1.3.0"

_debug_enabled = False


def set_debug(enabled: bool):
    """Enable or disable debug mode globally."""
    global _debug_enabled
    _debug_enabled = enabled


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return _debug_enabled


def setup_logging(debug: bool = False, log_file: Path | None = None) -> None:
    """Configure the package logger.

    Records always go to ``log_file`` (when given) at DEBUG level so a failed
    run can be diagnosed afterwards. With ``debug`` they are mirrored to
    stderr as well. Calling this more than once is a no-op.
    """
    set_debug(debug)
    logger = logging.getLogger("visionsetup")
    if getattr(logger, "_visionsetup_configured", False):
        return

    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(fmt)
            logger.addHandler(file_handler)
        except OSError as e:
            # Logging must never stop an install.
            print(f"Warning: cannot write log file {log_file}: {e}", file=sys.stderr)

    if debug:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(fmt)
        logger.addHandler(console)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    setattr(logger, "_visionsetup_configured", True)
    logger.debug(f"Logging initialized (debug={debug}, file={log_file})")


__all__ = [
    "__version__",
    "ConfigError",
    "SetupSettings",
    "load_settings",
    "SetupError",
    "PrerequisiteError",
    "StepFailedError",
    "InvalidInputError",
    "NoTerminalError",
    "format_error",
    "format_suggestion",
    "compare_versions",
    "extract_version_number",
    "version_gte",
    "set_debug",
    "is_debug",
    "setup_logging",
]
