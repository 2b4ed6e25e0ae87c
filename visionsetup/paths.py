"""Filesystem locations used by the installer."""

import os
from pathlib import Path


def get_config_dir() -> Path:
    """Return the settings directory: ~/.config/vision-ui-mcp"""
    return Path.home() / ".config" / "vision-ui-mcp"


def get_settings_path() -> Path:
    """Return path to the optional installer settings file.

    Priority:
    1. VISION_UI_MCP_SETUP_CONFIG environment variable (if set)
    2. ~/.config/vision-ui-mcp/setup.yaml
    """
    if "VISION_UI_MCP_SETUP_CONFIG" in os.environ:
        return Path(os.environ["VISION_UI_MCP_SETUP_CONFIG"]).expanduser()
    return get_config_dir() / "setup.yaml"


def get_default_install_dir() -> Path:
    """Return ~/vision-ui-mcp unless VISION_UI_MCP_DIR overrides it."""
    if os.environ.get("VISION_UI_MCP_DIR"):
        return Path(os.environ["VISION_UI_MCP_DIR"]).expanduser().absolute()
    return Path.home() / "vision-ui-mcp"


def get_log_path() -> Path:
    return Path.home() / ".vision-ui-mcp-setup.log"


def get_env_path(install_dir: Path) -> Path:
    return install_dir / ".env"
