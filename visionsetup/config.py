"""Installer settings loading and validation."""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from .paths import get_default_install_dir, get_settings_path

_logging = logging.getLogger(__name__)

DEFAULT_REPO_URL = "https://github.com/montycloud/mc-vision-ui-mcp-setup.git"
SCRIPT_URL = "https://raw.githubusercontent.com/montycloud/mc-vision-ui-mcp-setup/main/setup.sh"


class ConfigError(Exception):
    """Raised when the settings file cannot be loaded or is invalid."""
    pass


@dataclass
class SetupSettings:
    """Tunables for one installer run.

    ``health_timeout`` of 0 means the health wait polls until the server
    answers or the main service exits; a positive value is a safety ceiling
    that ends the wait with a warning.
    """
    repo_url: str = DEFAULT_REPO_URL
    install_dir: Path = field(default_factory=get_default_install_dir)
    default_port: int = 8080
    min_docker_version: str = "20.10"
    min_compose_version: str = "2.0"
    min_disk_gb: int = 10
    min_ram_gb: int = 4
    health_interval: float = 5
    health_timeout: float = 0
    registry: str = "ghcr.io"
    registry_user: str = "token"
    login_timeout: float = 30
    follow_logs: bool = True

    def __post_init__(self):
        if not self.repo_url or not isinstance(self.repo_url, str):
            raise ValueError("repo_url must be a non-empty string")
        if not isinstance(self.install_dir, Path):
            self.install_dir = Path(str(self.install_dir)).expanduser()
        if not self.install_dir.is_absolute():
            self.install_dir = self.install_dir.absolute()
        if not isinstance(self.default_port, int) or not 1 <= self.default_port <= 65535:
            raise ValueError("default_port must be an integer between 1 and 65535")
        for name in ("min_docker_version", "min_compose_version", "registry", "registry_user"):
            value = getattr(self, name)
            if not value or not isinstance(value, str):
                raise ValueError(f"{name} must be a non-empty string")
        for name in ("min_disk_gb", "min_ram_gb"):
            if not isinstance(getattr(self, name), int) or getattr(self, name) < 0:
                raise ValueError(f"{name} must be a non-negative integer")
        if self.health_interval <= 0:
            raise ValueError("health_interval must be positive")
        if self.health_timeout < 0:
            raise ValueError("health_timeout must be 0 (unbounded) or positive")
        if self.login_timeout <= 0:
            raise ValueError("login_timeout must be positive")


def validate_settings(data: dict) -> SetupSettings:
    """Validate and convert a raw mapping into SetupSettings.

    Args:
        data: Mapping loaded from the YAML settings file

    Returns:
        SetupSettings with defaults for every key not given

    Raises:
        ConfigError: If a key is unknown or a value is invalid
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Settings must be a mapping, got {type(data).__name__}")

    known = {f.name for f in fields(SetupSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(
            f"Unknown setting(s): {', '.join(unknown)}. "
            f"Valid settings: {', '.join(sorted(known))}"
        )

    try:
        return SetupSettings(**data)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid settings: {e}")


def load_settings(path: Path | None = None) -> SetupSettings:
    """Load installer settings, falling back to defaults when no file exists."""
    settings_path = path or get_settings_path()
    if not settings_path.exists():
        _logging.debug(f"No settings file at {settings_path}, using defaults")
        return SetupSettings()

    try:
        with open(settings_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {settings_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read {settings_path}: {e}")

    settings = validate_settings(data)
    if os.environ.get("VISION_UI_MCP_DIR"):
        settings.install_dir = get_default_install_dir()
    _logging.debug(f"Loaded settings from {settings_path}")
    return settings


__all__ = [
    "ConfigError",
    "SetupSettings",
    "validate_settings",
    "load_settings",
    "DEFAULT_REPO_URL",
    "SCRIPT_URL",
]
