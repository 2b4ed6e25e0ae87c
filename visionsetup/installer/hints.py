"""Remediation text shown after failed checks and steps."""

from ..platforms import Platform

REGISTRY_LOGIN_FIX = "echo YOUR_TOKEN | docker login ghcr.io -u YOUR_USERNAME --password-stdin"

_DOCKER_DESKTOP_WINDOWS = "https://docs.docker.com/desktop/install/windows-install/"

_HINTS: dict[str, dict[Platform | None, list[str]]] = {
    "git": {
        Platform.MACOS: [
            "Install git:",
            "  xcode-select --install",
            "Or install Homebrew first, then: brew install git",
            '  /bin/bash -c "$(curl -fsSL https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh)"',
        ],
        Platform.LINUX: [
            "Install git:",
            "  sudo apt update && sudo apt install -y git      # Debian/Ubuntu",
            "  sudo yum install -y git                         # CentOS/RHEL",
            "  sudo dnf install -y git                         # Fedora",
        ],
        Platform.WINDOWS_GIT_BASH: [
            "Install Git for Windows: https://git-scm.com/download/win",
        ],
    },
    "docker": {
        Platform.MACOS: [
            "Install Docker Desktop for Mac:",
            "  https://docs.docker.com/desktop/install/mac-install/",
            "",
            "Or via Homebrew:",
            "  brew install --cask docker",
            "",
            "After installing, open Docker Desktop from Applications and wait for it to start.",
        ],
        Platform.LINUX: [
            "Install Docker Engine:",
            "  curl -fsSL https://get.docker.com | sh",
            "  sudo usermod -aG docker $USER",
            "  newgrp docker",
            "",
            "Or install Docker Desktop for Linux:",
            "  https://docs.docker.com/desktop/install/linux/",
        ],
        Platform.WSL2: [
            "Install Docker Desktop for Windows (it integrates with WSL2 automatically):",
            f"  {_DOCKER_DESKTOP_WINDOWS}",
            "",
            "After installing, open Docker Desktop and enable WSL2 integration:",
            "  Settings > Resources > WSL Integration > Enable for your distro",
        ],
        Platform.WINDOWS_GIT_BASH: [
            "Install Docker Desktop for Windows:",
            f"  {_DOCKER_DESKTOP_WINDOWS}",
            "",
            "After installing, open Docker Desktop and wait for it to start.",
            "Then re-run this installer from Git Bash.",
        ],
    },
    "daemon": {
        Platform.MACOS: [
            "Open Docker Desktop from your Applications folder and wait for it to start.",
            "You'll see a whale icon in your menu bar when it's ready.",
        ],
        Platform.LINUX: [
            "Start the Docker daemon:",
            "  sudo systemctl start docker",
            "",
            "If you get 'permission denied', add yourself to the docker group:",
            "  sudo usermod -aG docker $USER && newgrp docker",
        ],
        Platform.WSL2: [
            "Open Docker Desktop on Windows and wait for it to start.",
            "Make sure WSL2 integration is enabled:",
            "  Docker Desktop > Settings > Resources > WSL Integration",
        ],
        Platform.WINDOWS_GIT_BASH: [
            "Open Docker Desktop and wait for it to start.",
            "You'll see a whale icon in your system tray when it's ready.",
        ],
    },
    "compose_legacy": {
        None: [
            "Update Docker Desktop to the latest version; Compose v2 is included.",
            "Or install the plugin: https://docs.docker.com/compose/install/",
        ],
    },
    "compose": {
        None: [
            "Update Docker Desktop to the latest version; Compose v2 is included.",
        ],
    },
}

# WSL shares the Linux package managers for git.
_HINTS["git"][Platform.WSL2] = _HINTS["git"][Platform.LINUX]


def remediation(hint_key: str, platform: Platform) -> list[str]:
    """Lines of remediation text for a failed check, or [] if there is none."""
    table = _HINTS.get(hint_key)
    if not table:
        return []
    return list(table.get(platform) or table.get(None) or [])


def pull_failure_hint(install_dir) -> list[str]:
    return [
        "Common causes:",
        f"  - ghcr.io auth failed (re-run: {REGISTRY_LOGIN_FIX})",
        "  - Network/firewall blocking ghcr.io",
        "  - Your GitHub token doesn't have 'read:packages' scope",
        "",
        f"Your files are saved in {install_dir}. Fix the issue and run:",
        f"  cd {install_dir} && docker compose up -d",
    ]


def start_failure_hint(install_dir, port: int) -> list[str]:
    alternate = 9090 if port != 9090 else 9191
    return [
        f"Check the logs:  cd {install_dir} && docker compose logs",
        "",
        "Common issues:",
        f"  - Port {port} in use > Set MCP_PORT={alternate} in .env",
        "  - Port 5432 in use > Remove postgres 'ports' section from docker-compose.yml",
        "  - Not enough memory > Increase Docker memory (Docker Desktop > Settings > Resources)",
    ]


def login_failure_hint() -> list[str]:
    return [
        "If the images are private, docker pull will fail.",
        f"To fix manually: {REGISTRY_LOGIN_FIX}",
    ]


__all__ = [
    "REGISTRY_LOGIN_FIX",
    "remediation",
    "pull_failure_hint",
    "start_failure_hint",
    "login_failure_hint",
]
