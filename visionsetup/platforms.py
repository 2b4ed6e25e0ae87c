"""Host platform and CPU architecture detection."""

import os
import platform
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

PROC_VERSION = Path("/proc/version")


class Platform(Enum):
    MACOS = "macos"
    LINUX = "linux"
    WSL2 = "wsl"
    WINDOWS_GIT_BASH = "windows-gitbash"
    UNKNOWN = "unknown"


class Architecture(Enum):
    X64 = "x64"
    ARM64 = "arm64"
    ARMV7 = "armv7"
    UNKNOWN = "unknown"

    @property
    def chip(self) -> str:
        return _CHIP_NAMES[self]


_CHIP_NAMES = {
    Architecture.X64: "Intel/AMD x64",
    Architecture.ARM64: "ARM64 (Apple Silicon / Graviton)",
    Architecture.ARMV7: "ARM 32-bit",
    Architecture.UNKNOWN: "Unknown",
}


@dataclass(frozen=True)
class PlatformInfo:
    platform: Platform
    architecture: Architecture

    @property
    def is_supported(self) -> bool:
        return (
            self.platform != Platform.UNKNOWN
            and self.architecture != Architecture.ARMV7
        )

    def describe(self) -> str:
        return f"{self.platform.value} / {self.architecture.chip}"


def _is_wsl(proc_version: Path = PROC_VERSION) -> bool:
    try:
        return "microsoft" in proc_version.read_text(errors="replace").lower()
    except OSError:
        return False


def classify_platform(kernel: str, wsl_marker: bool = False) -> Platform:
    """Map a kernel name (``uname -s``) to a Platform."""
    if kernel == "Darwin":
        return Platform.MACOS
    if kernel == "Linux":
        return Platform.WSL2 if wsl_marker else Platform.LINUX
    if kernel.upper().startswith(("MINGW", "MSYS", "CYGWIN")):
        return Platform.WINDOWS_GIT_BASH
    return Platform.UNKNOWN


def classify_architecture(machine: str) -> Architecture:
    """Map a machine string (``uname -m``) to an Architecture."""
    machine = machine.lower()
    if machine in ("x86_64", "amd64"):
        return Architecture.X64
    if machine in ("arm64", "aarch64"):
        return Architecture.ARM64
    if machine in ("armv7l", "armhf"):
        return Architecture.ARMV7
    return Architecture.UNKNOWN


def detect_platform() -> PlatformInfo:
    """Detect the host platform and architecture.

    Unknown values map to the UNKNOWN variants rather than failing; the
    prerequisite checker decides what is fatal.
    """
    kernel = platform.system() or "unknown"
    machine = platform.machine() or "unknown"
    if kernel == "Windows" and os.environ.get("MSYSTEM"):
        # Native Windows Python launched from Git Bash
        kernel = os.environ["MSYSTEM"]
    wsl = kernel == "Linux" and _is_wsl()
    return PlatformInfo(
        platform=classify_platform(kernel, wsl_marker=wsl),
        architecture=classify_architecture(machine),
    )


__all__ = [
    "Platform",
    "Architecture",
    "PlatformInfo",
    "classify_platform",
    "classify_architecture",
    "detect_platform",
]
