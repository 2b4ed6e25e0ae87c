"""Prerequisite checks run before anything is installed."""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from ..config import SetupSettings
from ..errors import PrerequisiteError
from ..execution import PROBE_TIMEOUT, command_exists, run_command
from ..platforms import Architecture, Platform, PlatformInfo
from ..prompts import prompt_value
from ..tui.console import Console
from ..versions import extract_version_number, version_gte
from .hints import remediation
from .models import InstallSession
from .ports import PortOwner, negotiate_port

_logging = logging.getLogger(__name__)

BYTES_PER_GB = 1024 ** 3
MEMINFO_PATH = Path("/proc/meminfo")


class CheckStatus(Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    SKIP = "skip"
    INFO = "info"


@dataclass
class CheckResult:
    name: str
    status: CheckStatus
    message: str = ""
    hint_key: str | None = None
    reported: bool = False


@dataclass
class PrerequisiteReport:
    results: list[CheckResult] = field(default_factory=list)

    @property
    def failures(self) -> list[CheckResult]:
        return [r for r in self.results if r.status == CheckStatus.FAIL]

    @property
    def warnings(self) -> list[CheckResult]:
        return [r for r in self.results if r.status == CheckStatus.WARN]

    def status_of(self, name: str) -> CheckStatus | None:
        for result in self.results:
            if result.name == name:
                return result.status
        return None


def check_platform(info: PlatformInfo) -> list[CheckResult]:
    results = [CheckResult("platform", CheckStatus.INFO, f"Platform: {info.describe()}")]
    if info.is_supported:
        return results
    if info.platform == Platform.UNKNOWN:
        results.append(CheckResult(
            "platform_supported",
            CheckStatus.FAIL,
            "Unsupported operating system. This installer supports macOS, Linux, and Windows (WSL2 / Git Bash).",
        ))
    if info.architecture == Architecture.ARMV7:
        results.append(CheckResult(
            "architecture",
            CheckStatus.FAIL,
            "32-bit ARM is not supported. Docker images require 64-bit (x64 or arm64).",
        ))
    return results


def check_git() -> CheckResult:
    if not command_exists("git"):
        return CheckResult("git", CheckStatus.FAIL, "git is not installed.", hint_key="git")
    result = run_command(["git", "--version"], timeout=PROBE_TIMEOUT)
    version = result.head(1)[0] if result.ok and result.head(1) else "git"
    return CheckResult("git", CheckStatus.PASS, f"git found: {version}")


def check_docker(min_version: str) -> CheckResult:
    if not command_exists("docker"):
        return CheckResult("docker", CheckStatus.FAIL, "Docker is not installed.", hint_key="docker")

    # The client version is printed even when the daemon is unreachable and docker exits non-zero.
    result = run_command(
        ["docker", "version", "--format", "{{.Client.Version}}"], timeout=PROBE_TIMEOUT, merge_stderr=False
    )
    version = extract_version_number(result.output) or "0.0"
    if version_gte(version, min_version):
        return CheckResult("docker", CheckStatus.PASS, f"Docker found: v{version}")
    return CheckResult(
        "docker",
        CheckStatus.FAIL,
        f"Docker version {version} is too old. Need >= {min_version}.",
        hint_key="docker",
    )


def check_daemon() -> CheckResult:
    result = run_command(["docker", "info"], timeout=PROBE_TIMEOUT)
    if result.ok:
        return CheckResult("daemon", CheckStatus.PASS, "Docker daemon is running")
    message = "Docker is installed but not running."
    if result.timed_out:
        message = "Docker is installed but did not respond (docker info timed out)."
    return CheckResult("daemon", CheckStatus.FAIL, message, hint_key="daemon")


def check_compose(min_version: str) -> CheckResult:
    result = run_command(["docker", "compose", "version", "--short"], timeout=PROBE_TIMEOUT, merge_stderr=False)
    if result.ok:
        version = extract_version_number(result.output) or "0"
        if version_gte(version, min_version):
            return CheckResult("compose", CheckStatus.PASS, f"Docker Compose found: v{version}")
        return CheckResult(
            "compose",
            CheckStatus.FAIL,
            f"Docker Compose version {version} is too old. Need >= {min_version}.",
            hint_key="compose",
        )

    if command_exists("docker-compose"):
        return CheckResult(
            "compose",
            CheckStatus.FAIL,
            "Found legacy 'docker-compose' (v1). Need Docker Compose v2+.",
            hint_key="compose_legacy",
        )
    return CheckResult("compose", CheckStatus.FAIL, "Docker Compose not found.", hint_key="compose")


def _parse_df_available(output: str) -> int | None:
    lines = output.strip().splitlines()
    if len(lines) < 2:
        return None
    columns = lines[-1].split()
    if len(columns) < 4:
        return None
    match = re.match(r"^(\d+)", columns[3])
    return int(match.group(1)) if match else None


def check_disk(platform: Platform, min_gb: int, home: Path | None = None) -> CheckResult:
    if not command_exists("df"):
        return CheckResult("disk", CheckStatus.SKIP)

    home = home if home is not None else Path.home()
    flag = "-g" if platform == Platform.MACOS else "-BG"
    result = run_command(["df", flag, str(home)], timeout=PROBE_TIMEOUT)
    available = _parse_df_available(result.output) if result.ok else None
    if not available:
        return CheckResult("disk", CheckStatus.SKIP)
    if available >= min_gb:
        return CheckResult("disk", CheckStatus.PASS, f"Disk space: {available}GB available (need {min_gb}GB)")
    return CheckResult(
        "disk",
        CheckStatus.WARN,
        f"Low disk space: {available}GB available (recommend {min_gb}GB). Docker images + repos need ~5-8GB.",
    )


def total_ram_gb(platform: Platform, meminfo: Path = MEMINFO_PATH) -> int:
    """Total RAM in whole GB, or 0 when it cannot be determined."""
    if platform == Platform.MACOS:
        result = run_command(["sysctl", "-n", "hw.memsize"], timeout=PROBE_TIMEOUT)
        text = result.output.strip()
        return int(text) // BYTES_PER_GB if result.ok and text.isdigit() else 0

    try:
        content = meminfo.read_text()
    except OSError:
        return 0
    match = re.search(r"^MemTotal:\s+(\d+)\s*kB", content, re.MULTILINE)
    return int(match.group(1)) // (1024 * 1024) if match else 0


def check_ram(platform: Platform, min_gb: int) -> CheckResult:
    ram = total_ram_gb(platform)
    if ram <= 0:
        return CheckResult("ram", CheckStatus.SKIP)
    if ram >= min_gb:
        return CheckResult("ram", CheckStatus.PASS, f"RAM: {ram}GB (need {min_gb}GB)")
    return CheckResult(
        "ram",
        CheckStatus.WARN,
        f"Low RAM: {ram}GB (recommend {min_gb}GB). MCP server + PostgreSQL + indexing needs ~3GB.",
    )


def check_port(session: InstallSession, console: Console, prompt: Callable[[str], str]) -> CheckResult:
    owner = negotiate_port(session, console, prompt=prompt)
    status = CheckStatus.PASS if owner == PortOwner.FREE else CheckStatus.WARN
    return CheckResult("port", status, f"Port {session.port}", reported=True)


def check_download_tool() -> CheckResult:
    for tool in ("curl", "wget"):
        if command_exists(tool):
            return CheckResult("download_tool", CheckStatus.PASS, f"{tool} found")
    return CheckResult(
        "download_tool",
        CheckStatus.WARN,
        "Neither curl nor wget found. You won't be able to re-run this installer via URL.",
    )


def report_result(console: Console, result: CheckResult) -> None:
    if result.reported or result.status == CheckStatus.SKIP:
        return
    if result.status == CheckStatus.PASS:
        console.ok(result.message)
    elif result.status == CheckStatus.WARN:
        console.warn(result.message)
    elif result.status == CheckStatus.FAIL:
        console.fail(result.message)
    else:
        console.info(result.message)


def run_prerequisite_checks(
    session: InstallSession,
    settings: SetupSettings,
    console: Console,
    prompt: Callable[[str], str] = prompt_value,
) -> PrerequisiteReport:
    """Run every check in order, printing each result as it is produced.

    All checks run even after a failure.

    Raises:
        PrerequisiteError: If any check failed, after printing remediation
    """
    console.echo("")
    console.heading("Checking system requirements...")
    console.echo("")

    report = PrerequisiteReport()

    def record(result: CheckResult) -> CheckResult:
        _logging.debug(f"Check {result.name}: {result.status.value} {result.message}")
        report.results.append(result)
        report_result(console, result)
        return result

    info = PlatformInfo(session.platform, session.architecture)
    for result in check_platform(info):
        record(result)

    record(check_git())
    record(check_docker(settings.min_docker_version))
    if command_exists("docker"):
        record(check_daemon())
        if report.status_of("daemon") == CheckStatus.PASS:
            record(check_compose(settings.min_compose_version))
    record(check_disk(session.platform, settings.min_disk_gb))
    record(check_ram(session.platform, settings.min_ram_gb))
    record(check_port(session, console, prompt))
    record(check_download_tool())

    _logging.info(
        f"Prerequisite checks: {len(report.failures)} failed, {len(report.warnings)} warnings "
        f"(docker {report.status_of('docker').value})"
    )

    console.echo("")
    failures = report.failures
    if failures:
        console.echo(console.style(f"{len(failures)} issue(s) found. Please fix them and re-run the installer.", fg="red", bold=True))
        seen = set()
        for result in failures:
            if not result.hint_key or result.hint_key in seen:
                continue
            seen.add(result.hint_key)
            lines = remediation(result.hint_key, session.platform)
            if lines:
                console.echo("")
                console.echo(f"  {result.message}")
                console.detail(lines)
        console.echo("")
        raise PrerequisiteError(
            f"{len(failures)} prerequisite check(s) failed",
            hint="Fix the issues listed above and re-run the installer.",
        )

    console.echo(console.style("All checks passed!", fg="green", bold=True))
    return report


__all__ = [
    "CheckStatus",
    "CheckResult",
    "PrerequisiteReport",
    "check_platform",
    "check_git",
    "check_docker",
    "check_daemon",
    "check_compose",
    "check_disk",
    "check_ram",
    "total_ram_gb",
    "check_port",
    "check_download_tool",
    "run_prerequisite_checks",
]
