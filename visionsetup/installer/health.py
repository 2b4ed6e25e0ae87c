"""Service status parsing and the health wait loop.

Outcome decisions use only two signals: whether the MCP endpoint answers
HTTP at all, and whether the main service's container has exited non-zero.
The phase label inferred from recent log lines is for display only.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable

import requests

from .models import MAIN_SERVICE, SERVICES
from .stack import ComposeStack

_logging = logging.getLogger(__name__)

PROBE_TIMEOUT = 3
LOG_TAIL_LINES = 30

_EXIT_PATTERN = re.compile(r"\bexit(?:ed)?\s*\(?\s*(-?\d+)\s*\)?", re.IGNORECASE)
_HEALTHY_PATTERN = re.compile(r"\bhealthy\b", re.IGNORECASE)
_STARTING_PATTERN = re.compile(r"health:\s*starting|\bstarting\b|\bcreated\b|\brestarting\b", re.IGNORECASE)
_RUNNING_PATTERN = re.compile(r"\bup\b|\brunning\b", re.IGNORECASE)


class ServiceState(Enum):
    WAITING = "waiting"
    STARTING = "starting"
    RUNNING = "running"
    HEALTHY = "healthy"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class ServiceStatus:
    state: ServiceState
    exit_code: int | None = None


WAITING = ServiceStatus(ServiceState.WAITING)


def classify_status(line: str | None) -> ServiceStatus:
    """Classify one service's ``docker compose ps`` line.

    Examples of input and result:
        "... Up 2 minutes (healthy) ..."        -> HEALTHY
        "... Up 5 seconds (health: starting)"   -> STARTING
        "... Up 10 seconds ..."                 -> RUNNING
        "... Exited (0) 3 minutes ago"          -> COMPLETED
        "... Exited (137) 1 second ago"         -> FAILED, exit_code=137
        None or ""                              -> WAITING
    """
    if not line or not line.strip():
        return WAITING

    # "Restarting (1) 5 seconds ago" carries the last exit code but is
    # still coming up.
    if re.search(r"\brestarting\b", line, re.IGNORECASE):
        return ServiceStatus(ServiceState.STARTING)

    match = _EXIT_PATTERN.search(line)
    if match:
        code = int(match.group(1))
        if code == 0:
            return ServiceStatus(ServiceState.COMPLETED, exit_code=0)
        return ServiceStatus(ServiceState.FAILED, exit_code=code)

    if re.search(r"\bunhealthy\b", line, re.IGNORECASE):
        return ServiceStatus(ServiceState.RUNNING)
    if _HEALTHY_PATTERN.search(line) and "health:" not in line.lower():
        return ServiceStatus(ServiceState.HEALTHY)
    if _STARTING_PATTERN.search(line):
        return ServiceStatus(ServiceState.STARTING)
    if _RUNNING_PATTERN.search(line):
        return ServiceStatus(ServiceState.RUNNING)
    return WAITING


def find_service_lines(ps_output: str, services: Iterable[str]) -> dict[str, str | None]:
    """Pick the ``docker compose ps`` line belonging to each service.

    A line belongs to a service when one of its columns is the service name
    (the SERVICE column) or the container name is ``<project>-<service>-<n>``.
    """
    services = list(services)
    found: dict[str, str | None] = {name: None for name in services}
    lines = ps_output.splitlines()
    for line in lines[1:] if lines and lines[0].lstrip().upper().startswith("NAME") else lines:
        tokens = line.split()
        if not tokens:
            continue
        for name in services:
            if found[name] is not None:
                continue
            if name in tokens or re.match(rf"^\S*[-_]{re.escape(name)}[-_]\d+$", tokens[0]):
                found[name] = line
                break
    return found


@dataclass(frozen=True)
class PhaseMarker:
    label: str
    patterns: tuple[str, ...]


# Most advanced phase first: a log tail holding several markers reports the
# latest phase reached.
PHASE_MARKERS = (
    PhaseMarker("Server ready", ("application startup complete", "uvicorn running on", "server started", "listening on")),
    PhaseMarker("Generating embeddings", ("generating embeddings", "embedding", "embeddings")),
    PhaseMarker("Indexing components", ("indexing", "building index", "cocoindex")),
    PhaseMarker("Extracting components", ("extracting", "parsing components")),
    PhaseMarker("Cloning repositories", ("cloning", "git clone")),
    PhaseMarker("Waiting for database", ("waiting for postgres", "waiting for database", "connecting to database")),
)
DEFAULT_PHASE = "Starting up"


def infer_phase(log_text: str) -> str:
    """Best-effort label for what the server is doing, from recent logs."""
    lowered = log_text.lower()
    for marker in PHASE_MARKERS:
        if any(pattern in lowered for pattern in marker.patterns):
            return marker.label
    return DEFAULT_PHASE


def probe_http(url: str, timeout: float = PROBE_TIMEOUT) -> bool:
    """True if anything answers HTTP at ``url``, whatever the status code."""
    try:
        response = requests.get(url, timeout=timeout, allow_redirects=False)
    except requests.exceptions.RequestException as e:
        _logging.debug(f"Probe {url} not reachable: {type(e).__name__}")
        return False
    _logging.debug(f"Probe {url} answered {response.status_code}")
    return True


@dataclass(frozen=True)
class StatusSnapshot:
    services: dict[str, ServiceStatus]
    server_reachable: bool
    phase: str
    elapsed: float = 0.0

    @property
    def main(self) -> ServiceStatus:
        return self.services.get(MAIN_SERVICE, WAITING)


class PollOutcome(Enum):
    HEALTHY = "healthy"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class PollResult:
    outcome: PollOutcome
    snapshot: StatusSnapshot
    exit_code: int | None = None


@dataclass
class HealthPoller:
    """Poll the stack on a fixed interval until it is healthy or has failed.

    ``timeout`` of 0 polls indefinitely. ``probe``, ``sleep`` and ``clock``
    are injectable for tests.
    """
    stack: ComposeStack
    url: str
    interval: float = 5
    timeout: float = 0
    probe: Callable[[str], bool] = probe_http
    sleep: Callable[[float], None] = time.sleep
    clock: Callable[[], float] = time.monotonic
    service_names: tuple[str, ...] = field(default_factory=lambda: tuple(s.name for s in SERVICES))

    def snapshot(self, elapsed: float = 0.0) -> StatusSnapshot:
        reachable = self.probe(self.url)
        lines = find_service_lines(self.stack.ps(), self.service_names)
        services = {name: classify_status(line) for name, line in lines.items()}
        if reachable and services.get(MAIN_SERVICE, WAITING).state != ServiceState.FAILED:
            services[MAIN_SERVICE] = ServiceStatus(ServiceState.HEALTHY)
        phase = infer_phase(self.stack.logs(MAIN_SERVICE, tail=LOG_TAIL_LINES))
        return StatusSnapshot(services=services, server_reachable=reachable, phase=phase, elapsed=elapsed)

    def poll(self, on_update: Callable[[StatusSnapshot], None] | None = None) -> PollResult:
        started = self.clock()
        cycles = 0
        while True:
            elapsed = self.clock() - started
            snapshot = self.snapshot(elapsed)
            cycles += 1
            if on_update is not None:
                on_update(snapshot)

            if snapshot.server_reachable:
                _logging.info(f"Server reachable after {elapsed:.0f}s ({cycles} polls)")
                return PollResult(PollOutcome.HEALTHY, snapshot)

            main = snapshot.main
            if main.state == ServiceState.FAILED:
                _logging.error(f"{MAIN_SERVICE} exited with code {main.exit_code}")
                return PollResult(PollOutcome.FAILED, snapshot, exit_code=main.exit_code)

            if self.timeout and elapsed >= self.timeout:
                _logging.warning(f"Health wait gave up after {elapsed:.0f}s")
                return PollResult(PollOutcome.TIMED_OUT, snapshot)

            self.sleep(self.interval)


__all__ = [
    "ServiceState",
    "ServiceStatus",
    "classify_status",
    "find_service_lines",
    "PHASE_MARKERS",
    "DEFAULT_PHASE",
    "infer_phase",
    "probe_http",
    "StatusSnapshot",
    "PollOutcome",
    "PollResult",
    "HealthPoller",
]
