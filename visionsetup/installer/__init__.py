"""Install engine: data models, prerequisite checks, the compose stack and
health polling.

The step sequence itself lives in ``visionsetup.installer.orchestrator`` and
is imported from there, since it depends on the TUI package which in turn
renders these models.
"""

from .checks import (
    CheckResult,
    CheckStatus,
    PrerequisiteReport,
    run_prerequisite_checks,
)
from .health import (
    HealthPoller,
    PollOutcome,
    PollResult,
    ServiceState,
    ServiceStatus,
    StatusSnapshot,
    classify_status,
    infer_phase,
    probe_http,
)
from .models import (
    DEFAULT_PORT,
    MAIN_SERVICE,
    SERVICES,
    BearerToken,
    BedrockProvider,
    InstallSession,
    OpenAIProvider,
    Phase,
    SessionCredentials,
)
from .ports import PortOwner, identify_port_owner, negotiate_port, validate_port
from .stack import ComposeStack

__all__ = [
    "CheckResult",
    "CheckStatus",
    "PrerequisiteReport",
    "run_prerequisite_checks",
    "HealthPoller",
    "PollOutcome",
    "PollResult",
    "ServiceState",
    "ServiceStatus",
    "StatusSnapshot",
    "classify_status",
    "infer_phase",
    "probe_http",
    "DEFAULT_PORT",
    "MAIN_SERVICE",
    "SERVICES",
    "BearerToken",
    "BedrockProvider",
    "InstallSession",
    "OpenAIProvider",
    "Phase",
    "SessionCredentials",
    "PortOwner",
    "identify_port_owner",
    "negotiate_port",
    "validate_port",
    "ComposeStack",
]
