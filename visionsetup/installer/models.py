"""Data models for an install run."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ..platforms import Architecture, Platform

DEFAULT_PORT = 8080
MAIN_SERVICE = "mcp-server"


@dataclass(frozen=True)
class ServiceDef:
    name: str
    display_name: str


# Compose service names, in the order they come up.
SERVICES = (
    ServiceDef("postgres", "Database"),
    ServiceDef("extractor", "Repo extraction"),
    ServiceDef(MAIN_SERVICE, "MCP server"),
    ServiceDef("reindexer", "Re-index watcher"),
)


class Phase(Enum):
    NOT_STARTED = 0
    CHECKING_PREREQUISITES = 1
    DOWNLOADING = 2
    CONFIGURING = 3
    AUTHENTICATING_REGISTRY = 4
    STARTING_SERVICES = 5
    WAITING_FOR_HEALTH = 6
    COMPLETE = 7
    FAILED = 8

    @property
    def is_terminal(self) -> bool:
        return self in (Phase.COMPLETE, Phase.FAILED)


@dataclass(frozen=True)
class BearerToken:
    """Long-term Bedrock API key."""
    token: str = field(repr=False)


@dataclass(frozen=True)
class SessionCredentials:
    """Short-term AWS credentials."""
    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: str = field(repr=False)


@dataclass(frozen=True)
class OpenAIProvider:
    api_key: str = field(repr=False)

    name = "openai"

    def env_values(self) -> dict[str, str]:
        return {"EMBEDDING_PROVIDER": self.name, "OPENAI_API_KEY": self.api_key}


@dataclass(frozen=True)
class BedrockProvider:
    region: str
    credentials: BearerToken | SessionCredentials = field(repr=False)

    name = "bedrock"

    def env_values(self) -> dict[str, str]:
        values = {"EMBEDDING_PROVIDER": self.name, "AWS_REGION": self.region}
        if isinstance(self.credentials, BearerToken):
            values["AWS_BEARER_TOKEN_BEDROCK"] = self.credentials.token
        else:
            values["AWS_ACCESS_KEY_ID"] = self.credentials.access_key_id
            values["AWS_SECRET_ACCESS_KEY"] = self.credentials.secret_access_key
            values["AWS_SESSION_TOKEN"] = self.credentials.session_token
        return values


Provider = OpenAIProvider | BedrockProvider


@dataclass
class InstallSession:
    """Mutable state for one installer invocation."""
    install_directory: Path
    platform: Platform = Platform.UNKNOWN
    architecture: Architecture = Architecture.UNKNOWN
    port: int = DEFAULT_PORT
    provider: Provider | None = None
    secrets: dict[str, str] = field(default_factory=dict)
    step_index: int = 0
    total_steps: int = 8
    phase: Phase = Phase.NOT_STARTED
    port_frozen: bool = False

    def __post_init__(self):
        if not self.install_directory.is_absolute():
            raise ValueError("install_directory must be an absolute path")

    @property
    def env_path(self) -> Path:
        return self.install_directory / ".env"

    @property
    def server_url(self) -> str:
        return f"http://localhost:{self.port}/mcp"

    def advance(self, phase: Phase) -> None:
        """Move to a later phase. Moving backwards or out of a terminal phase is an error."""
        if self.phase.is_terminal:
            raise ValueError(f"Session already finished ({self.phase.name})")
        if phase == Phase.FAILED:
            self.phase = phase
            return
        if phase.value <= self.phase.value:
            raise ValueError(f"Cannot move from {self.phase.name} back to {phase.name}")
        self.phase = phase

    def fail(self) -> None:
        if not self.phase.is_terminal:
            self.phase = Phase.FAILED

    def next_step(self) -> int:
        self.step_index += 1
        return self.step_index

    def set_port(self, port: int) -> None:
        if self.port_frozen:
            raise ValueError("Port cannot change once services are starting")
        self.port = port

    def freeze_port(self) -> None:
        self.port_frozen = True

    def set_secret(self, key: str, value: str) -> None:
        if key in self.secrets:
            raise ValueError(f"Secret {key} was already set for this run")
        self.secrets[key] = value

    def __repr__(self) -> str:
        # Keep secret values out of tracebacks and debug logs.
        return (
            f"InstallSession(install_directory={self.install_directory!r}, "
            f"platform={self.platform.value}, architecture={self.architecture.value}, "
            f"port={self.port}, phase={self.phase.name}, "
            f"secrets={sorted(self.secrets)})"
        )


__all__ = [
    "DEFAULT_PORT",
    "MAIN_SERVICE",
    "ServiceDef",
    "SERVICES",
    "Phase",
    "BearerToken",
    "SessionCredentials",
    "OpenAIProvider",
    "BedrockProvider",
    "Provider",
    "InstallSession",
]
