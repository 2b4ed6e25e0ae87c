"""The install sequence.

Steps run strictly in order and pass one InstallSession forward. Fatal
problems raise ``SetupError`` subclasses; the session is marked FAILED and
the error propagates to the CLI, which prints it once and exits.
"""

import logging
import shutil
from enum import Enum
from typing import Callable

from ..config import SetupSettings
from ..envfile import prepare_env_file, read_env_value, set_env_value
from ..errors import InvalidInputError, SetupError, StepFailedError
from ..platforms import detect_platform
from ..prompts import describe_secret, prompt_choice, prompt_secret, prompt_value
from ..tui.console import Console
from ..tui.dashboard import StatusDashboard
from ..tui.summary import print_commands, print_success, print_timeout_warning, print_welcome
from .checks import run_prerequisite_checks
from .health import HealthPoller, PollOutcome
from .hints import login_failure_hint, pull_failure_hint, start_failure_hint
from .models import (
    MAIN_SERVICE,
    BearerToken,
    BedrockProvider,
    InstallSession,
    OpenAIProvider,
    Phase,
    Provider,
    SessionCredentials,
)
from .stack import ComposeStack

_logging = logging.getLogger(__name__)

DEFAULT_BEDROCK_REGION = "us-east-1"
TOKENS_URL = "https://github.com/settings/tokens"
OPENAI_KEYS_URL = "https://platform.openai.com/api-keys"

EXISTING_INSTALL_CHOICES = [
    ("1", "Update     - Pull latest images and restart"),
    ("2", "Reinstall  - Remove everything and start fresh"),
    ("3", "Quit       - Exit without changes"),
]
PROVIDER_CHOICES = [
    ("1", "OpenAI"),
    ("2", "AWS Bedrock"),
]
CREDENTIAL_CHOICES = [
    ("1", "Bedrock API key (long-term)"),
    ("2", "Temporary AWS credentials (access key, secret key, session token)"),
]


class InstallOutcome(Enum):
    INSTALLED = "installed"
    HEALTH_TIMED_OUT = "health_timed_out"
    UPDATED = "updated"
    QUIT = "quit"


def update_stack(stack: ComposeStack, console: Console) -> None:
    """Pull the latest images and recreate the containers.

    Raises:
        StepFailedError: If the pull or the restart fails
    """
    pulled = stack.pull(console)
    if not pulled.ok:
        raise StepFailedError(
            "Failed to pull Docker images",
            hint="\n".join(pull_failure_hint(stack.install_dir)),
        )
    started = stack.up(console)
    if not started.ok:
        raise StepFailedError(
            "Failed to restart services",
            hint=f"Check the logs: {stack.command_hint('logs')}",
        )


class Installer:
    """Drives one interactive install from platform detection to summary.

    Args:
        settings: Loaded installer settings
        console: Output sink for all user-facing messages
        stack: Compose adapter; defaults to one for ``settings.install_dir``
        prompt: Visible prompt, called as ``prompt(label, default)``
        secret_prompt: Non-echoing prompt, called as ``secret_prompt(label)``
        choose: Menu prompt, called as ``choose(label, choices, default)``
        poller_factory: Builds the health poller for the started stack
    """

    def __init__(
        self,
        settings: SetupSettings,
        console: Console,
        stack: ComposeStack | None = None,
        prompt: Callable[..., str] = prompt_value,
        secret_prompt: Callable[[str], str] = prompt_secret,
        choose: Callable[..., str] = prompt_choice,
        poller_factory: Callable[..., HealthPoller] = HealthPoller,
    ):
        self.settings = settings
        self.console = console
        self.stack = stack or ComposeStack(
            settings.install_dir,
            registry=settings.registry,
            registry_user=settings.registry_user,
        )
        self.prompt = self._with_cursor(prompt)
        self.secret_prompt = self._with_cursor(secret_prompt)
        self.choose = self._with_cursor(choose)
        self.poller_factory = poller_factory
        self.session = InstallSession(
            install_directory=settings.install_dir,
            port=settings.default_port,
            total_steps=6,
        )

    def _with_cursor(self, ask: Callable[..., str]) -> Callable[..., str]:
        def ask_with_cursor(*args, **kwargs) -> str:
            with self.console.cursor_shown():
                return ask(*args, **kwargs)

        return ask_with_cursor

    def run(self) -> InstallOutcome:
        print_welcome(self.console)
        try:
            return self._run_steps()
        except (SetupError, KeyboardInterrupt):
            self.session.fail()
            _logging.info(f"Install stopped in phase {self.session.phase.name}: {self.session!r}")
            raise

    def _run_steps(self) -> InstallOutcome:
        session = self.session

        info = detect_platform()
        session.platform = info.platform
        session.architecture = info.architecture
        _logging.info(f"Detected platform {info.describe()}")
        self.adopt_configured_port()

        session.advance(Phase.CHECKING_PREREQUISITES)
        self._step("Checking system requirements")
        run_prerequisite_checks(session, self.settings, self.console, prompt=self.prompt)

        existing = self.handle_existing_install()
        if existing is not None:
            session.advance(Phase.COMPLETE)
            return existing

        session.advance(Phase.DOWNLOADING)
        self._step("Downloading setup files")
        self.download()

        session.advance(Phase.CONFIGURING)
        self._step("Configure your environment")
        self.configure()

        session.advance(Phase.AUTHENTICATING_REGISTRY)
        self._step(f"Authenticating with {self.stack.registry}")
        self.login()

        session.advance(Phase.STARTING_SERVICES)
        self._step("Starting services")
        self.start_services()

        session.advance(Phase.WAITING_FOR_HEALTH)
        self._step("Waiting for the MCP server")
        outcome = self.wait_for_health()

        session.advance(Phase.COMPLETE)
        if outcome == InstallOutcome.INSTALLED:
            print_success(self.console, session)
        else:
            self.console.echo("")
            print_commands(self.console, session.install_directory)
        return outcome

    def _step(self, title: str) -> None:
        self.console.step(self.session.next_step(), self.session.total_steps, title)

    def adopt_configured_port(self) -> None:
        """Start from the MCP_PORT of an existing install instead of the default."""
        value = read_env_value(self.session.env_path, "MCP_PORT")
        if value and value.strip().isdigit():
            self.session.set_port(int(value.strip()))
            _logging.info(f"Existing install uses port {self.session.port}")

    def handle_existing_install(self) -> InstallOutcome | None:
        """Ask what to do with an existing install directory.

        Returns an outcome when the run should end here, or None to continue
        with a fresh install.
        """
        directory = self.session.install_directory
        if not directory.exists():
            return None

        console = self.console
        console.echo("")
        console.warn(f"Directory {directory} already exists.")
        console.echo("")
        choice = self.choose("What would you like to do?", EXISTING_INSTALL_CHOICES).strip()
        _logging.info(f"Existing install choice: {choice!r}")

        if choice == "1":
            console.info("Updating existing installation...")
            self.keep_port()
            update_stack(self.stack, console)
            console.ok("Updated! MCP server is restarting.")
            return InstallOutcome.UPDATED
        if choice == "2":
            self.remove_existing()
            return None
        if choice == "3":
            console.info("Exiting. No changes made.")
            return InstallOutcome.QUIT
        raise InvalidInputError(
            f"'{choice}' is not a valid choice",
            hint="Re-run the installer and enter 1 (Update), 2 (Reinstall) or 3 (Quit).",
        )

    def keep_port(self) -> None:
        """Write the negotiated port into the existing .env before restarting."""
        session = self.session
        session.freeze_port()
        if session.env_path.exists():
            set_env_value(session.env_path, "MCP_PORT", str(session.port))

    def remove_existing(self) -> None:
        directory = self.session.install_directory
        self.console.info("Removing existing installation...")
        result = self.stack.down(volumes=True)
        if not result.ok:
            # Nothing may be running; the directory is removed regardless.
            _logging.info(f"compose down exited {result.returncode}; continuing")
        try:
            shutil.rmtree(directory)
        except OSError as e:
            raise StepFailedError(
                f"Could not remove {directory}: {e.strerror or e}",
                hint=f"Remove it manually (rm -rf {directory}) and re-run the installer.",
            )
        self.console.ok("Removed. Proceeding with fresh install...")

    def download(self) -> None:
        result = self.stack.clone(self.console, self.settings.repo_url)
        if not result.ok:
            raise StepFailedError(
                "Failed to download setup files",
                hint="\n".join([
                    *result.head(),
                    "",
                    f"Check that you can reach {self.settings.repo_url} and re-run the installer.",
                ]),
            )

    def configure(self) -> None:
        session = self.session
        env_path = prepare_env_file(session.install_directory)
        console = self.console

        console.echo("")
        console.echo(console.style("  1. GitHub Personal Access Token", fg="yellow"))
        console.echo("     Needed to clone the Vision UI repos and pull the server images.")
        console.echo(f"     Create one at: {TOKENS_URL}")
        console.echo("     Required scopes: repo (read access), read:packages")
        console.echo("")
        token = self._require_secret(
            "GIT_TOKEN",
            "  GitHub token (ghp_...): ",
            "GitHub token is required",
            f"Create a token at {TOKENS_URL} with the repo and read:packages scopes, then re-run.",
        )

        session.provider = self.choose_provider()

        values = {"GIT_TOKEN": token, **session.provider.env_values(), "MCP_PORT": str(session.port)}
        for key, value in values.items():
            set_env_value(env_path, key, value)
        console.ok(f"Environment configured ({env_path})")

    def choose_provider(self) -> Provider:
        console = self.console
        console.echo("")
        console.echo(console.style("  2. Embedding provider", fg="yellow"))
        console.echo("     Used to generate embeddings for semantic search.")
        console.echo("")
        choice = self.choose("Embedding provider", PROVIDER_CHOICES, "1").strip()

        if choice in ("", "1"):
            console.echo(f"     Get a key at: {OPENAI_KEYS_URL}")
            api_key = self._require_secret(
                "OPENAI_API_KEY",
                "  OpenAI API key (sk-...): ",
                "OpenAI API key is required",
                f"Create a key at {OPENAI_KEYS_URL}, then re-run.",
            )
            return OpenAIProvider(api_key=api_key)

        if choice == "2":
            return self._choose_bedrock()

        raise InvalidInputError(
            f"'{choice}' is not a valid provider choice",
            hint="Re-run the installer and enter 1 (OpenAI) or 2 (AWS Bedrock).",
        )

    def _choose_bedrock(self) -> BedrockProvider:
        console = self.console
        region = self.prompt(f"  AWS region [{DEFAULT_BEDROCK_REGION}]: ", DEFAULT_BEDROCK_REGION).strip()
        region = region or DEFAULT_BEDROCK_REGION

        console.echo("")
        kind = self.choose("Bedrock credential type", CREDENTIAL_CHOICES, "1").strip()

        if kind in ("", "1"):
            token = self._require_secret(
                "AWS_BEARER_TOKEN_BEDROCK",
                "  Bedrock API key: ",
                "Bedrock API key is required",
                "Generate a long-term API key in the Amazon Bedrock console, then re-run.",
            )
            return BedrockProvider(region=region, credentials=BearerToken(token))

        if kind == "2":
            hint = "Copy the credentials from your AWS access portal, then re-run."
            access_key_id = self._require_secret(
                "AWS_ACCESS_KEY_ID", "  AWS access key ID: ", "AWS access key ID is required", hint
            )
            secret_access_key = self._require_secret(
                "AWS_SECRET_ACCESS_KEY", "  AWS secret access key: ", "AWS secret access key is required", hint
            )
            session_token = self._require_secret(
                "AWS_SESSION_TOKEN", "  AWS session token: ", "AWS session token is required", hint
            )
            return BedrockProvider(
                region=region,
                credentials=SessionCredentials(access_key_id, secret_access_key, session_token),
            )

        raise InvalidInputError(
            f"'{kind}' is not a valid credential type",
            hint="Re-run the installer and enter 1 (API key) or 2 (temporary credentials).",
        )

    def _require_secret(self, key: str, label: str, missing: str, hint: str) -> str:
        value = self.secret_prompt(label)
        if not value:
            raise InvalidInputError(missing, hint=hint)
        self.session.set_secret(key, value)
        self.console.ok(f"Received {describe_secret(value)}")
        return value

    def login(self) -> None:
        token = self.session.secrets["GIT_TOKEN"]
        result = self.stack.login(self.console, token, timeout=self.settings.login_timeout)
        if result.ok:
            return
        if result.timed_out:
            self.console.warn(f"{self.stack.registry} login timed out after {self.settings.login_timeout:g}s.")
        else:
            self.console.warn(f"{self.stack.registry} login failed.")
        self.console.detail(login_failure_hint(), indent=6)

    def start_services(self) -> None:
        session = self.session
        session.freeze_port()

        pulled = self.stack.pull(self.console)
        if not pulled.ok:
            raise StepFailedError(
                "Failed to pull Docker images",
                hint="\n".join(pull_failure_hint(session.install_directory)),
            )

        started = self.stack.up(self.console)
        if not started.ok:
            raise StepFailedError(
                "Failed to start services",
                hint="\n".join(start_failure_hint(session.install_directory, session.port)),
            )

    def wait_for_health(self) -> InstallOutcome:
        session = self.session
        console = self.console
        console.info("Waiting for MCP server to be ready (first startup takes 3-5 minutes)...")
        console.echo("     This is a one-time wait while repos are indexed and embeddings generated.")
        console.echo("")

        dashboard = StatusDashboard(console)
        poller = self.poller_factory(
            stack=self.stack,
            url=session.server_url,
            interval=self.settings.health_interval,
            timeout=self.settings.health_timeout,
        )
        result = poller.poll(dashboard.update)

        if result.outcome == PollOutcome.HEALTHY:
            dashboard.clear()
            console.ok("MCP server is healthy and ready!")
            return InstallOutcome.INSTALLED

        console.echo("")
        if result.outcome == PollOutcome.FAILED:
            code = f" with code {result.exit_code}" if result.exit_code is not None else ""
            raise StepFailedError(
                f"MCP server exited unexpectedly{code}",
                hint=f"Check logs: {self.stack.command_hint('logs', MAIN_SERVICE)}",
            )

        print_timeout_warning(console, session, result.snapshot.elapsed)
        return InstallOutcome.HEALTH_TIMED_OUT

    def follow_logs(self) -> None:
        """Stream the server's logs until Ctrl-C, which ends the run normally."""
        console = self.console
        console.info("Streaming MCP server logs. Press Ctrl-C to stop (services keep running).")
        console.echo("")
        try:
            self.stack.follow_logs(MAIN_SERVICE)
        except KeyboardInterrupt:
            console.echo("")
            _logging.info("Log streaming stopped by user")


__all__ = [
    "DEFAULT_BEDROCK_REGION",
    "InstallOutcome",
    "Installer",
    "update_stack",
]
