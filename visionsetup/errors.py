"""Error types and message formatting for the installer.

Every fatal path in the installer raises a ``SetupError`` subclass. The CLI
catches it once, prints the message with its hint and exits with the error's
exit code, so steps never call ``sys.exit`` themselves.

Error Style Guide:
- User-facing errors use 'Error: ' prefix
- Say what failed in plain terms, then how to fix it
- Include the exact follow-up command where one exists
- Never include secret values
"""

EXIT_FAILURE = 1
EXIT_INVALID_INPUT = 2


class SetupError(Exception):
    """A fatal installer error carrying remediation text.

    Args:
        message: What failed, in plain terms
        hint: Multi-line remediation shown under the message
        exit_code: Process exit status for this failure
    """

    def __init__(self, message: str, hint: str | None = None, exit_code: int = EXIT_FAILURE):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.exit_code = exit_code


class PrerequisiteError(SetupError):
    """One or more prerequisite checks failed."""


class StepFailedError(SetupError):
    """An install step (download, pull, start, health) failed."""


class InvalidInputError(SetupError):
    """Operator input was rejected at a point where no safe default exists."""

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message, hint=hint, exit_code=EXIT_INVALID_INPUT)


class NoTerminalError(SetupError):
    """No terminal is available to read operator input from."""


def format_error(message: str) -> str:
    """Format an error message with consistent prefix.

    Examples:
        >>> format_error("git is not installed")
        'Error: git is not installed'
    """
    return f"Error: {message}"


def format_suggestion(message: str, suggestion: str) -> str:
    """Format an error message with a helpful suggestion.

    Examples:
        >>> format_suggestion("port 80 is out of range", "choose a port between 1024 and 65535")
        'Error: port 80 is out of range. Hint: choose a port between 1024 and 65535'
    """
    return f"{format_error(message)}. Hint: {suggestion}"


__all__ = [
    "EXIT_FAILURE",
    "EXIT_INVALID_INPUT",
    "SetupError",
    "PrerequisiteError",
    "StepFailedError",
    "InvalidInputError",
    "NoTerminalError",
    "format_error",
    "format_suggestion",
]
