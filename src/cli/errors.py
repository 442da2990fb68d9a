"""Typed exception hierarchy for CLI-related errors.

All exceptions inherit from CLIError so the entry point can catch them in
one place and map them to an exit code.
"""

from typing import Optional

from src.notion_api.errors import (
    AttachError,
    InvalidCredentialsError,
    RemoteRejectedError,
    TransferCancelledError,
    TransportFailureError,
)

from .models import ExitCode


class CLIError(AttachError):
    """Base exception for all CLI-related errors."""
    pass


class ConfigNotFoundError(CLIError):
    """Raised when an explicitly requested configuration file is missing."""

    def __init__(self, config_path: str):
        super().__init__(
            f"Configuration file not found at {config_path}"
        )
        self.config_path = config_path


class ConfigError(CLIError):
    """Raised when the configuration file is invalid."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class UsageError(CLIError):
    """Raised when command arguments are inconsistent."""

    def __init__(self, message: str):
        super().__init__(message)


def exit_code_for(error: Exception) -> ExitCode:
    """Map an error to the process exit code.

    Credential and configuration problems (including a 401/403 from the
    service) are AUTH_ERROR; network failures and transient rejections are
    NETWORK_ERROR; everything else is GENERAL_ERROR.
    """
    if isinstance(error, (InvalidCredentialsError, ConfigError, ConfigNotFoundError)):
        return ExitCode.AUTH_ERROR
    if isinstance(error, RemoteRejectedError):
        if error.status in (401, 403):
            return ExitCode.AUTH_ERROR
        if error.retryable:
            return ExitCode.NETWORK_ERROR
        return ExitCode.GENERAL_ERROR
    if isinstance(error, TransferCancelledError):
        return ExitCode.GENERAL_ERROR
    if isinstance(error, TransportFailureError):
        return ExitCode.NETWORK_ERROR
    return ExitCode.GENERAL_ERROR
