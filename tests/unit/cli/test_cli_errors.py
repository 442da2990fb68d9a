"""Unit tests for cli.errors module."""

import pytest

from src.cli.errors import ConfigError, ConfigNotFoundError, UsageError, exit_code_for
from src.cli.models import ExitCode
from src.file_store.errors import DuplicateFileNameError
from src.notion_api.errors import (
    FileSystemError,
    InvalidCredentialsError,
    MalformedResponseError,
    RemoteRejectedError,
    TransferCancelledError,
    TransportFailureError,
)


class TestExitCodeFor:
    """Test cases for exit_code_for."""

    @pytest.mark.parametrize("error,expected", [
        (InvalidCredentialsError(["token_v2"]), ExitCode.AUTH_ERROR),
        (ConfigError("bad"), ExitCode.AUTH_ERROR),
        (ConfigNotFoundError("/x.yaml"), ExitCode.AUTH_ERROR),
        (RemoteRejectedError("op", 401, ""), ExitCode.AUTH_ERROR),
        (RemoteRejectedError("op", 403, ""), ExitCode.AUTH_ERROR),
        (RemoteRejectedError("op", 503, ""), ExitCode.NETWORK_ERROR),
        (RemoteRejectedError("op", 400, ""), ExitCode.GENERAL_ERROR),
        (TransportFailureError("op", "timeout"), ExitCode.NETWORK_ERROR),
        (TransferCancelledError("op"), ExitCode.GENERAL_ERROR),
        (MalformedResponseError("op", "", "KeyError"), ExitCode.GENERAL_ERROR),
        (DuplicateFileNameError("a.txt"), ExitCode.GENERAL_ERROR),
        (FileSystemError("/a", "read"), ExitCode.GENERAL_ERROR),
        (UsageError("bad args"), ExitCode.GENERAL_ERROR),
    ])
    def test_mapping(self, error, expected):
        """Each error family maps to its exit code."""
        assert exit_code_for(error) == expected


class TestConfigError:
    """Test cases for ConfigError messages."""

    def test_message_names_field(self):
        """The field is included in the message when given."""
        error = ConfigError("must be a string", "notion.token_v2")
        assert "notion.token_v2" in str(error)
        assert error.original_message == "must be a string"
