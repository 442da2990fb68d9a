"""Command-line interface for attaching files to Notion pages.

This package provides the `notion-attach` CLI tool. It loads configuration,
wires the Notion client, transfer pipeline and record store together, and
runs the put, query and get commands with progress indication and exit
codes suited to scripting.
"""

from .put_command import PutCommand
from .query_command import QueryCommand
from .get_command import GetCommand
from .models import ExitCode, AppConfig, NotionSettings, PutSummary
from .errors import (
    CLIError,
    ConfigError,
    ConfigNotFoundError,
    UsageError,
)

__all__ = [
    'PutCommand',
    'QueryCommand',
    'GetCommand',
    'ExitCode',
    'AppConfig',
    'NotionSettings',
    'PutSummary',
    'CLIError',
    'ConfigError',
    'ConfigNotFoundError',
    'UsageError',
]
