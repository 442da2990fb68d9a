"""Data models for CLI operations."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): General error (failed file, usage, local I/O)
    - AUTH_ERROR (3): Missing credentials, bad configuration or a 401/403
    - NETWORK_ERROR (4): Network failure or a transient remote error

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 3
    NETWORK_ERROR = 4


@dataclass
class NotionSettings:
    """The ``notion`` section of the configuration file.

    Every field is optional here; missing values may still come from the
    environment when credentials are resolved.
    """
    token_v2: Optional[str] = None
    file_token: Optional[str] = None
    page_id: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass
class AppConfig:
    """Parsed configuration file.

    Attributes:
        database_path: SQLite file holding attached-file records
        notion: Notion credentials and target page

    Example:
        >>> config = AppConfig(database_path="~/.notion-attach/files.db")
    """
    database_path: str
    notion: NotionSettings = field(default_factory=NotionSettings)


@dataclass
class PutSummary:
    """Counts of a put batch for display to the user.

    Attributes:
        attached: Names attached and recorded
        failed: Names whose workflow stopped before completion
        stuck_block_ids: Blocks created on the page but never attached
        skipped: Names never attempted because the batch stopped early
    """
    attached: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    stuck_block_ids: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed and not self.skipped
