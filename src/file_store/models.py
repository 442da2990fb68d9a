"""Data models for the local file record store."""

from dataclasses import dataclass, field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


@dataclass(frozen=True)
class FileRecord:
    """A file that was uploaded and attached to a Notion block.

    Attributes:
        file_name: Unique name the file is stored under
        file_url: Object URL attached to the block (needed to request a signed URL)
        space_id: Workspace of the block
        block_id: Block the file is attached to
        origin_file_path: Absolute path of the uploaded local file
        created_at: UTC time the record was created

    Example:
        >>> record = FileRecord(
        ...     file_name="backups/notes.txt",
        ...     file_url="https://prod-files-secure.s3.us-west-2.amazonaws.com/...",
        ...     space_id="S",
        ...     block_id="9a1c...",
        ...     origin_file_path="/home/me/notes.txt",
        ... )
    """
    file_name: str
    file_url: str
    space_id: str
    block_id: str
    origin_file_path: str
    created_at: datetime = field(default_factory=_utcnow)
