"""Local persistence of attached files.

Keeps a name -> (block, object URL) mapping in SQLite so attached files can
be listed and downloaded later.
"""

from .errors import (
    FileStoreError,
    DuplicateFileNameError,
    RecordNotFoundError,
    StoreAccessError,
)
from .models import FileRecord
from .store import FileStore

__all__ = [
    "FileStoreError",
    "DuplicateFileNameError",
    "RecordNotFoundError",
    "StoreAccessError",
    "FileRecord",
    "FileStore",
]
