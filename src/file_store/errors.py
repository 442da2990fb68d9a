"""Typed exceptions for the local file record store."""

from src.notion_api.errors import AttachError


class FileStoreError(AttachError):
    """Base exception for all file store errors."""
    pass


class DuplicateFileNameError(FileStoreError):
    """Raised when a file name is already recorded."""

    def __init__(self, file_name: str):
        super().__init__(f"A file named '{file_name}' is already stored")
        self.file_name = file_name


class RecordNotFoundError(FileStoreError):
    """Raised when no record matches a file name."""

    def __init__(self, file_name: str):
        super().__init__(f"No stored file named '{file_name}'")
        self.file_name = file_name


class StoreAccessError(FileStoreError):
    """Raised when the database cannot be opened, read or written."""

    def __init__(self, db_path: str, operation: str, reason: str):
        super().__init__(
            f"File store operation '{operation}' failed for {db_path}: {reason}"
        )
        self.db_path = db_path
        self.operation = operation
        self.reason = reason
