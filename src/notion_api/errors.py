"""Typed exception hierarchy for Notion-related errors.

This module defines all custom exceptions used by the Notion client library.
All exceptions inherit from the NotionError base class for easy catching and
include descriptive messages with the failing operation and target identifier
so that a log line is enough to diagnose what went wrong.
"""

from typing import List, Optional


class AttachError(Exception):
    """Base exception for all notion-attach errors.

    Use this to catch any application-level error from the tool.
    """
    pass


class NotionError(AttachError):
    """Base exception for all Notion protocol errors."""
    pass


class InvalidIdentifierError(NotionError, ValueError):
    """Raised when an identifier is not 32 hex characters (dashes ignored)."""

    def __init__(self, value: str):
        super().__init__(
            f"Invalid identifier '{value}': expected 32 hexadecimal characters"
        )
        self.value = value


class TransportFailureError(NotionError):
    """Raised when the request never produced an HTTP response.

    Covers DNS, connect, TLS and timeout failures. Safe to retry with backoff.
    """

    def __init__(self, operation: str, reason: str):
        super().__init__(f"Transport failure during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class TransferCancelledError(TransportFailureError):
    """Raised when the caller cancels an in-flight upload or download."""

    def __init__(self, operation: str):
        super().__init__(operation, "cancelled by caller")


class RemoteRejectedError(NotionError):
    """Raised when the remote service answers with a non-2xx status.

    The service puts its diagnostic text in the body rather than in
    structured JSON, so the raw body is kept on the exception.
    """

    def __init__(self, operation: str, status: int, body_text: str):
        super().__init__(
            f"Remote rejected {operation} with HTTP {status}: {body_text[:300]}"
        )
        self.operation = operation
        self.status = status
        self.body_text = body_text

    @property
    def retryable(self) -> bool:
        """Whether the rejection is transient (rate limit or server error)."""
        return self.status == 429 or self.status >= 500


class MalformedResponseError(NotionError):
    """Raised when a 2xx body does not match the expected response shape.

    Not retryable: it means the client's view of the protocol is stale.
    """

    def __init__(self, operation: str, body_text: str, parse_error: str):
        super().__init__(
            f"Malformed response from {operation}: {parse_error}"
        )
        self.operation = operation
        self.body_text = body_text
        self.parse_error = parse_error


class BlockCreationError(NotionError):
    """Raised when creating or formatting a new block fails.

    The block id is always set: after the first transaction the block may
    already exist remotely and an operator needs the id to clean it up.
    """

    def __init__(self, block_id: str, stage: str, cause: Exception):
        super().__init__(
            f"Failed to {stage} block {block_id}: {cause}"
        )
        self.block_id = block_id
        self.stage = stage
        self.cause = cause


class UploadError(NotionError):
    """Raised when the PUT to a signed upload URL does not succeed."""

    def __init__(self, file_path: str, block_id: str, cause: Exception):
        super().__init__(
            f"Upload of {file_path} to block {block_id} failed: {cause}"
        )
        self.file_path = file_path
        self.block_id = block_id
        self.cause = cause


class FileSystemError(AttachError):
    """Raised when a local file cannot be read or written."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Filesystem operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class InvalidCredentialsError(NotionError):
    """Raised when required credentials are missing from config and environment."""

    def __init__(self, missing: List[str]):
        super().__init__(
            f"Missing Notion credentials: {', '.join(missing)}"
        )
        self.missing = missing
