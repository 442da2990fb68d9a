"""Notion client library for attaching files to pages.

This package drives Notion's internal block-editing API: identifier
normalization, an authenticated JSON transport, a typed facade over the
endpoints the tool uses, and the block mutation transactions that create a
block and attach an uploaded file to it.
"""

from .errors import (
    AttachError,
    NotionError,
    InvalidIdentifierError,
    InvalidCredentialsError,
    TransportFailureError,
    TransferCancelledError,
    RemoteRejectedError,
    MalformedResponseError,
    BlockCreationError,
    UploadError,
    FileSystemError,
)
from .identifiers import to_dashed_id
from .models import BlockPointer, PageIdentity, Transaction, UploadSlot
from .session import NotionSession
from .transactions import BlockState, BlockTransactionBuilder, InsertAnchor
from .transport import DEFAULT_USER_AGENT, Transport

__all__ = [
    "AttachError",
    "NotionError",
    "InvalidIdentifierError",
    "InvalidCredentialsError",
    "TransportFailureError",
    "TransferCancelledError",
    "RemoteRejectedError",
    "MalformedResponseError",
    "BlockCreationError",
    "UploadError",
    "FileSystemError",
    "to_dashed_id",
    "BlockPointer",
    "PageIdentity",
    "Transaction",
    "UploadSlot",
    "NotionSession",
    "BlockState",
    "BlockTransactionBuilder",
    "InsertAnchor",
    "DEFAULT_USER_AGENT",
    "Transport",
]
