"""Block mutation transactions for attaching files to a page.

Notion has no multi-step atomicity: creating a block, formatting it and
attaching a file are separate transactions. This module builds those
transactions and tracks each block through the state machine

    ABSENT -> CREATED -> FORMATTED -> FILE_UPLOADED -> ATTACHED

A failure at any arrow leaves the block where it is. A block that exists
remotely but never reached ATTACHED is STUCK; nothing is rolled back, and
the block id is surfaced so an operator can remove it by hand.
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from src.transfer.formatting import size_to_text

from .errors import BlockCreationError, NotionError
from .models import (
    BlockPointer,
    Operation,
    OperationCommand,
    Transaction,
)
from .session import NotionSession

logger = logging.getLogger(__name__)

EMBED_BLOCK_TYPE = "embed"

# Display defaults the web editor applies to a freshly dropped embed
DEFAULT_BLOCK_FORMAT = {
    "block_width": 120,
    "block_height": None,
    "block_preserve_scale": True,
    "block_full_width": False,
    "block_page_width": False,
}

CREATE_ACTION = "ListItemBlock.handleNativeDrop"
FORMAT_ACTION = "embedBlockActions.initializeFormat"
ATTACH_ACTION = "embedBlockActions.initializeEmbedBlock"


class BlockState(Enum):
    """Lifecycle of a block that receives an uploaded file."""
    ABSENT = "absent"
    CREATED = "created"
    FORMATTED = "formatted"
    FILE_UPLOADED = "file_uploaded"
    ATTACHED = "attached"
    STUCK = "stuck"


_NEXT_STATE = {
    BlockState.ABSENT: BlockState.CREATED,
    BlockState.CREATED: BlockState.FORMATTED,
    BlockState.FORMATTED: BlockState.FILE_UPLOADED,
    BlockState.FILE_UPLOADED: BlockState.ATTACHED,
}


def advance(state: BlockState, target: BlockState) -> BlockState:
    """Move one step along the state machine.

    Raises:
        ValueError: If ``target`` is not the immediate successor of ``state``
    """
    if _NEXT_STATE.get(state) is not target:
        raise ValueError(f"Illegal block transition {state.value} -> {target.value}")
    return target


@dataclass(frozen=True)
class InsertAnchor:
    """Where a new block goes in the parent page's child list.

    The service's child list cannot be read back reliably in order, so the
    caller supplies the id of the last child it knows about. An unanchored
    insert is an explicit mode whose resulting position is decided by the
    service and is not guaranteed to be the tail.

    Example:
        >>> InsertAnchor.after_block("2131b10c-ebf6-4938-a127-7089ff02dbe4")
        >>> InsertAnchor.unanchored()
    """
    after: Optional[str] = None

    @classmethod
    def after_block(cls, block_id: str) -> "InsertAnchor":
        return cls(after=block_id)

    @classmethod
    def unanchored(cls) -> "InsertAnchor":
        return cls(after=None)

    @property
    def is_anchored(self) -> bool:
        return self.after is not None


def build_create_transaction(
    block_id: str,
    space_id: str,
    parent_page_id: str,
    anchor: InsertAnchor,
) -> Transaction:
    """Transaction 1: create an embed block and link it into the page."""
    pointer = BlockPointer(id=block_id, space_id=space_id)
    page_pointer = BlockPointer(id=parent_page_id, space_id=space_id)

    list_args = {"id": block_id}
    if anchor.is_anchored:
        list_args["after"] = anchor.after

    return Transaction(
        space_id=space_id,
        debug={"userAction": CREATE_ACTION},
        operations=[
            Operation(
                pointer=pointer,
                command=OperationCommand.SET,
                args={
                    "type": EMBED_BLOCK_TYPE,
                    "space_id": space_id,
                    "id": block_id,
                    "version": 1,
                },
            ),
            Operation(
                pointer=pointer,
                command=OperationCommand.UPDATE,
                args={
                    "parent_id": parent_page_id,
                    "parent_table": "block",
                    "alive": True,
                },
            ),
            Operation(
                pointer=page_pointer,
                command=OperationCommand.LIST_AFTER,
                path=["content"],
                args=list_args,
            ),
        ],
    )


def build_format_transaction(block_id: str, space_id: str) -> Transaction:
    """Transaction 2: apply the default display format to a new block."""
    return Transaction(
        space_id=space_id,
        debug={"userAction": FORMAT_ACTION},
        operations=[
            Operation(
                pointer=BlockPointer(id=block_id, space_id=space_id),
                command=OperationCommand.UPDATE,
                path=["format"],
                args=dict(DEFAULT_BLOCK_FORMAT),
            ),
        ],
    )


def build_attach_transaction(
    block_id: str,
    space_id: str,
    file_url: str,
    file_name: str,
    content_length: int,
) -> Transaction:
    """Transaction 3: point the block's properties at an uploaded object."""
    return Transaction(
        space_id=space_id,
        debug={"userAction": ATTACH_ACTION},
        operations=[
            Operation(
                pointer=BlockPointer(id=block_id, space_id=space_id),
                command=OperationCommand.UPDATE,
                path=["properties"],
                args={
                    "source": [[file_url]],
                    "title": [[file_name]],
                    "size": [[size_to_text(content_length)]],
                },
            ),
        ],
    )


class BlockTransactionBuilder:
    """Compound block operations built on NotionSession.submit_transaction.

    Example:
        >>> builder = BlockTransactionBuilder(session)
        >>> block_id = builder.create_block(space_id, page_id, InsertAnchor.unanchored())
        >>> # ... upload the file ...
        >>> builder.attach_file(block_id, space_id, url, "notes.txt", 2048)
    """

    def __init__(self, session: NotionSession):
        self.session = session

    def create_block(
        self,
        space_id: str,
        parent_page_id: str,
        anchor: InsertAnchor,
    ) -> str:
        """Create and format a new embed block under a page.

        Submits two transactions in order: creation (Set, Update, ListAfter)
        and formatting (Update on ``format``).

        Args:
            space_id: Workspace of the page
            parent_page_id: Dashed id of the page receiving the block
            anchor: Insert position in the page's child list

        Returns:
            The new block id (state FORMATTED)

        Raises:
            BlockCreationError: If either transaction fails; carries the block id
        """
        block_id = str(uuid.uuid4())
        logger.debug(f"new_block_id = {block_id}")

        try:
            self.session.submit_transaction(
                build_create_transaction(block_id, space_id, parent_page_id, anchor)
            )
        except NotionError as e:
            logger.error(f"Failed to create block {block_id}: {e}")
            raise BlockCreationError(block_id, "create", e) from e
        logger.debug(f"New block {block_id} created.")

        try:
            self.session.submit_transaction(build_format_transaction(block_id, space_id))
        except NotionError as e:
            logger.error(
                f"Block {block_id} was created but could not be formatted and "
                f"is left unconfigured: {e}"
            )
            raise BlockCreationError(block_id, "format", e) from e
        logger.debug(f"New block {block_id} formatted.")

        return block_id

    def attach_file(
        self,
        block_id: str,
        space_id: str,
        file_url: str,
        file_name: str,
        content_length: int,
    ) -> None:
        """Link an uploaded object into a block.

        Must only be called once the upload has completed; attaching earlier
        publishes a broken link.

        Raises:
            TransportFailureError, RemoteRejectedError, MalformedResponseError
        """
        self.session.submit_transaction(
            build_attach_transaction(block_id, space_id, file_url, file_name, content_length)
        )
        logger.debug(f"Attached {file_name} to block {block_id}")
