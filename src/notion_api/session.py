"""Remote session facade over the Notion internal API.

This module exposes the five remote operations the tool needs, each a thin
typed call through the Transport:

- fetch_page_identity: resolve a page's space and owner
- fetch_page_chunk: load a page's child blocks (cursor-paginated)
- submit_transaction: apply block mutations
- request_upload_slot: issue a single-use signed upload location
- request_download_urls: exchange stored object URLs for signed GET URLs

Idempotent reads are retried on transient errors; writes never are.
"""

import logging
import uuid
from typing import Any, Dict, Iterator, List, Optional

from .errors import InvalidIdentifierError
from .identifiers import to_dashed_id
from .models import (
    BlockPointer,
    BlockRecord,
    Cursor,
    PageChunk,
    PageIdentity,
    SignedUrlRequest,
    Transaction,
    UploadSlot,
)
from .retry_logic import retry_on_transient
from .transport import Transport

logger = logging.getLogger(__name__)

PAGE_DATA_PATH = "/getPublicPageData"
LOAD_PAGE_CHUNK_PATH = "/loadPageChunk"
SAVE_TRANSACTIONS_PATH = "/saveTransactions"
UPLOAD_FILE_URL_PATH = "/getUploadFileUrl"
SIGNED_FILE_URLS_PATH = "/getSignedFileUrls"

UPLOAD_BUCKET = "secure"

# Safety stop for cursor pagination
MAX_PAGE_CHUNKS = 1000


def _parse_ack(data: Any) -> None:
    if not isinstance(data, dict):
        raise TypeError(f"expected a JSON object, got {type(data).__name__}")


def _parse_signed_urls(expected: int):
    def parse(data: Dict[str, Any]) -> List[str]:
        urls = data["signedUrls"]
        if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
            raise TypeError("field 'signedUrls' must be a list of strings")
        if len(urls) != expected:
            raise ValueError(
                f"expected {expected} signed URL(s), got {len(urls)}"
            )
        return urls
    return parse


class NotionSession:
    """Typed facade over the five remote operations.

    Example:
        >>> session = NotionSession(Transport(token_v2="..."))
        >>> identity = session.fetch_page_identity("2131b10c-ebf6-4938-a127-7089ff02dbe4")
        >>> print(identity.space_id)
    """

    def __init__(self, transport: Transport):
        self.transport = transport

    def fetch_page_identity(self, page_id: str) -> PageIdentity:
        """Fetch the identity (space, owner) of a page.

        Args:
            page_id: Page id, already in dashed form

        Returns:
            PageIdentity of the page

        Raises:
            InvalidIdentifierError: If page_id is not in dashed form
            TransportFailureError, RemoteRejectedError, MalformedResponseError
        """
        if to_dashed_id(page_id) != page_id:
            raise InvalidIdentifierError(page_id)

        body = {
            "type": "block-space",
            "name": "page",
            "blockId": page_id,
            "saveParent": False,
            "showMoveTo": False,
        }
        identity = retry_on_transient(
            self.transport.send,
            "POST",
            PAGE_DATA_PATH,
            body,
            PageIdentity.from_dict,
            operation=f"fetch_page_identity({page_id})",
        )
        logger.debug(f"page_id = {identity.page_id}")
        logger.debug(f"space_id = {identity.space_id}")
        logger.debug(f"owner_user_id = {identity.owner_display()}")
        return identity

    def fetch_page_chunk(
        self,
        page_id: str,
        chunk_number: int = 0,
        limit: int = 100,
        cursor: Optional[Cursor] = None,
    ) -> PageChunk:
        """Load one chunk of a page's child-block records.

        Args:
            page_id: Dashed page id
            chunk_number: Zero-based chunk index
            limit: Maximum records per chunk
            cursor: Continuation cursor from the previous chunk

        Returns:
            PageChunk with block records and the next cursor
        """
        body = {
            "pageId": page_id,
            "chunkNumber": chunk_number,
            "limit": limit,
            "cursor": (cursor or Cursor()).to_dict(),
            "verticalColumns": False,
        }
        return retry_on_transient(
            self.transport.send,
            "POST",
            LOAD_PAGE_CHUNK_PATH,
            body,
            PageChunk.from_dict,
            operation=f"fetch_page_chunk({page_id}, {chunk_number})",
        )

    def iter_page_blocks(self, page_id: str, limit: int = 100) -> Iterator[BlockRecord]:
        """Yield every block record of a page, following the cursor."""
        cursor: Optional[Cursor] = None
        for chunk_number in range(MAX_PAGE_CHUNKS):
            chunk = self.fetch_page_chunk(page_id, chunk_number, limit, cursor)
            yield from chunk.blocks
            if chunk.cursor.exhausted or not chunk.blocks:
                return
            cursor = chunk.cursor
        logger.warning(f"Stopped paging {page_id} after {MAX_PAGE_CHUNKS} chunks")

    def submit_transaction(self, transaction: Transaction) -> None:
        """Submit one transaction. Never retried.

        Raises:
            TransportFailureError, RemoteRejectedError, MalformedResponseError
        """
        body = {
            "requestId": str(uuid.uuid4()),
            "transactions": [transaction.to_dict()],
        }
        self.transport.send(
            "POST",
            SAVE_TRANSACTIONS_PATH,
            body,
            _parse_ack,
            operation=f"submit_transaction({transaction.id})",
        )

    def request_upload_slot(
        self,
        file_name: str,
        mime_type: str,
        content_length: int,
        pointer: BlockPointer,
    ) -> UploadSlot:
        """Request a single-use signed upload location for a block.

        The block must already exist; the service rejects upload requests
        against unknown blocks.
        """
        body = {
            "bucket": UPLOAD_BUCKET,
            "name": file_name,
            "contentType": mime_type,
            "contentLength": content_length,
            "record": pointer.to_dict(),
        }
        return self.transport.send(
            "POST",
            UPLOAD_FILE_URL_PATH,
            body,
            UploadSlot.from_dict,
            operation=f"request_upload_slot({pointer.id})",
        )

    def request_download_urls(self, urls: List[SignedUrlRequest]) -> List[str]:
        """Exchange stored object URLs for signed, time-limited GET URLs.

        Returns:
            Signed URLs in the same order as ``urls``
        """
        body = {"urls": [request.to_dict() for request in urls]}
        block_ids = ", ".join(request.pointer.id for request in urls)
        return retry_on_transient(
            self.transport.send,
            "POST",
            SIGNED_FILE_URLS_PATH,
            body,
            _parse_signed_urls(len(urls)),
            operation=f"request_download_urls({block_ids})",
        )
