"""Wire models for the Notion internal API.

This module defines the request and response shapes exchanged with the
reverse-engineered ``/api/v3`` endpoints. Request models serialize with
``to_dict()`` into lowerCamelCase JSON; response models parse with
``from_dict()`` and raise KeyError/TypeError/ValueError when the payload
does not have the expected shape (the transport turns those into
MalformedResponseError).
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


BLOCK_TABLE = "block"


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"field '{key}' must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class PageIdentity:
    """Identity of the target page, fetched once per session.

    The service sometimes omits the owner, so ``owner_user_id`` stays None
    rather than being defaulted; use ``owner_display()`` for rendering.

    Attributes:
        page_id: Dashed page id
        space_id: Workspace id every mutation must be scoped to
        owner_user_id: Page owner id, None when the service omits it
        space_name: Workspace display name (informational)
        space_domain: Workspace subdomain (informational)
    """
    page_id: str
    space_id: str
    owner_user_id: Optional[str] = None
    space_name: Optional[str] = None
    space_domain: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PageIdentity":
        owner = data.get("ownerUserId")
        if owner is not None and not isinstance(owner, str):
            raise TypeError("field 'ownerUserId' must be a string")
        return cls(
            page_id=_require_str(data, "pageId"),
            space_id=_require_str(data, "spaceId"),
            owner_user_id=owner,
            space_name=data.get("spaceName"),
            space_domain=data.get("spaceDomain"),
        )

    def owner_display(self) -> str:
        return self.owner_user_id if self.owner_user_id is not None else ""

    def pointer(self) -> "BlockPointer":
        """Pointer to the page itself (pages are blocks too)."""
        return BlockPointer(id=self.page_id, space_id=self.space_id)


@dataclass(frozen=True)
class BlockPointer:
    """The (table, id, spaceId) triple identifying a mutation target."""
    id: str
    space_id: str
    table: str = BLOCK_TABLE

    def to_dict(self) -> Dict[str, Any]:
        return {"table": self.table, "id": self.id, "spaceId": self.space_id}


class OperationCommand(str, Enum):
    """Mutation commands understood by saveTransactions.

    - SET: replace/initialize the addressed object with args
    - UPDATE: merge args into the addressed object
    - LIST_AFTER: insert an id into the child list at path
    """
    SET = "set"
    UPDATE = "update"
    LIST_AFTER = "listAfter"


@dataclass
class Operation:
    """One pointer-scoped mutation inside a transaction.

    Attributes:
        pointer: Record the operation targets
        command: Mutation command
        path: Sub-object of the record (empty = record root)
        args: Field values, serialized in insertion order
    """
    pointer: BlockPointer
    command: OperationCommand
    path: List[str] = field(default_factory=list)
    args: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pointer": self.pointer.to_dict(),
            "path": list(self.path),
            "command": self.command.value,
            "args": dict(self.args),
        }


@dataclass
class Transaction:
    """Atomic batch of operations accepted by the service.

    A failed transaction must be resubmitted whole; the same transaction
    id is never reused for a retry.

    Attributes:
        space_id: Workspace the operations belong to
        operations: Ordered operations
        id: Fresh random UUID per transaction
        debug: Free-form tags, e.g. the editor action being imitated
    """
    space_id: str
    operations: List[Operation]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    debug: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "spaceId": self.space_id,
            "operations": [op.to_dict() for op in self.operations],
            "debug": dict(self.debug),
        }


@dataclass(frozen=True)
class UploadSlot:
    """Single-use upload location returned by getUploadFileUrl.

    Attributes:
        url: Permanent object URL stored in the block's ``source`` property
        signed_get_url: Short-lived read URL
        signed_put_url: Short-lived write URL; accepts exactly one PUT
    """
    url: str
    signed_get_url: str
    signed_put_url: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UploadSlot":
        return cls(
            url=_require_str(data, "url"),
            signed_get_url=_require_str(data, "signedGetUrl"),
            signed_put_url=_require_str(data, "signedPutUrl"),
        )


@dataclass(frozen=True)
class Cursor:
    """Continuation cursor for loadPageChunk."""
    stack: List[List[Dict[str, Any]]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cursor":
        stack = data["stack"]
        if not isinstance(stack, list):
            raise TypeError("field 'stack' must be a list")
        return cls(stack=stack)

    def to_dict(self) -> Dict[str, Any]:
        return {"stack": self.stack}

    @property
    def exhausted(self) -> bool:
        return not self.stack


@dataclass(frozen=True)
class BlockRecord:
    """A block as it appears in a page chunk's record map."""
    id: str
    alive: bool
    role: str
    value: Dict[str, Any]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlockRecord":
        value = data["value"]
        if not isinstance(value, dict):
            raise TypeError("block 'value' must be an object")
        return cls(
            id=_require_str(value, "id"),
            alive=bool(value.get("alive", False)),
            role=data.get("role", ""),
            value=value,
        )

    @property
    def source_url(self) -> Optional[str]:
        """First entry of ``properties.source``, if the block has one."""
        source = self.value.get("properties", {}).get("source")
        try:
            return source[0][0]
        except (IndexError, KeyError, TypeError):
            return None


@dataclass(frozen=True)
class PageChunk:
    """One page of child-block records plus the continuation cursor."""
    blocks: List[BlockRecord]
    cursor: Cursor

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PageChunk":
        record_map = data["recordMap"]
        raw_blocks = record_map.get("block", {})
        if not isinstance(raw_blocks, dict):
            raise TypeError("field 'recordMap.block' must be an object")
        return cls(
            blocks=[BlockRecord.from_dict(raw) for raw in raw_blocks.values()],
            cursor=Cursor.from_dict(data["cursor"]),
        )


@dataclass(frozen=True)
class SignedUrlRequest:
    """One stored object reference to exchange for a signed GET URL.

    The pointer is the permission record: the service checks access
    against that block before signing.
    """
    url: str
    pointer: BlockPointer

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "permissionRecord": self.pointer.to_dict(),
            "useS3Url": False,
        }
