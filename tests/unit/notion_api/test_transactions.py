"""Unit tests for notion_api.transactions module."""

import pytest

from src.notion_api.errors import BlockCreationError, RemoteRejectedError, TransportFailureError
from src.notion_api.models import OperationCommand
from src.notion_api.transactions import (
    ATTACH_ACTION,
    CREATE_ACTION,
    DEFAULT_BLOCK_FORMAT,
    FORMAT_ACTION,
    BlockState,
    BlockTransactionBuilder,
    InsertAnchor,
    advance,
    build_attach_transaction,
    build_create_transaction,
)
from tests.fixtures.notion_fixtures import BLOCK_ID, OBJECT_URL, PAGE_ID, SPACE_ID


def submitted(mock_session):
    return [c.args[0] for c in mock_session.submit_transaction.call_args_list]


class TestBlockStateMachine:
    """Test cases for advance."""

    def test_full_forward_path(self):
        """Every state advances to its single successor."""
        state = BlockState.ABSENT
        for target in (BlockState.CREATED, BlockState.FORMATTED,
                       BlockState.FILE_UPLOADED, BlockState.ATTACHED):
            state = advance(state, target)
        assert state is BlockState.ATTACHED

    def test_skipping_a_step_is_illegal(self):
        """A block cannot jump from CREATED to FILE_UPLOADED."""
        with pytest.raises(ValueError):
            advance(BlockState.CREATED, BlockState.FILE_UPLOADED)

    def test_attached_is_terminal(self):
        """Nothing follows ATTACHED."""
        with pytest.raises(ValueError):
            advance(BlockState.ATTACHED, BlockState.STUCK)


class TestBuildCreateTransaction:
    """Test cases for build_create_transaction."""

    def test_three_operations_in_order(self):
        """Set, Update and ListAfter are emitted in that order."""
        txn = build_create_transaction(BLOCK_ID, SPACE_ID, PAGE_ID, InsertAnchor.unanchored())

        assert [op.command for op in txn.operations] == [
            OperationCommand.SET, OperationCommand.UPDATE, OperationCommand.LIST_AFTER,
        ]
        assert txn.debug == {"userAction": CREATE_ACTION}
        assert txn.space_id == SPACE_ID

    def test_set_and_update_target_new_block(self):
        """The block is created as an embed and parented to the page."""
        txn = build_create_transaction(BLOCK_ID, SPACE_ID, PAGE_ID, InsertAnchor.unanchored())
        set_op, update_op, _ = txn.operations

        assert set_op.pointer.id == BLOCK_ID
        assert set_op.args == {"type": "embed", "space_id": SPACE_ID, "id": BLOCK_ID, "version": 1}
        assert update_op.args == {"parent_id": PAGE_ID, "parent_table": "block", "alive": True}

    def test_unanchored_list_after_targets_page_content(self):
        """Without an anchor, ListAfter only names the new block."""
        txn = build_create_transaction(BLOCK_ID, SPACE_ID, PAGE_ID, InsertAnchor.unanchored())
        list_op = txn.operations[2].to_dict()

        assert list_op["pointer"] == {"table": "block", "id": PAGE_ID, "spaceId": SPACE_ID}
        assert list_op["path"] == ["content"]
        assert list_op["command"] == "listAfter"
        assert list_op["args"] == {"id": BLOCK_ID}

    def test_anchored_list_after_names_previous_block(self):
        """With an anchor, ListAfter inserts after the given block."""
        previous = "11111111-2222-4333-8444-555555555555"
        txn = build_create_transaction(BLOCK_ID, SPACE_ID, PAGE_ID, InsertAnchor.after_block(previous))

        assert txn.operations[2].args == {"id": BLOCK_ID, "after": previous}

    def test_fresh_transaction_ids(self):
        """Every built transaction gets its own id."""
        a = build_create_transaction(BLOCK_ID, SPACE_ID, PAGE_ID, InsertAnchor.unanchored())
        b = build_create_transaction(BLOCK_ID, SPACE_ID, PAGE_ID, InsertAnchor.unanchored())
        assert a.id != b.id


class TestBuildAttachTransaction:
    """Test cases for build_attach_transaction."""

    def test_properties_update(self):
        """Source, title and human-readable size are written under properties."""
        txn = build_attach_transaction(BLOCK_ID, SPACE_ID, OBJECT_URL, "notes.txt", 2048)
        (op,) = txn.operations

        assert txn.debug == {"userAction": ATTACH_ACTION}
        assert op.command is OperationCommand.UPDATE
        assert op.path == ["properties"]
        assert op.args == {
            "source": [[OBJECT_URL]],
            "title": [["notes.txt"]],
            "size": [["2.0KB"]],
        }


class TestBlockTransactionBuilder:
    """Test cases for BlockTransactionBuilder."""

    def test_create_block_submits_create_then_format(self, mock_session):
        """Two transactions: 3 creation ops, then 1 format op, same block id."""
        builder = BlockTransactionBuilder(mock_session)

        block_id = builder.create_block(SPACE_ID, PAGE_ID, InsertAnchor.unanchored())

        create, fmt = submitted(mock_session)
        assert len(create.operations) == 3
        assert len(fmt.operations) == 1
        assert create.operations[0].pointer.id == block_id
        assert fmt.operations[0].pointer.id == block_id
        assert fmt.operations[0].path == ["format"]
        assert fmt.operations[0].args == DEFAULT_BLOCK_FORMAT
        assert fmt.debug == {"userAction": FORMAT_ACTION}

    def test_create_failure_carries_block_id(self, mock_session):
        """A failed creation transaction raises with the new id and stage."""
        mock_session.submit_transaction.side_effect = TransportFailureError("op", "reset")
        builder = BlockTransactionBuilder(mock_session)

        with pytest.raises(BlockCreationError) as exc_info:
            builder.create_block(SPACE_ID, PAGE_ID, InsertAnchor.unanchored())

        assert exc_info.value.stage == "create"
        assert exc_info.value.block_id
        assert mock_session.submit_transaction.call_count == 1

    def test_format_failure_carries_created_block_id(self, mock_session):
        """If formatting fails the error names the block that now exists."""
        mock_session.submit_transaction.side_effect = [None, RemoteRejectedError("op", 400, "bad")]
        builder = BlockTransactionBuilder(mock_session)

        with pytest.raises(BlockCreationError) as exc_info:
            builder.create_block(SPACE_ID, PAGE_ID, InsertAnchor.unanchored())

        create, _ = submitted(mock_session)
        assert exc_info.value.stage == "format"
        assert exc_info.value.block_id == create.operations[0].pointer.id
        assert isinstance(exc_info.value.cause, RemoteRejectedError)

    def test_attach_file_submits_one_transaction(self, mock_session):
        """attach_file sends a single properties update."""
        builder = BlockTransactionBuilder(mock_session)

        builder.attach_file(BLOCK_ID, SPACE_ID, OBJECT_URL, "notes.txt", 2048)

        (txn,) = submitted(mock_session)
        assert txn.operations[0].pointer.id == BLOCK_ID
        assert txn.operations[0].args["size"] == [["2.0KB"]]
