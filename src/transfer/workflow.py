"""Per-file put workflow: create block -> upload -> attach -> record.

Each file walks the block state machine from src.notion_api.transactions.
Steps of one file are strictly sequential; separate files are independent
(they touch disjoint block ids) and may run concurrently. Nothing is rolled
back on failure: the outcome carries the block id and the state reached so
a stuck block can be cleaned up by hand.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from src.file_store.errors import DuplicateFileNameError
from src.file_store.models import FileRecord
from src.file_store.store import FileStore
from src.notion_api.errors import AttachError, BlockCreationError
from src.notion_api.models import PageIdentity
from src.notion_api.transactions import (
    BlockState,
    BlockTransactionBuilder,
    InsertAnchor,
    advance,
)

from .pipeline import ProgressCallback, TransferPipeline

logger = logging.getLogger(__name__)

MAX_WORKERS = 4

# Called with the file name and size; returns that file's progress callback
ProgressFactory = Callable[[str, int], Optional[ProgressCallback]]

# Block exists remotely but was never attached
_STRANDED_STATES = (BlockState.CREATED, BlockState.FORMATTED, BlockState.FILE_UPLOADED)


@dataclass
class PutRequest:
    """One file to put.

    Attributes:
        path: Local file to upload
        file_name: Unique name to attach and record it under
    """
    path: Path
    file_name: str


@dataclass
class PutOutcome:
    """Result of one file's workflow.

    Attributes:
        file_name: Name the file was put under
        state: Last state the block reached
        block_id: Block id once created (set even when a later step failed)
        record: Stored record when the workflow completed
        error: The error that stopped the workflow, if any
    """
    file_name: str
    state: BlockState = BlockState.ABSENT
    block_id: Optional[str] = None
    record: Optional[FileRecord] = None
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.state is BlockState.ATTACHED and self.error is None

    @property
    def stuck(self) -> bool:
        """Block exists remotely but was never attached."""
        return self.state is BlockState.STUCK


class AttachWorkflow:
    """Runs the put workflow for one or more files against one page.

    Example:
        >>> workflow = AttachWorkflow(builder, pipeline, store, identity)
        >>> outcome = workflow.put(PutRequest(Path("notes.txt"), "notes.txt"),
        ...                        InsertAnchor.unanchored())
    """

    def __init__(
        self,
        builder: BlockTransactionBuilder,
        pipeline: TransferPipeline,
        store: FileStore,
        identity: PageIdentity,
    ):
        self.builder = builder
        self.pipeline = pipeline
        self.store = store
        self.identity = identity

    def put(
        self,
        request: PutRequest,
        anchor: InsertAnchor,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> PutOutcome:
        """Upload one file and attach it to a new block on the page.

        Errors are captured on the returned outcome, never raised.
        """
        outcome = PutOutcome(file_name=request.file_name)
        space_id = self.identity.space_id

        try:
            # Check-then-act: not atomic against concurrent writers
            if self.store.exists_by_name(request.file_name):
                raise DuplicateFileNameError(request.file_name)

            try:
                outcome.block_id = self.builder.create_block(
                    space_id, self.identity.page_id, anchor
                )
            except BlockCreationError as e:
                outcome.block_id = e.block_id
                if e.stage == "format":
                    outcome.state = BlockState.CREATED
                raise
            outcome.state = advance(BlockState.ABSENT, BlockState.CREATED)
            outcome.state = advance(outcome.state, BlockState.FORMATTED)

            logger.info(f"block_id = {outcome.block_id}")
            logger.info(f"space_id = {space_id}")

            result = self.pipeline.upload(
                request.path,
                outcome.block_id,
                space_id,
                file_name=request.file_name,
                progress=progress,
                cancel=cancel,
            )
            outcome.state = advance(outcome.state, BlockState.FILE_UPLOADED)

            self.builder.attach_file(
                outcome.block_id,
                space_id,
                result.url,
                result.file_name,
                result.content_length,
            )
            outcome.state = advance(outcome.state, BlockState.ATTACHED)

            record = FileRecord(
                file_name=request.file_name,
                file_url=result.url,
                space_id=space_id,
                block_id=outcome.block_id,
                origin_file_path=str(request.path.resolve()),
            )
            self.store.insert(record)
            outcome.record = record

        except AttachError as e:
            outcome.error = e
            if outcome.state in _STRANDED_STATES:
                logger.error(
                    f"Block {outcome.block_id} for {request.file_name} is stuck "
                    f"in state '{outcome.state.value}' and needs manual cleanup: {e}"
                )
                outcome.state = BlockState.STUCK
            elif outcome.block_id is not None and outcome.state is BlockState.ABSENT:
                # The create transaction failed; the block may or may not exist
                logger.error(
                    f"Put of {request.file_name} failed creating block "
                    f"{outcome.block_id}: {e}"
                )
            else:
                logger.error(f"Put of {request.file_name} failed: {e}")

        return outcome

    def put_many(
        self,
        requests: Sequence[PutRequest],
        continue_on_failure: bool = False,
        workers: int = 1,
        progress_factory: Optional[ProgressFactory] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[PutOutcome]:
        """Put several files.

        With one worker, files go in order and each new block is anchored
        after the previous one. With more workers, files run concurrently,
        every insert is unanchored and page order is not guaranteed.

        Args:
            requests: Files to put
            continue_on_failure: Keep going after a failed file; otherwise
                                 remaining files are skipped
            workers: Number of concurrent file workflows
            progress_factory: Builds a per-file progress callback
            cancel: Event that aborts in-flight transfers when set

        Returns:
            One outcome per file that was attempted
        """
        if workers <= 1:
            return self._put_sequential(requests, continue_on_failure, progress_factory, cancel)
        return self._put_parallel(
            requests, continue_on_failure, min(workers, MAX_WORKERS), progress_factory, cancel
        )

    def _progress_for(
        self,
        request: PutRequest,
        progress_factory: Optional[ProgressFactory],
    ) -> Optional[ProgressCallback]:
        if progress_factory is None:
            return None
        try:
            total = request.path.stat().st_size
        except OSError:
            # Unreadable files fail inside put() with a FileSystemError
            return None
        return progress_factory(request.file_name, total)

    def _put_sequential(
        self,
        requests: Sequence[PutRequest],
        continue_on_failure: bool,
        progress_factory: Optional[ProgressFactory],
        cancel: Optional[threading.Event],
    ) -> List[PutOutcome]:
        outcomes = []
        anchor = InsertAnchor.unanchored()
        for request in requests:
            outcome = self.put(
                request, anchor, self._progress_for(request, progress_factory), cancel
            )
            outcomes.append(outcome)
            if outcome.succeeded:
                anchor = InsertAnchor.after_block(outcome.block_id)
            elif not continue_on_failure:
                logger.warning("Stopping batch after failure")
                break
        return outcomes

    def _put_parallel(
        self,
        requests: Sequence[PutRequest],
        continue_on_failure: bool,
        workers: int,
        progress_factory: Optional[ProgressFactory],
        cancel: Optional[threading.Event],
    ) -> List[PutOutcome]:
        # Without continue-on-failure the first failure cancels the rest
        cancel = cancel or threading.Event()
        outcomes: List[Tuple[int, PutOutcome]] = []

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(
                    self._put_unless_cancelled, request, progress_factory, cancel
                ): index
                for index, request in enumerate(requests)
            }
            for future in as_completed(futures):
                outcome = future.result()
                if outcome is None:
                    continue
                outcomes.append((futures[future], outcome))
                if not outcome.succeeded and not continue_on_failure:
                    cancel.set()

        return [outcome for _, outcome in sorted(outcomes, key=lambda item: item[0])]

    def _put_unless_cancelled(
        self,
        request: PutRequest,
        progress_factory: Optional[ProgressFactory],
        cancel: threading.Event,
    ) -> Optional[PutOutcome]:
        if cancel.is_set():
            return None
        return self.put(
            request,
            InsertAnchor.unanchored(),
            self._progress_for(request, progress_factory),
            cancel,
        )
