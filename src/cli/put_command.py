"""PutCommand: upload local files and attach them to the configured page."""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from src.notion_api.errors import AttachError
from src.transfer.workflow import AttachWorkflow, PutOutcome, PutRequest

from .context import AppContext
from .errors import UsageError, exit_code_for
from .models import ExitCode, PutSummary
from .output import OutputHandler

logger = logging.getLogger(__name__)


class PutCommand:
    """Attaches one or more local files to the configured Notion page.

    Each file gets its own embed block. The stored name is
    ``prefix + (name or basename)`` and must not already be recorded.

    Example:
        >>> cmd = PutCommand(context, OutputHandler())
        >>> exit_code = cmd.run([Path("notes.txt")], prefix="docs/")
    """

    def __init__(self, context: AppContext, output_handler: Optional[OutputHandler] = None):
        self.context = context
        self.output_handler = output_handler or OutputHandler()

    def run(
        self,
        paths: Sequence[Path],
        prefix: str = "",
        name: Optional[str] = None,
        continue_on_failure: bool = False,
        workers: int = 1,
    ) -> ExitCode:
        """Put the given files.

        Args:
            paths: Local files to upload
            prefix: Prepended to every stored name
            name: Stored name override (single file only)
            continue_on_failure: Keep going after a failed file
            workers: Number of files transferred concurrently

        Returns:
            SUCCESS when every file was attached, an error code otherwise
        """
        output = self.output_handler
        try:
            requests = self._build_requests(paths, prefix, name)
            self._reject_duplicates(requests)

            with output.spinner("Resolving page..."):
                identity = self.context.page_identity()
            output.info(f"Page {identity.page_id} in space {identity.space_id}")
            if identity.owner_user_id is None:
                logger.debug("Page owner not reported by the service")

            workflow = AttachWorkflow(
                self.context.builder,
                self.context.pipeline,
                self.context.store,
                identity,
            )
            with output.transfer_progress() as progress:
                outcomes = workflow.put_many(
                    requests,
                    continue_on_failure=continue_on_failure,
                    workers=workers,
                    progress_factory=progress.track,
                )

        except AttachError as e:
            logger.error(f"Put failed: {e}")
            output.error(str(e))
            return exit_code_for(e)

        summary = self._summarize(requests, outcomes)
        output.print_put_summary(summary)
        return ExitCode.SUCCESS if summary.all_succeeded else ExitCode.GENERAL_ERROR

    def _build_requests(
        self,
        paths: Sequence[Path],
        prefix: str,
        name: Optional[str],
    ) -> List[PutRequest]:
        if not paths:
            raise UsageError("No files given")
        if name is not None and len(paths) > 1:
            raise UsageError("--name can only be used with a single file")

        requests = []
        seen = set()
        for path in paths:
            if not path.is_file():
                raise UsageError(f"Not a file: {path}")
            file_name = prefix + (name or path.name)
            if file_name in seen:
                raise UsageError(f"File name '{file_name}' given more than once")
            seen.add(file_name)
            requests.append(PutRequest(path=path, file_name=file_name))
        return requests

    def _reject_duplicates(self, requests: Sequence[PutRequest]) -> None:
        taken = [r.file_name for r in requests if self.context.store.exists_by_name(r.file_name)]
        if taken:
            raise UsageError(f"Already stored: {', '.join(taken)}")

    def _summarize(
        self,
        requests: Sequence[PutRequest],
        outcomes: Sequence[PutOutcome],
    ) -> PutSummary:
        summary = PutSummary()
        attempted = set()
        for outcome in outcomes:
            attempted.add(outcome.file_name)
            if outcome.succeeded:
                summary.attached.append(outcome.file_name)
                self.output_handler.success(f"{outcome.file_name} -> block {outcome.block_id}")
            else:
                summary.failed.append(outcome.file_name)
                self.output_handler.error(f"{outcome.file_name}: {outcome.error}")
                if outcome.stuck:
                    summary.stuck_block_ids.append(outcome.block_id)
        summary.skipped = [r.file_name for r in requests if r.file_name not in attempted]
        if summary.skipped:
            self.output_handler.warning(
                f"Batch stopped after a failure; {len(summary.skipped)} file(s) not attempted "
                f"(use --continue-on-failure to keep going)"
            )
        return summary
