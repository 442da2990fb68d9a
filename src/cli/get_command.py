"""GetCommand: download an attached file."""

import logging
from pathlib import Path
from typing import Optional

from src.notion_api.errors import AttachError
from src.notion_api.identifiers import to_dashed_id

from .context import AppContext
from .errors import UsageError, exit_code_for
from .models import ExitCode
from .output import OutputHandler

logger = logging.getLogger(__name__)


class GetCommand:
    """Downloads a file either by stored name or by object URL.

    By name, the block and space come from the local record store. By URL,
    they can be given explicitly; otherwise the space is the configured
    page's space and the block is located by scanning that page.

    Example:
        >>> cmd = GetCommand(context, OutputHandler())
        >>> exit_code = cmd.run(name="docs/notes.txt", output_dir=Path("."))
    """

    def __init__(self, context: AppContext, output_handler: Optional[OutputHandler] = None):
        self.context = context
        self.output_handler = output_handler or OutputHandler()

    def run(
        self,
        name: Optional[str] = None,
        url: Optional[str] = None,
        block_id: Optional[str] = None,
        space_id: Optional[str] = None,
        output_dir: Path = Path("."),
        output_name: Optional[str] = None,
    ) -> ExitCode:
        """Download one file.

        Args:
            name: Stored file name to look up
            url: Object URL to download without a stored record
            block_id: Block holding the attachment (with ``url``)
            space_id: Workspace of that block (with ``url``)
            output_dir: Directory to write into
            output_name: Local file name (defaults to the signed URL's last segment)

        Returns:
            ExitCode of the operation
        """
        output = self.output_handler
        try:
            file_url, block_id, space_id = self._resolve_target(name, url, block_id, space_id)
            output.debug(f"Downloading {file_url} from block {block_id}")

            with output.transfer_progress() as progress:
                destination = self.context.pipeline.download(
                    file_url,
                    block_id,
                    space_id,
                    self.context.credentials.file_token,
                    output_dir,
                    output_name=output_name,
                    progress=progress.track(name or output_name or "download", None),
                )

        except AttachError as e:
            logger.error(f"Download failed: {e}")
            output.error(str(e))
            return exit_code_for(e)

        output.success(f"Saved {destination}")
        return ExitCode.SUCCESS

    def _resolve_target(
        self,
        name: Optional[str],
        url: Optional[str],
        block_id: Optional[str],
        space_id: Optional[str],
    ):
        if (name is None) == (url is None):
            raise UsageError("Give either a stored file name or --url")

        if name is not None:
            if block_id or space_id:
                raise UsageError("--block-id and --space-id only apply with --url")
            record = self.context.store.find_by_name(name)
            return record.file_url, record.block_id, record.space_id

        if block_id is not None:
            block_id = to_dashed_id(block_id)

        if space_id is None:
            with self.output_handler.spinner("Resolving page..."):
                space_id = self.context.page_identity().space_id

        if block_id is None:
            with self.output_handler.spinner("Locating attachment on page..."):
                block_id = self.context.pipeline.locate_attachment(self.context.page_id, url)
            if block_id is None:
                raise UsageError(f"No block on page {self.context.page_id} references {url}")
            logger.info(f"Located attachment in block {block_id}")

        return url, block_id, space_id
