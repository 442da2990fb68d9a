"""QueryCommand: list stored files by name prefix."""

import logging
from typing import Optional

from src.file_store.errors import FileStoreError
from src.file_store.store import FileStore

from .errors import exit_code_for
from .models import ExitCode
from .output import OutputHandler

logger = logging.getLogger(__name__)


class QueryCommand:
    """Lists stored file records whose name starts with a prefix.

    Only the local record store is read; no remote call is made.
    """

    def __init__(self, store: FileStore, output_handler: Optional[OutputHandler] = None):
        self.store = store
        self.output_handler = output_handler or OutputHandler()

    def run(self, prefix: str) -> ExitCode:
        try:
            records = self.store.query_by_prefix(prefix)
        except FileStoreError as e:
            logger.error(f"Query failed: {e}")
            self.output_handler.error(str(e))
            return exit_code_for(e)

        logger.info(f"{len(records)} record(s) match prefix '{prefix}'")
        self.output_handler.print_records(records)
        return ExitCode.SUCCESS
