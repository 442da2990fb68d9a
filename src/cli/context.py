"""Wiring of the Notion client, transfer pipeline and record store.

Commands receive an AppContext instead of building clients themselves so
tests can hand in doubles.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from src.file_store.store import FileStore
from src.notion_api.auth import Credentials
from src.notion_api.errors import InvalidIdentifierError
from src.notion_api.identifiers import to_dashed_id
from src.notion_api.models import PageIdentity
from src.notion_api.session import NotionSession
from src.notion_api.transactions import BlockTransactionBuilder
from src.notion_api.transport import DEFAULT_USER_AGENT, Transport
from src.transfer.pipeline import TransferPipeline

from .config import ConfigLoader
from .errors import ConfigError
from .models import AppConfig

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything a command needs to talk to Notion and the local store."""
    credentials: Credentials
    page_id: str
    session: NotionSession
    builder: BlockTransactionBuilder
    pipeline: TransferPipeline
    store: FileStore

    @classmethod
    def from_config(cls, config: AppConfig) -> "AppContext":
        """Resolve credentials and build the clients.

        Raises:
            InvalidCredentialsError: If a required credential is missing
            ConfigError: If the configured page id is malformed
            StoreAccessError: If the record database cannot be opened
        """
        credentials = ConfigLoader.resolve_credentials(config)
        try:
            page_id = to_dashed_id(credentials.page_id)
        except InvalidIdentifierError as e:
            raise ConfigError(str(e), 'notion.page_id') from e

        transport = Transport(
            token_v2=credentials.token_v2,
            user_agent=credentials.user_agent or DEFAULT_USER_AGENT,
        )
        session = NotionSession(transport)
        store = FileStore(ConfigLoader.database_file(config))
        logger.debug(f"Using record database {store.db_path}")

        return cls(
            credentials=credentials,
            page_id=page_id,
            session=session,
            builder=BlockTransactionBuilder(session),
            pipeline=TransferPipeline(session),
            store=store,
        )

    def page_identity(self, page_id: Optional[str] = None) -> PageIdentity:
        """Identity of the configured page (or of ``page_id``)."""
        return self.session.fetch_page_identity(page_id or self.page_id)

    def close(self) -> None:
        self.session.transport.close()
        self.pipeline.http.close()
