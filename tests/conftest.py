"""Root pytest configuration for all tests."""

import logging
from unittest.mock import Mock

import pytest

from src.file_store.store import FileStore
from src.notion_api.session import NotionSession
from tests.fixtures.notion_fixtures import sample_identity, sample_slot

# Keep urllib3 connection chatter out of captured logs
logging.getLogger("urllib3").setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def clear_notion_env(monkeypatch):
    """Tests never pick up real credentials from the developer's shell."""
    for name in ("NOTION_TOKEN_V2", "NOTION_FILE_TOKEN", "NOTION_PAGE_ID", "USER_AGENT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("src.notion_api.auth.load_dotenv", lambda *a, **k: False)


@pytest.fixture
def mock_session():
    """NotionSession double with successful defaults."""
    session = Mock(spec=NotionSession)
    session.fetch_page_identity.return_value = sample_identity()
    session.request_upload_slot.return_value = sample_slot()
    session.submit_transaction.return_value = None
    return session


@pytest.fixture
def file_store(tmp_path):
    """FileStore backed by a temporary database."""
    return FileStore(tmp_path / "db" / "files.db")
