"""Authentication module for loading Notion credentials.

This module resolves the session token, file-access token, target page and
user agent. Values come from the configuration file and can be overridden by
environment variables, which python-dotenv loads from a .env file first.
"""

import os
from typing import NamedTuple, Optional

from dotenv import load_dotenv

from .errors import InvalidCredentialsError


class Credentials(NamedTuple):
    """Notion credentials and target page."""
    token_v2: str
    file_token: str
    page_id: str
    user_agent: Optional[str] = None


class Authenticator:
    """Loads and validates Notion credentials.

    Environment variables win over values passed in from the config file so a
    token can be rotated without editing the file. Credentials are never
    logged.

    Environment variables:
        NOTION_TOKEN_V2: Long-lived session token (``token_v2`` cookie)
        NOTION_FILE_TOKEN: Short-lived file-access token (``file_token`` cookie)
        NOTION_PAGE_ID: Page that receives uploaded files
        USER_AGENT: Optional user-agent override

    Example:
        >>> auth = Authenticator(token_v2="...", file_token="...", page_id="...")
        >>> creds = auth.get_credentials()
    """

    ENV_TOKEN_V2 = 'NOTION_TOKEN_V2'
    ENV_FILE_TOKEN = 'NOTION_FILE_TOKEN'
    ENV_PAGE_ID = 'NOTION_PAGE_ID'
    ENV_USER_AGENT = 'USER_AGENT'

    def __init__(
        self,
        token_v2: Optional[str] = None,
        file_token: Optional[str] = None,
        page_id: Optional[str] = None,
        user_agent: Optional[str] = None,
    ):
        """Initialize the authenticator and load variables from a .env file.

        Args:
            token_v2: Session token from the config file
            file_token: File-access token from the config file
            page_id: Target page id from the config file
            user_agent: User-agent override from the config file
        """
        load_dotenv()
        self._token_v2 = token_v2
        self._file_token = file_token
        self._page_id = page_id
        self._user_agent = user_agent

    def get_credentials(self) -> Credentials:
        """Resolve credentials from environment and config values.

        Returns:
            Credentials: token_v2, file_token, page_id and optional user_agent

        Raises:
            InvalidCredentialsError: If token_v2, file_token or page_id is missing
        """
        token_v2 = os.getenv(self.ENV_TOKEN_V2) or self._token_v2
        file_token = os.getenv(self.ENV_FILE_TOKEN) or self._file_token
        page_id = os.getenv(self.ENV_PAGE_ID) or self._page_id
        user_agent = os.getenv(self.ENV_USER_AGENT) or self._user_agent

        missing = []
        if not token_v2:
            missing.append('token_v2')
        if not file_token:
            missing.append('file_token')
        if not page_id:
            missing.append('page_id')

        if missing:
            raise InvalidCredentialsError(missing)

        return Credentials(
            token_v2=token_v2,  # type: ignore[arg-type]
            file_token=file_token,  # type: ignore[arg-type]
            page_id=page_id,  # type: ignore[arg-type]
            user_agent=user_agent,
        )
