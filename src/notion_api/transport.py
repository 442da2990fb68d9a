"""HTTP transport for the Notion internal API.

This module wraps a requests Session and provides the single request path
used by every remote call: JSON request body, ``token_v2`` cookie
authentication, a browser user agent, and translation of failures into the
typed errors of this package. It never retries; retry policy belongs to
callers (see retry_logic).
"""

import json
import logging
import re
from typing import Any, Callable, Optional, TypeVar

import requests
from requests.exceptions import RequestException

from .errors import (
    MalformedResponseError,
    RemoteRejectedError,
    TransportFailureError,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

NOTION_API_BASE = "https://www.notion.so/api/v3"

# The service rejects clients it does not recognize as a browser.
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/116.0.0.0 Safari/537.36"
)

DEFAULT_TIMEOUT = 30


def sanitize_secrets(text: str) -> str:
    """Mask tokens and signed query strings before text is logged.

    Example:
        >>> sanitize_secrets("Cookie: token_v2=abc123")
        'Cookie: token_v2=***REDACTED***'
    """
    if not text:
        return text

    sanitized = re.sub(
        r'(token_v2|file_token)=([^;\s&"\']+)',
        r'\1=***REDACTED***',
        text,
    )
    # Signed URLs carry their capability in the query string
    sanitized = re.sub(
        r'(https?://[^\s?"\']+)\?[^\s"\']+',
        r'\1?***REDACTED***',
        sanitized,
    )
    return sanitized


class Transport:
    """Sends JSON requests to the Notion internal API.

    A response body is always read in full before the status is looked at,
    because error responses carry diagnostic text rather than JSON.

    Example:
        >>> transport = Transport(token_v2="...")
        >>> data = transport.send("POST", "/getPublicPageData", body, parse=dict)
    """

    def __init__(
        self,
        token_v2: str,
        user_agent: Optional[str] = None,
        api_base: str = NOTION_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the transport.

        Args:
            token_v2: Long-lived session token sent as the ``token_v2`` cookie
            user_agent: User-agent override (defaults to DEFAULT_USER_AGENT)
            api_base: API base URL
            timeout: Per-request timeout in seconds
            session: Optional requests Session (a new one is created if omitted)
        """
        self._token_v2 = token_v2
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.api_base = api_base.rstrip('/')
        self.timeout = timeout
        self._session = session or requests.Session()

    def _headers(self) -> dict:
        return {
            'Content-Type': 'application/json',
            'Cookie': f'token_v2={self._token_v2}',
            'User-Agent': self.user_agent,
        }

    def send(
        self,
        method: str,
        path: str,
        body: Any,
        parse: Callable[[Any], T],
        operation: Optional[str] = None,
    ) -> T:
        """Send one request and parse the JSON response.

        Args:
            method: HTTP method
            path: Endpoint path under the API base (e.g. "/saveTransactions")
            body: JSON-serializable request body
            parse: Callable turning the decoded JSON into the expected type;
                   KeyError/TypeError/ValueError mean a shape mismatch
            operation: Name used in errors and logs (defaults to path)

        Returns:
            Whatever ``parse`` returns

        Raises:
            TransportFailureError: If no HTTP response was received
            RemoteRejectedError: If the status is not 2xx
            MalformedResponseError: If the 2xx body does not parse
        """
        operation = operation or path
        url = f"{self.api_base}{path}"
        logger.debug(f"{method} {url}")

        try:
            response = self._session.request(
                method,
                url,
                data=json.dumps(body),
                headers=self._headers(),
                timeout=self.timeout,
            )
            body_text = response.text
        except RequestException as e:
            reason = sanitize_secrets(str(e))
            logger.error(f"Transport failure during {operation}: {reason}")
            raise TransportFailureError(operation, reason) from e

        if not 200 <= response.status_code < 300:
            safe_text = sanitize_secrets(body_text)
            logger.error(
                f"{operation} rejected with HTTP {response.status_code}: {safe_text[:300]}"
            )
            raise RemoteRejectedError(operation, response.status_code, safe_text)

        try:
            data = json.loads(body_text)
            return parse(data)
        except (KeyError, TypeError, ValueError) as e:
            parse_error = f"{type(e).__name__}: {e}"
            logger.error(f"Malformed response from {operation}: {parse_error}")
            raise MalformedResponseError(
                operation, sanitize_secrets(body_text), parse_error
            ) from e

    def close(self) -> None:
        self._session.close()
