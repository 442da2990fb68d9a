"""Test fixtures for Notion attachment tests.

This module provides canned identifiers, API payloads and HTTP doubles used
across the unit tests.
"""

from .notion_fixtures import (
    BLOCK_ID,
    OBJECT_URL,
    OWNER_ID,
    PAGE_ID,
    PAGE_ID_COMPACT,
    SIGNED_GET_URL,
    SIGNED_PUT_URL,
    SPACE_ID,
    RecordingHttp,
    make_response,
)

__all__ = [
    "BLOCK_ID",
    "OBJECT_URL",
    "OWNER_ID",
    "PAGE_ID",
    "PAGE_ID_COMPACT",
    "SIGNED_GET_URL",
    "SIGNED_PUT_URL",
    "SPACE_ID",
    "RecordingHttp",
    "make_response",
]
