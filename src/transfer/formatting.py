"""Size and MIME helpers for the transfer pipeline.

Notion displays an attachment's size from a preformatted string stored on
the block, using decimal (1000-based) units with one decimal place.
"""

import mimetypes
from pathlib import Path
from typing import Union

DEFAULT_MIME_TYPE = "text/plain"

_UNIT = 1000
_SUFFIXES = ("KB", "MB", "GB")


def size_to_text(num_bytes: int) -> str:
    """Render a byte count the way Notion shows attachment sizes.

    Example:
        >>> size_to_text(999)
        '999B'
        >>> size_to_text(1_500_000)
        '1.5MB'
    """
    if num_bytes < _UNIT:
        return f"{num_bytes}B"
    for power, suffix in enumerate(_SUFFIXES, start=2):
        if num_bytes < _UNIT ** power:
            return f"{num_bytes / _UNIT ** (power - 1):.1f}{suffix}"
    return f"{num_bytes / _UNIT ** 4:.1f}TB"


def guess_mime_type(path: Union[str, Path]) -> str:
    """Guess a MIME type from the file extension, defaulting to text/plain."""
    mime_type, _ = mimetypes.guess_type(str(path))
    return mime_type or DEFAULT_MIME_TYPE
