"""Canonical form for Notion identifiers.

Notion shows page ids as 32 bare hex characters in URLs, but the internal
API only accepts the dashed 8-4-4-4-12 form.
"""

import re

from .errors import InvalidIdentifierError

_HEX_ID = re.compile(r'^[0-9a-fA-F]{32}$')
_GROUP_LENGTHS = (8, 4, 4, 4, 12)


def to_dashed_id(value: str) -> str:
    """Normalize an identifier to the dashed 8-4-4-4-12 form.

    Existing dashes are ignored, so the function is idempotent.

    Args:
        value: Identifier with or without dashes

    Returns:
        The dashed identifier

    Raises:
        InvalidIdentifierError: If the dash-stripped value is not 32 hex characters

    Example:
        >>> to_dashed_id("2131b10cebf64938a1277089ff02dbe4")
        '2131b10c-ebf6-4938-a127-7089ff02dbe4'
    """
    compact = value.replace("-", "")
    if not _HEX_ID.match(compact):
        raise InvalidIdentifierError(value)

    groups = []
    start = 0
    for length in _GROUP_LENGTHS:
        groups.append(compact[start:start + length])
        start += length
    return "-".join(groups)
