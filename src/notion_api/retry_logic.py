"""Retry logic with exponential backoff for idempotent Notion reads.

This module provides retry functionality for calls that can safely be
repeated: page lookups, page chunk loads and signed download URL requests.
It retries on transport failures and on transient rejections (429 and 5xx)
with exponential backoff (1s, 2s, 4s) and fails fast for everything else.
Transaction submission must never go through here.
"""

import time
import logging
from typing import Callable, TypeVar

from .errors import (
    RemoteRejectedError,
    TransferCancelledError,
    TransportFailureError,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRIES = 3


def retry_on_transient(func: Callable[..., T], *args, **kwargs) -> T:
    """Retry function on transient errors with exponential backoff.

    Executes the given function with the provided arguments, retrying up to 3 times
    with exponential backoff (1s, 2s, 4s) when a transient error is encountered.
    Fails fast for all other errors.

    Args:
        func: The function to execute with retry logic
        *args: Positional arguments to pass to the function
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The return value of the function

    Raises:
        The last transient error if it persists after 3 retries.
        Other exceptions: Passed through immediately without retry

    Example:
        >>> identity = retry_on_transient(session_call, page_id="...")
    """
    for retry_num in range(MAX_RETRIES + 1):  # 0, 1, 2, 3 = 4 attempts total
        try:
            return func(*args, **kwargs)
        except (TransportFailureError, RemoteRejectedError) as e:
            if not is_transient_error(e):
                raise

            if retry_num >= MAX_RETRIES:
                logger.error(
                    f"Transient error persisted after {MAX_RETRIES} retries, giving up: {e}"
                )
                raise

            wait_time = 2 ** retry_num
            logger.info(
                f"Transient error, retrying in {wait_time}s "
                f"(retry {retry_num + 1}/{MAX_RETRIES}): {e}"
            )
            time.sleep(wait_time)

    # Should never reach here, but make type checker happy
    raise RuntimeError("retry loop exited without a result")


def is_transient_error(exception: Exception) -> bool:
    """Check if an exception is worth retrying.

    Cancellation is a transport failure but was asked for by the caller,
    so it is never retried.
    """
    if isinstance(exception, TransferCancelledError):
        return False
    if isinstance(exception, TransportFailureError):
        return True
    if isinstance(exception, RemoteRejectedError):
        return exception.retryable
    return False
