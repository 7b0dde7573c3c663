"""
Retry utilities for remote calls.

Runs an async operation with exponential backoff, honoring a server-supplied
retry delay when the failure carries one.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RemoteCallError(Exception):
    """
    A failed remote call.

    Adapters around HTTP clients raise this so the retry loop never has to
    look at transport internals. `retry_after` is in seconds.
    """

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.retry_after = retry_after
        self.status = status


@dataclass
class RetryOptions:
    """Options for the retry strategy."""

    # Maximum number of attempts, including the first one
    max_retries: int = 5
    initial_backoff_ms: float = 1000
    max_backoff_ms: float = 60000
    backoff_factor: float = 2
    logging: bool = True


DEFAULT_RETRY_OPTIONS = RetryOptions()


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    options: Optional[RetryOptions] = None,
) -> T:
    """
    Execute an async operation with exponential backoff.

    Retries on any exception until `max_retries` attempts have been made, then
    re-raises the exception from the final attempt unchanged.

    Args:
        operation: Zero-argument callable returning an awaitable
        options: Retry strategy options (defaults apply when omitted)
    """
    opts = options or DEFAULT_RETRY_OPTIONS
    attempt = 0
    backoff_ms = opts.initial_backoff_ms

    while True:
        try:
            return await operation()
        except Exception as e:
            attempt += 1
            if attempt >= opts.max_retries:
                raise

            delay_ms = backoff_ms
            if isinstance(e, RemoteCallError) and e.retry_after is not None:
                delay_ms = e.retry_after * 1000

            delay_ms = min(delay_ms, opts.max_backoff_ms)

            if opts.logging:
                logger.warning(
                    f"Retrying in {delay_ms / 1000:.0f}s "
                    f"(attempt {attempt}/{opts.max_retries}) due to: {e}"
                )

            await asyncio.sleep(delay_ms / 1000)

            backoff_ms = min(backoff_ms * opts.backoff_factor, opts.max_backoff_ms)


async def retry_async_call(
    func: Callable[..., T],
    *args,
    options: Optional[RetryOptions] = None,
    **kwargs,
) -> T:
    """
    Retry a blocking function called via asyncio.to_thread.

    This is how spotipy and requests calls are made without blocking the loop.
    """

    async def _call():
        return await asyncio.to_thread(func, *args, **kwargs)

    return await execute_with_retry(_call, options)
