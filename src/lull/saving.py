"""Caller-side save helper with retries and a structured result."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from loguru import logger

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class SaveResult(Generic[T]):
    """Outcome of :func:`safe_save`.

    Attributes:
        success: Whether an attempt completed without raising.
        data: The operation's return value on success.
        error: The exception raised by the last attempt on failure.
    """

    success: bool
    data: T | None = None
    error: BaseException | None = None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


async def safe_save(
    operation: Callable[[], Awaitable[T]],
    *,
    retry_attempts: int = 0,
    retry_delay: float = 1.0,
) -> SaveResult[T]:
    """Run *operation*, retrying on failure, and report the outcome.

    The coordinator never retries on its own; wrap a producer with this
    helper when a write should be attempted more than once::

        coordinator.schedule(key, partial(safe_save, write, retry_attempts=2))

    Note that the coordinator then always sees a successful producer; check
    :attr:`SaveResult.success` (or call :meth:`SaveResult.raise_for_error`
    inside the producer) to surface failures through ``on_complete``.

    Args:
        operation: Zero-argument async callable performing the write.
        retry_attempts: Extra attempts after the first failure.
        retry_delay: Seconds to sleep between attempts.

    Raises:
        ValueError: If *retry_attempts* or *retry_delay* is negative.
    """
    if retry_attempts < 0:
        raise ValueError(f"retry_attempts must be non-negative, got {retry_attempts}")
    if retry_delay < 0:
        raise ValueError(f"retry_delay must be non-negative, got {retry_delay}")

    last_error: Exception | None = None
    for attempt in range(retry_attempts + 1):
        try:
            data = await operation()
        except Exception as exc:
            last_error = exc
            logger.opt(exception=exc).warning(
                "Save attempt {}/{} failed", attempt + 1, retry_attempts + 1
            )
            if attempt < retry_attempts:
                await asyncio.sleep(retry_delay)
        else:
            return SaveResult(success=True, data=data)

    logger.error("Save failed after {} attempt(s): {!r}", retry_attempts + 1, last_error)
    return SaveResult(success=False, error=last_error)
