"""Bounded retry for calls to external collaborators."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    *,
    action: str,
    attempts: int = 1,
    delay_seconds: float = 0.3,
) -> T:
    """Await a call, retrying up to ``attempts`` extra times with backoff."""
    attempt = 0
    while True:
        try:
            return await func()
        except Exception as exc:
            attempt += 1
            _logger.warning(
                "%s failed (attempt %s/%s, status=%s): %s",
                action,
                attempt,
                attempts + 1,
                _status_code_from_exception(exc),
                exc,
            )
            if attempt > attempts:
                raise
            await asyncio.sleep(delay_seconds * attempt)


def call_with_retry_sync(
    func: Callable[[], T],
    *,
    action: str,
    attempts: int = 1,
    delay_seconds: float = 0.3,
) -> T:
    """Blocking counterpart of :func:`call_with_retry`, for worker threads."""
    attempt = 0
    while True:
        try:
            return func()
        except Exception as exc:
            attempt += 1
            _logger.warning(
                "%s failed (attempt %s/%s): %s", action, attempt, attempts + 1, exc
            )
            if attempt > attempts:
                raise
            time.sleep(delay_seconds * attempt)


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    return str(status_code) if status_code is not None else "n/a"
