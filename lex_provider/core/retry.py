from __future__ import annotations

import logging
import random
import time
from typing import Callable, Optional, TypeVar

from lex_provider.core.config import settings
from lex_provider.core.errors import RetryTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _NotReady(Exception):
    """Internal marker raised by ``poll_until`` while the condition is false."""


def compute_backoff(
    attempt: int, *, base_delay: float, max_delay: float
) -> float:
    """Exponential backoff with +/-20% jitter, capped at ``max_delay``."""
    base = base_delay or 0.0
    if base <= 0:
        return 0.0
    delay = base * (2 ** (attempt - 1))
    if max_delay:
        delay = min(delay, max_delay)
    jitter = random.uniform(0.8, 1.2)
    return max(0.0, delay * jitter)


def retry_until(
    operation: Callable[[], T],
    *,
    timeout: float,
    retry_on: Callable[[BaseException], bool],
    description: str,
    base_delay: Optional[float] = None,
    max_delay: Optional[float] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``operation`` until it returns, retrying errors accepted by ``retry_on``.

    Errors rejected by ``retry_on`` propagate immediately. Once ``timeout``
    seconds have passed a ``RetryTimeoutError`` carrying the last retryable
    error is raised instead. Sleeps never extend past the deadline.
    """
    base = settings.lex_retry_base_delay if base_delay is None else base_delay
    cap = settings.lex_retry_max_delay if max_delay is None else max_delay
    deadline = clock() + timeout
    attempt = 0
    while True:
        try:
            return operation()
        except Exception as exc:
            if not retry_on(exc):
                raise
            attempt += 1
            remaining = deadline - clock()
            if remaining <= 0:
                last_error = None if isinstance(exc, _NotReady) else exc
                logger.error(
                    "%s: giving up after %s attempts", description, attempt
                )
                raise RetryTimeoutError(description, timeout, last_error) from exc
            delay = min(compute_backoff(attempt, base_delay=base, max_delay=cap), remaining)
            logger.info(
                "%s (attempt %s). Retrying in %.2fs", description, attempt, delay
            )
            sleep(delay)


def poll_until(
    condition: Callable[[], bool],
    *,
    timeout: float,
    description: str,
    base_delay: Optional[float] = None,
    max_delay: Optional[float] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Block until ``condition()`` is true; errors raised by ``condition`` are fatal."""

    def _check() -> None:
        if not condition():
            raise _NotReady(description)

    retry_until(
        _check,
        timeout=timeout,
        retry_on=lambda exc: isinstance(exc, _NotReady),
        description=description,
        base_delay=base_delay,
        max_delay=max_delay,
        clock=clock,
        sleep=sleep,
    )
