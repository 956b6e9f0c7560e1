from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

from faculty_finder.services.llm.types import classify_rate_limited

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(attempt: int, *, base: float, cap: float, jitter: float) -> float:
    """min(base * 2^attempt, cap) plus up to `jitter` seconds of random noise."""
    delay = min(max(0.0, base) * (2 ** max(0, attempt)), max(0.0, cap))
    if jitter > 0:
        delay += random.uniform(0, jitter)
    return delay


async def retry_with_backoff(
    call: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 5,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    jitter: float = 1.0,
    is_retryable: Callable[[Exception], bool] = classify_rate_limited,
    label: str = "call",
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """
    Await `call()` until it succeeds or fails with a non-retryable error.

    Retryable failures wait `backoff_delay(attempt)` before the next attempt.
    Once `max_attempts` is reached the last retryable exception is re-raised
    so the caller decides whether exhaustion is fatal.
    """
    sleeper = sleep or asyncio.sleep
    attempts = max(1, int(max_attempts))
    for attempt in range(attempts):
        try:
            return await call()
        except Exception as exc:
            if not is_retryable(exc) or attempt >= attempts - 1:
                raise
            wait = backoff_delay(attempt, base=base_delay, cap=max_delay, jitter=jitter)
            logger.info(
                "Rate limited (%s), attempt %d/%d, retrying in %dms",
                label,
                attempt + 1,
                attempts,
                int(wait * 1000),
            )
            await sleeper(wait)
    raise RuntimeError("unreachable")  # pragma: no cover
