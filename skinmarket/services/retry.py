"""Sequential retry with a configurable delay between attempts"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def linear_backoff(attempt: int, base_delay: float) -> float:
    """attempt 1 → base, attempt 2 → 2×base, …"""
    return base_delay * attempt


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 1
    base_delay: float = 0.0
    backoff: Callable[[int, float], float] = linear_backoff

    def delay_after(self, attempt: int) -> float:
        return self.backoff(attempt, self.base_delay)


async def attempt_with_retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    should_retry: Callable[[Exception], bool] = lambda e: True,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    attempt = 1
    while True:
        try:
            return await fn()
        except Exception as e:
            if attempt >= policy.max_attempts or not should_retry(e):
                raise
            delay = policy.delay_after(attempt)
            logger.warning("attempt %d/%d failed: %s, retrying in %.1fs",
                           attempt, policy.max_attempts, e, delay)
            await sleep(delay)
            attempt += 1
