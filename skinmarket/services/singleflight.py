"""
Per-key in-flight deduplication.

run(key, factory) starts factory() only when no call for key is running;
concurrent callers for the same key await the running task instead. The key
is released as soon as the task settles, before any joined caller resumes,
so a caller that saw the running task fail can start its own attempt.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Awaitable, Callable, Dict, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight(Generic[T]):
    def __init__(self):
        self._tasks: Dict[str, asyncio.Task] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def _release(self, key: str, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
        if not task.cancelled() and task.exception() is not None:
            logger.debug("singleflight: %s settled with %r", key, task.exception())

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        while key in self._tasks:
            logger.info("singleflight: %s already in progress, waiting for it", key)
            try:
                return await asyncio.shield(self._tasks[key])
            except Exception as e:
                logger.warning("singleflight: in-flight call for %s failed (%s), starting a new one", key, e)

        task = asyncio.ensure_future(factory())
        self._tasks[key] = task
        task.add_done_callback(partial(self._release, key))
        # cancelling this caller must not cancel the call other callers joined
        return await asyncio.shield(task)
