"""
Concurrency Limiter

Bounded fan-out for the per-file inline review tasks.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConcurrencyLimiter:
    """
    Runs coroutine factories with at most `limit` in flight.

    All tasks are submitted at once; a slot is freed as soon as one task
    finishes and the next waiting task is admitted. Results are returned in
    submission order.
    """

    def __init__(self, limit: int):
        if limit <= 0:
            raise ValueError("Concurrency limit must be positive")
        self.limit = limit
        self.active = 0
        self.peak = 0

    async def run_all(self, tasks: Sequence[Callable[[], Awaitable[T]]]) -> List[T]:
        if not tasks:
            return []

        semaphore = asyncio.Semaphore(self.limit)

        async def run_one(task: Callable[[], Awaitable[T]]) -> T:
            async with semaphore:
                self.active += 1
                self.peak = max(self.peak, self.active)
                try:
                    return await task()
                finally:
                    self.active -= 1

        logger.debug(f"Running {len(tasks)} tasks with limit {self.limit}")
        return list(await asyncio.gather(*(run_one(task) for task in tasks)))
