"""Concurrency management for batch processing."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from lazconv.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class ConcurrencyManager:
    """Admission gate bounding how many conversion units run at once.

    Each manager owns its own semaphore, so several orchestrators (or tests)
    can coexist without sharing slots. Waiters are admitted in the order
    they started waiting.
    """

    def __init__(self, max_workers: int = 2) -> None:
        """Initialize the concurrency manager.

        Args:
            max_workers: Maximum number of tasks admitted at the same time
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.max_workers = max_workers
        self._semaphore: asyncio.Semaphore | None = None
        self._active = 0
        self._peak_active = 0

    def _get_semaphore(self) -> asyncio.Semaphore:
        """Get or create the semaphore (lazily, inside the running loop)."""
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_workers)
        return self._semaphore

    @property
    def active(self) -> int:
        """Number of tasks currently holding a slot."""
        return self._active

    @property
    def peak_active(self) -> int:
        """Highest number of tasks that held a slot simultaneously."""
        return self._peak_active

    async def run_task(self, coro: Awaitable[R]) -> R:
        """Run a coroutine once a slot is free.

        The slot is released whether the coroutine returns or raises.

        Args:
            coro: Coroutine to execute

        Returns:
            Result of the coroutine
        """
        async with self._get_semaphore():
            self._active += 1
            self._peak_active = max(self._peak_active, self._active)
            try:
                return await coro
            finally:
                self._active -= 1

    async def map_tasks(
        self,
        items: list[T],
        func: Callable[[T], Awaitable[R]],
        on_complete: Callable[[T, R], None] | None = None,
    ) -> list[R]:
        """Process items concurrently within the slot limit.

        All items are submitted at once; at most ``max_workers`` run at the
        same time and the rest queue in submission order. ``func`` is
        expected to report failures in its return value: an exception
        raised by one item does not cancel the others but is re-raised once
        every item has finished.

        Args:
            items: Items to process
            func: Async function to apply to each item
            on_complete: Optional callback invoked as each item finishes.
                Errors it raises are logged and do not affect the results.

        Returns:
            Results in the same order as ``items``
        """

        async def process_item(item: T) -> R:
            result = await self.run_task(func(item))
            if on_complete:
                try:
                    on_complete(item, result)
                except Exception as e:
                    log.error("Completion callback failed", item=str(item), error=str(e))
            return result

        log.debug("Dispatching tasks", count=len(items), max_workers=self.max_workers)
        outcomes = await asyncio.gather(
            *(process_item(item) for item in items), return_exceptions=True
        )

        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return outcomes  # type: ignore[return-value]
