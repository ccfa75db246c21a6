"""Async utilities: bridging blocking HTTP calls onto the event loop and
debouncing bursts of triggers."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)

# Module-level semaphore, initialized at server startup
_semaphore: asyncio.Semaphore | None = None


def init_semaphore(max_parallel: int = 2) -> None:
    """Initialize the concurrency semaphore. Call once at startup."""
    global _semaphore
    _semaphore = asyncio.Semaphore(max_parallel)
    logger.info(
        "Index request semaphore initialized: max_parallel=%d",
        max_parallel,
    )


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def run_sync_limited(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool, bounded by the concurrency semaphore.

    Falls back to unbounded if semaphore not initialized.
    """
    if _semaphore is None:
        return await asyncio.to_thread(func, *args, **kwargs)
    async with _semaphore:
        return await asyncio.to_thread(func, *args, **kwargs)


class Debouncer:
    """Run an async action once a quiet period has passed since the last trigger.

    ``trigger()`` supersedes any trigger still waiting out its delay; the
    superseded one never runs. Once an action has been dispatched it is
    no longer cancellable and runs to completion, so callers that care
    about stale results must check relevance themselves.

    Must be used from a running event loop.
    """

    def __init__(self, delay: float = 0.3) -> None:
        self.delay = delay
        self._waiting: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True while a trigger is waiting out its quiet period."""
        return self._waiting is not None and not self._waiting.done()

    def trigger(
        self, action: Callable[[], Awaitable[T]]
    ) -> "asyncio.Task[T]":
        """Schedule *action* after the quiet period, superseding any waiting one."""
        self.cancel()
        task = asyncio.create_task(self._run(action))
        self._waiting = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def cancel(self) -> bool:
        """Cancel the trigger still waiting out its delay, if any."""
        if self._waiting is None or self._waiting.done():
            return False
        self._waiting.cancel()
        self._waiting = None
        return True

    async def wait(self) -> None:
        """Wait until every scheduled (and not cancelled) action has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, action: Callable[[], Awaitable[T]]) -> T:
        await asyncio.sleep(self.delay)
        if self._waiting is asyncio.current_task():
            self._waiting = None
        return await action()
