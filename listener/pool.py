# ============================================================================
# DISPATCH POOL
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - Bounded concurrent dispatch for the listener
# PURPOSE: Run message handlers off the consume path with bounded concurrency
# CREATED: 18 OCT 2026
# ============================================================================
"""
Dispatch Pool

A fixed number of worker tasks drain a bounded asyncio.Queue. The consume
callback hands items over with offer(), which never waits: when
`queue_size` items are already buffered the item is rejected and counted,
so neither the buffer nor the broker client's delivery tasks grow without
bound. Items are handled concurrently and in no particular order.

stop() cancels workers without draining: buffered and in-flight items are
dropped, matching the listener's auto-ack delivery.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DispatchPool(Generic[T]):
    """Bounded worker pool for message handlers."""

    def __init__(
        self,
        handler: Callable[[T], Awaitable[None]],
        max_workers: int = 10,
        queue_size: int = 100,
    ):
        """
        Args:
            handler: Coroutine run once per submitted item
            max_workers: Concurrent handler invocations
            queue_size: Items buffered while all workers are busy
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")

        self._handler = handler
        self._max_workers = max_workers
        self._queue_size = max(1, queue_size)
        self._queue: Optional[asyncio.Queue] = None
        self._workers: List[asyncio.Task] = []

        # Stats
        self._in_flight = 0
        self._completed = 0
        self._failed = 0
        self._rejected = 0

    @property
    def running(self) -> bool:
        return bool(self._workers)

    async def start(self) -> None:
        """Start the worker tasks."""
        if self._workers:
            return

        self._queue = asyncio.Queue(maxsize=self._queue_size)
        self._workers = [
            asyncio.create_task(self._worker(), name=f"dispatch-{i}")
            for i in range(self._max_workers)
        ]
        logger.info(f"Dispatch pool started: workers={self._max_workers}, buffer={self._queue_size}")

    def offer(self, item: T) -> bool:
        """Hand an item to the pool without waiting; False if the buffer is full."""
        if self._queue is None:
            raise RuntimeError("dispatch pool is not started")
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            self._rejected += 1
            return False
        return True

    async def join(self) -> None:
        """Wait until every submitted item has been handled."""
        if self._queue is not None:
            await self._queue.join()

    async def stop(self) -> None:
        """Cancel workers without draining the buffer."""
        if not self._workers:
            return

        dropped = self._queue.qsize() if self._queue else 0
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        self._queue = None

        logger.info(
            f"Dispatch pool stopped: completed={self._completed}, "
            f"failed={self._failed}, rejected={self._rejected}, "
            f"dropped={dropped + self._in_flight}"
        )
        self._in_flight = 0

    def stats(self) -> Dict[str, int]:
        return {
            "workers": len(self._workers),
            "buffered": self._queue.qsize() if self._queue else 0,
            "in_flight": self._in_flight,
            "completed": self._completed,
            "failed": self._failed,
            "rejected": self._rejected,
        }

    async def _worker(self) -> None:
        queue = self._queue
        while True:
            item = await queue.get()
            self._in_flight += 1
            try:
                await self._handler(item)
                self._completed += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # Handlers log their own failures; this keeps the worker alive
                self._failed += 1
                logger.exception(f"Dispatch handler raised: {e}")
            finally:
                self._in_flight -= 1
                queue.task_done()


__all__ = ["DispatchPool"]
