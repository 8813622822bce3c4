"""Bounded FIFO buffer with non-blocking admission.

Both the pending queue and every server queue are BoundedQueues. Producers
call ``offer()``, which never suspends: a full queue refuses the item and
the caller records the rejection. Consumers ``await take()``, which
suspends until an item is available.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BoundedQueue(Generic[T]):
    """Strict FIFO queue with a fixed capacity.

    Must be used from a single event loop. ``depth`` and the statistics
    are plain reads and may be sampled from other threads.

    Args:
        name: Identifier used in logs and summaries.
        capacity: Maximum number of items held at once.
        weight: Optional integer weight of an item, summed over the items
            currently queued into ``weight_total``.

    Attributes:
        stats_accepted: Items admitted over the queue's lifetime.
        stats_dropped: Offers refused because the queue was full.
        peak_depth: Largest depth observed.
        weight_total: Sum of ``weight`` over queued items (0 without one).
    """

    def __init__(self, name: str, capacity: int, weight: Callable[[T], int] | None = None):
        if capacity < 1:
            raise ValueError("capacity must be at least 1.")
        self.name = name
        self.capacity = capacity
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=capacity)
        self._weight = weight
        self.weight_total: int = 0

        self.stats_accepted: int = 0
        self.stats_dropped: int = 0
        self.peak_depth: int = 0

    def offer(self, item: T) -> bool:
        """Append ``item`` if there is room.

        Returns:
            True if accepted, False if the queue was at capacity.
        """
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            self.stats_dropped += 1
            logger.debug("[%s] full (%d/%d), refused %s", self.name, self.depth, self.capacity, item)
            return False

        self.stats_accepted += 1
        if self._weight is not None:
            self.weight_total += self._weight(item)
        depth = self.depth
        assert depth <= self.capacity, f"{self.name} depth {depth} exceeds capacity {self.capacity}"
        if depth > self.peak_depth:
            self.peak_depth = depth
        return True

    async def take(self) -> T:
        """Remove and return the head item, suspending while empty."""
        return self._taken(await self._queue.get())

    async def take_until(self, stopping: asyncio.Event) -> T | None:
        """Wait for the head item or for ``stopping``, whichever comes first.

        Returns:
            The head item, or None once ``stopping`` is set and the queue
            had nothing ready. An item that arrives together with the stop
            signal is still returned so it is never lost.
        """
        if (item := self.poll()) is not None:
            return item

        take = asyncio.ensure_future(self.take())
        stop = asyncio.ensure_future(stopping.wait())
        try:
            await asyncio.wait({take, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop.cancel()
            if not take.done():
                take.cancel()
        if take.done() and not take.cancelled():
            return take.result()
        return None

    def poll(self) -> T | None:
        """Remove and return the head item, or None if empty."""
        try:
            item = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        return self._taken(item)

    def _taken(self, item: T) -> T:
        if self._weight is not None:
            self.weight_total -= self._weight(item)
        return item

    def drain(self) -> list[T]:
        """Remove and return every queued item in FIFO order."""
        items: list[T] = []
        while (item := self.poll()) is not None:
            items.append(item)
        return items

    @property
    def depth(self) -> int:
        return self._queue.qsize()

    def is_empty(self) -> bool:
        return self._queue.empty()

    def is_full(self) -> bool:
        return self._queue.full()

    def __len__(self) -> int:
        return self.depth

    def __repr__(self) -> str:
        return f"BoundedQueue({self.name!r}, depth={self.depth}, capacity={self.capacity})"
