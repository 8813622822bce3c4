"""Tests for BoundedQueue admission, ordering and stop-aware takes."""

from __future__ import annotations

import asyncio

import pytest

from dispatchsimulator.entities.bounded_queue import BoundedQueue


class TestAdmission:
    def test_accepts_until_full(self):
        queue = BoundedQueue("q", capacity=3)
        assert [queue.offer(i) for i in range(4)] == [True, True, True, False]
        assert queue.depth == 3
        assert queue.is_full()
        assert queue.stats_accepted == 3
        assert queue.stats_dropped == 1

    def test_depth_never_exceeds_capacity(self):
        queue = BoundedQueue("q", capacity=20)
        for i in range(100):
            queue.offer(i)
            assert queue.depth <= 20
        assert queue.peak_depth == 20

    def test_room_after_poll(self):
        queue = BoundedQueue("q", capacity=1)
        assert queue.offer("a")
        assert not queue.offer("b")
        assert queue.poll() == "a"
        assert queue.offer("c")

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            BoundedQueue("q", capacity=0)


class TestOrdering:
    def test_fifo(self):
        queue = BoundedQueue("q", capacity=5)
        for item in "abcde":
            queue.offer(item)
        assert queue.drain() == list("abcde")
        assert queue.is_empty()
        assert len(queue) == 0

    def test_poll_empty_returns_none(self):
        assert BoundedQueue("q", capacity=1).poll() is None


class TestWeight:
    def test_weight_total_follows_queued_items(self):
        queue = BoundedQueue("q", capacity=2, weight=len)
        assert queue.offer("ab")
        assert queue.offer("cde")
        assert not queue.offer("fghij")
        assert queue.weight_total == 5

        assert queue.poll() == "ab"
        assert queue.weight_total == 3
        queue.drain()
        assert queue.weight_total == 0

    def test_unweighted_total_stays_zero(self):
        queue = BoundedQueue("q", capacity=2)
        queue.offer("abc")
        assert queue.weight_total == 0


class TestTake:
    def test_take_waits_for_item(self):
        async def scenario():
            queue = BoundedQueue("q", capacity=2)
            consumer = asyncio.create_task(queue.take())
            await asyncio.sleep(0.01)
            assert not consumer.done()
            queue.offer("x")
            return await asyncio.wait_for(consumer, timeout=1.0)

        assert asyncio.run(scenario()) == "x"

    def test_take_until_returns_ready_item(self):
        async def scenario():
            queue = BoundedQueue("q", capacity=2)
            stopping = asyncio.Event()
            queue.offer("x")
            stopping.set()
            return await queue.take_until(stopping)

        assert asyncio.run(scenario()) == "x"

    def test_take_until_returns_none_on_stop(self):
        async def scenario():
            queue = BoundedQueue("q", capacity=2)
            stopping = asyncio.Event()
            waiter = asyncio.create_task(queue.take_until(stopping))
            await asyncio.sleep(0.01)
            stopping.set()
            result = await asyncio.wait_for(waiter, timeout=1.0)
            # The cancelled getter must not swallow a later item.
            queue.offer("late")
            return result, queue.depth

        assert asyncio.run(scenario()) == (None, 1)
