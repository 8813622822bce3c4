"""Balancing policies and the server-selection decision function.

The policy set is closed: RANDOM, ROUND_ROBIN and SMALLEST_QUEUE. All three
are served by ``select_server``, a single decision function that switches
on the BalancingMode tag. The only policy state is the round-robin cursor,
which the dispatcher owns and passes in.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import numpy as np

from dispatchsimulator.config import BalancingMode


@runtime_checkable
class QueueDepthSource(Protocol):
    """Anything exposing a current queue depth (a Server, in practice)."""

    @property
    def depth(self) -> int: ...


class RoundRobinCursor:
    """Shared round-robin position, advanced atomically under a lock.

    Every call to ``advance`` returns the current index and moves the
    cursor by one modulo ``size``, so concurrent callers never skip or
    repeat an index.
    """

    def __init__(self, start: int = 0):
        self._position = start
        self._lock = threading.Lock()

    def advance(self, size: int) -> int:
        if size <= 0:
            raise ValueError("Cannot advance over an empty server list.")
        with self._lock:
            index = self._position % size
            self._position = (index + 1) % size
        return index


def smallest_queue_index(depths: Sequence[int]) -> int:
    """Index of the smallest depth, ties going to the lowest index."""
    if not depths:
        raise ValueError("Cannot select from an empty server list.")
    best = 0
    for index in range(1, len(depths)):
        if depths[index] < depths[best]:
            best = index
    return best


def select_server(
    mode: BalancingMode,
    servers: Sequence[QueueDepthSource],
    *,
    cursor: RoundRobinCursor,
    rng: np.random.Generator,
) -> int:
    """Pick the index of the server that receives the next request.

    Args:
        mode: Active balancing policy.
        servers: The fleet, in index order.
        cursor: Round-robin state owned by the dispatcher.
        rng: Non-cryptographic random generator for RANDOM.

    Returns:
        Index into ``servers``.
    """
    if not servers:
        raise ValueError("Cannot select from an empty server list.")

    if mode is BalancingMode.RANDOM:
        return int(rng.integers(0, len(servers)))
    if mode is BalancingMode.ROUND_ROBIN:
        return cursor.advance(len(servers))
    if mode is BalancingMode.SMALLEST_QUEUE:
        # Read every depth without yielding so the comparison sees one
        # consistent state of the fleet.
        return smallest_queue_index([server.depth for server in servers])
    raise AssertionError(f"Unhandled balancing mode: {mode!r}")
