"""Dispatcher that routes pending requests onto server queues.

The dispatcher drains the pending queue in FIFO order, asks the active
policy for a target server and offers the request to that server's queue.
A full server queue is a final outcome for the request: the rejection is
recorded and the request is not retried against another server.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from dispatchsimulator.components.load_balancer.policies import RoundRobinCursor, select_server
from dispatchsimulator.config import BalancingMode
from dispatchsimulator.core.request import Request
from dispatchsimulator.entities.bounded_queue import BoundedQueue
from dispatchsimulator.entities.server import Server
from dispatchsimulator.instrumentation.metrics import MetricsAggregator, RejectionPoint

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 1000


@dataclass
class DispatcherStats:
    """Dispatch counters for one run.

    Attributes:
        dispatched: Requests accepted by a server queue.
        rejected: Requests refused by a full server queue.
        per_server: Accepted requests by server index.
        history: Chosen server index of the most recent dispatches,
            accepted or not, oldest first.
    """

    dispatched: int = 0
    rejected: int = 0
    per_server: dict[int, int] = field(default_factory=dict)
    history: deque[int] = field(default_factory=lambda: deque(maxlen=DEFAULT_HISTORY_LIMIT))


class Dispatcher:
    """Consumes the pending queue and applies the balancing policy.

    Args:
        mode: Balancing policy, fixed for the dispatcher's lifetime.
        pending: Queue filled by the arrival generator.
        servers: Target fleet in index order.
        metrics: Shared aggregator receiving server-queue rejections.
        rng: Random generator for the RANDOM policy.
        history_limit: Number of recent choices kept in ``stats.history``;
            0 disables the history.
    """

    def __init__(
        self,
        mode: BalancingMode,
        pending: BoundedQueue[Request],
        servers: Sequence[Server],
        metrics: MetricsAggregator,
        rng: np.random.Generator | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        if not servers:
            raise ValueError("Dispatcher needs at least one server.")
        self.mode = mode
        self._pending = pending
        self._servers = list(servers)
        self._metrics = metrics
        self._rng = rng if rng is not None else np.random.default_rng()
        self.cursor = RoundRobinCursor()
        self._record_history = history_limit > 0
        self.stats = DispatcherStats(
            per_server={s.server_id: 0 for s in self._servers},
            history=deque(maxlen=history_limit),
        )

    def choose(self) -> int:
        return select_server(self.mode, self._servers, cursor=self.cursor, rng=self._rng)

    def dispatch(self, request: Request) -> bool:
        """Route one request. Returns True if a server queue accepted it."""
        index = self.choose()
        server = self._servers[index]
        if self._record_history:
            self.stats.history.append(index)

        if not server.offer(request):
            self.stats.rejected += 1
            self._metrics.record_rejected(RejectionPoint.SERVER_QUEUE)
            logger.debug("[%s] rejected %s: queue full", server.name, request)
            return False

        self.stats.dispatched += 1
        self.stats.per_server[server.server_id] += 1
        logger.debug("%s assigned to %s", request, server.name)
        return True

    async def run(self, stopping: asyncio.Event) -> None:
        """Dispatch requests until ``stopping`` is set."""
        logger.debug("Dispatcher started (%s)", self.mode.value)
        while not stopping.is_set():
            request = await self._pending.take_until(stopping)
            if request is None:
                break
            self.dispatch(request)
        logger.debug("Dispatcher stopped after %d dispatches", self.stats.dispatched)
