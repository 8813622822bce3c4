"""Periodic sampling of queue depths and throughput.

A Probe wakes every ``interval`` simulated seconds and records the depth of
the pending queue, the depth of every server queue and the current
throughput into Data containers. Sampled history lives only as long as the
run's engine.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from dispatchsimulator.instrumentation.data import Data

if TYPE_CHECKING:
    from dispatchsimulator.core.clock import SimulationClock
    from dispatchsimulator.entities.bounded_queue import BoundedQueue
    from dispatchsimulator.entities.server import Server
    from dispatchsimulator.instrumentation.metrics import MetricsAggregator

logger = logging.getLogger(__name__)

PENDING_SERIES = "pending_depth"
THROUGHPUT_SERIES = "throughput"


def server_series(server: Server) -> str:
    return f"server_{server.server_id}_depth"


class Probe:
    """Samples run state at a fixed simulated interval.

    Attributes:
        series: Mapping from series name to its Data container.
    """

    def __init__(
        self,
        clock: SimulationClock,
        pending: BoundedQueue,
        servers: Sequence[Server],
        metrics: MetricsAggregator,
        interval: float = 1.0,
    ):
        if interval <= 0:
            raise ValueError("Probe interval must be positive.")
        self.interval = interval
        self._clock = clock
        self._pending = pending
        self._servers = list(servers)
        self._metrics = metrics
        self.series: dict[str, Data] = {PENDING_SERIES: Data(), THROUGHPUT_SERIES: Data()}
        for server in self._servers:
            self.series[server_series(server)] = Data()

    def sample(self) -> None:
        now = self._clock.now()
        self.series[PENDING_SERIES].add_stat(self._pending.depth, now)
        for server in self._servers:
            self.series[server_series(server)].add_stat(server.depth, now)
        self.series[THROUGHPUT_SERIES].add_stat(self._metrics.snapshot().throughput, now)

    async def run(self, stopping: asyncio.Event) -> None:
        next_sample = self._clock.now()
        while not stopping.is_set():
            self.sample()
            next_sample += self.interval
            try:
                await asyncio.wait_for(stopping.wait(), timeout=self._clock.until(next_sample))
            except asyncio.TimeoutError:
                continue
        self.sample()
        logger.debug("Probe stopped after %d samples", len(self.series[PENDING_SERIES]))
