"""Single-concurrency worker server.

Each Server owns a bounded queue and runs one execution loop:

    Idle ──(queue non-empty)──► Processing ──(service time elapsed)──► Idle
      │                                                                 │
      └──────────────(stop requested)──────────► Stopped ◄─────────────┘

A server processes strictly one request at a time. When a stop is
requested while it is Processing, the current request runs to completion
and is recorded before the loop exits; requests still waiting in its queue
are left for the engine to drain.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

import numpy as np

from dispatchsimulator.core.clock import SimulationClock
from dispatchsimulator.core.request import Request
from dispatchsimulator.entities.bounded_queue import BoundedQueue
from dispatchsimulator.instrumentation.metrics import MetricsAggregator

logger = logging.getLogger(__name__)


class ServerState(Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    STOPPED = "stopped"


class Server:
    """Worker with a bounded FIFO queue and a one-at-a-time processing loop.

    Args:
        server_id: Zero-based index within the fleet.
        capacity: Capacity of the server's queue.
        clock: Simulation time base.
        metrics: Shared aggregator receiving completions.
        service_jitter: Fractional spread for IO-bound and mixed requests.
            Zero keeps service time equal to the nominal size duration.
        rng: Random generator used for jitter.

    Attributes:
        stats_processed: Requests completed by this server.
        workload: Nominal service time still owed, in simulated seconds.
        busy_time: Simulated seconds spent processing.
        current: Request being processed, if any.
    """

    def __init__(
        self,
        server_id: int,
        capacity: int,
        clock: SimulationClock,
        metrics: MetricsAggregator,
        service_jitter: float = 0.0,
        rng: np.random.Generator | None = None,
    ):
        self.server_id = server_id
        self.name = f"Server {server_id + 1}"
        self.queue: BoundedQueue[Request] = BoundedQueue(
            f"{self.name} queue", capacity, weight=lambda request: request.size.value
        )
        self._clock = clock
        self._metrics = metrics
        self._service_jitter = service_jitter
        self._rng = rng if rng is not None else np.random.default_rng()

        self.state = ServerState.IDLE
        self.current: Request | None = None
        self.stats_processed: int = 0
        self.busy_time: float = 0.0
        self._peak_workload_ms: int = 0

    def service_time(self, request: Request) -> float:
        """Simulated seconds needed to serve ``request``."""
        nominal = request.nominal_service_time
        if self._service_jitter <= 0 or not request.request_type.is_variable:
            return nominal
        factor = self._rng.uniform(1.0 - self._service_jitter, 1.0 + self._service_jitter)
        return nominal * float(factor)

    async def run(self, stopping: asyncio.Event) -> None:
        """Serve requests until ``stopping`` is set."""
        logger.debug("[%s] started", self.name)
        try:
            while not stopping.is_set():
                request = await self.queue.take_until(stopping)
                if request is None:
                    break
                await self._process(request)
        finally:
            self.state = ServerState.STOPPED
            logger.debug("[%s] stopped after %d requests", self.name, self.stats_processed)

    async def _process(self, request: Request) -> None:
        self.state = ServerState.PROCESSING
        self.current = request
        duration = self.service_time(request)
        logger.debug("[%s] processing %s for %.3fs", self.name, request, duration)

        await self._clock.sleep(duration)

        completed_at = self._clock.now()
        response_time = max(0.0, completed_at - request.arrival_time)
        self.busy_time += duration
        self.stats_processed += 1
        self.current = None
        self.state = ServerState.IDLE
        self._metrics.record_processed(response_time, server_id=self.server_id, completed_at=completed_at)
        logger.debug("[%s] processed %s in %.3fs", self.name, request, response_time)

    def offer(self, request: Request) -> bool:
        """Offer ``request`` to this server's queue. Returns False when full."""
        if not self.queue.offer(request):
            return False
        self._peak_workload_ms = max(self._peak_workload_ms, self._workload_ms())
        return True

    def drain(self) -> list[Request]:
        """Remove every request still waiting in the queue."""
        return self.queue.drain()

    def _workload_ms(self) -> int:
        in_progress = self.current.size.value if self.current is not None else 0
        return self.queue.weight_total + in_progress

    @property
    def workload(self) -> float:
        """Nominal service time of the queued requests plus the one in service."""
        return self._workload_ms() / 1000.0

    @property
    def peak_workload(self) -> float:
        return self._peak_workload_ms / 1000.0

    @property
    def depth(self) -> int:
        return self.queue.depth

    def utilization(self, elapsed: float) -> float:
        if elapsed <= 0:
            return 0.0
        return min(1.0, self.busy_time / elapsed)

    def __repr__(self) -> str:
        return f"Server({self.server_id}, state={self.state.value}, depth={self.depth})"
