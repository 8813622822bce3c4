"""Asyncio orchestration of one simulation run.

The engine wires the pending queue, the arrival generator, the dispatcher,
the servers and the optional probe together and runs each of them as an
independent task in the current event loop:

    ┌───────────┐   offer   ┌─────────┐  take   ┌────────────┐  offer  ┌──────────┐
    │ Generator │──────────►│ Pending │────────►│ Dispatcher │────────►│ Server i │
    └───────────┘           └─────────┘         └────────────┘         └──────────┘
          │ reject                                    │ reject               │ complete
          └──────────────────────────► Metrics ◄──────┴──────────────────────┘

Stopping sets a shared event. The generator, dispatcher, probe and idle
servers exit right away; a server in the middle of a request finishes and
records it first. Whatever is still queued afterwards is drained and
counted as abandoned, so ``generated == total + abandoned`` after stop.
"""

from __future__ import annotations

import asyncio
import logging
import time

import numpy as np

from dispatchsimulator.components.load_balancer.dispatcher import Dispatcher
from dispatchsimulator.config import SimulationConfig
from dispatchsimulator.core.clock import SimulationClock
from dispatchsimulator.core.request import Request
from dispatchsimulator.entities.bounded_queue import BoundedQueue
from dispatchsimulator.entities.server import Server
from dispatchsimulator.instrumentation.metrics import MetricsAggregator, MetricsSnapshot
from dispatchsimulator.instrumentation.probe import Probe
from dispatchsimulator.instrumentation.summary import QueueStats, ServerSummary, SimulationSummary
from dispatchsimulator.load.arrival_generator import ArrivalGenerator

logger = logging.getLogger(__name__)


class SimulationEngine:
    """All execution units of a single run, bound to one event loop.

    The engine is single-use: after ``stop()`` a new engine is needed for a
    new run. Configuration is validated in the constructor, before any
    task exists.

    Args:
        config: Run parameters.
        clock: Optional clock override; built from ``config.time_scale``
            when omitted.
    """

    def __init__(self, config: SimulationConfig, clock: SimulationClock | None = None):
        self.config = config.validate()
        self.clock = clock or SimulationClock(time_scale=config.time_scale)
        self.metrics = MetricsAggregator(elapsed=self.clock.now)

        rng = np.random.default_rng(config.seed)
        gen_rng, dispatch_rng, *server_rngs = rng.spawn(2 + config.num_servers)

        self.pending: BoundedQueue[Request] = BoundedQueue("Pending queue", config.pending_capacity)
        self.servers = [
            Server(
                server_id=i,
                capacity=config.server_capacity,
                clock=self.clock,
                metrics=self.metrics,
                service_jitter=config.service_jitter,
                rng=server_rngs[i],
            )
            for i in range(config.num_servers)
        ]
        self.generator = ArrivalGenerator(
            rate=config.arrival_rate,
            pending=self.pending,
            clock=self.clock,
            metrics=self.metrics,
            rng=gen_rng,
            process=config.arrival_process,
            type_weights=config.type_weights,
            size_weights=config.size_weights,
        )
        self.dispatcher = Dispatcher(
            mode=config.balancing_mode,
            pending=self.pending,
            servers=self.servers,
            metrics=self.metrics,
            rng=dispatch_rng,
        )
        self.probe: Probe | None = None
        if config.probe_interval is not None:
            self.probe = Probe(
                clock=self.clock,
                pending=self.pending,
                servers=self.servers,
                metrics=self.metrics,
                interval=config.probe_interval,
            )

        self._stopping: asyncio.Event | None = None
        self._tasks: list[asyncio.Task] = []
        self._started_wall: float | None = None
        self._summary: SimulationSummary | None = None
        self._failure: Exception | None = None
        self.abandoned: list[Request] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks) and self._summary is None and self._failure is None

    @property
    def stopped(self) -> bool:
        return self._summary is not None or self._failure is not None

    async def start(self) -> None:
        """Create one task per execution unit in the running loop."""
        if self._tasks or self.stopped:
            raise RuntimeError("SimulationEngine is single-use; create a new engine for a new run.")

        self._stopping = asyncio.Event()
        self._started_wall = time.perf_counter()
        self.clock.start()

        units = [("generator", self.generator.run(self._stopping))]
        units.append(("dispatcher", self.dispatcher.run(self._stopping)))
        units.extend((server.name, server.run(self._stopping)) for server in self.servers)
        if self.probe is not None:
            units.append(("probe", self.probe.run(self._stopping)))
        self._tasks = [asyncio.create_task(coro, name=name) for name, coro in units]
        for task in self._tasks:
            task.add_done_callback(_log_unit_failure)

        logger.info(
            "Simulation started: mode=%s rate=%.2f servers=%d pending_capacity=%d server_capacity=%d",
            self.config.balancing_mode.value,
            self.config.arrival_rate,
            len(self.servers),
            self.config.pending_capacity,
            self.config.server_capacity,
        )

    async def stop(self) -> SimulationSummary:
        """Signal every unit, wait for them to exit and finalize the run.

        Safe to call more than once and before ``start()``; later calls
        return the same summary.

        Raises:
            Exception: The first exception that escaped an execution unit.
                No summary is built for such a run, and later calls raise
                the same exception.
        """
        if self._failure is not None:
            raise self._failure
        if self._summary is not None:
            return self._summary
        if self._stopping is None:
            self._stopping = asyncio.Event()
        self._stopping.set()

        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        self.clock.stop()

        self.abandoned = self.pending.drain()
        for server in self.servers:
            self.abandoned.extend(server.drain())

        # A failed unit may have lost the request it was holding, so the
        # run cannot be summarized.
        for result in results:
            if isinstance(result, Exception):
                self._failure = result
                raise result

        self._summary = self._build_summary()
        logger.info(
            "Simulation stopped: processed=%d rejected=%d abandoned=%d elapsed=%.2fs",
            self._summary.metrics.processed,
            self._summary.metrics.rejected,
            self._summary.abandoned,
            self._summary.duration_s,
        )
        return self._summary

    async def run_for(self, duration_s: float) -> SimulationSummary:
        """Start, let ``duration_s`` simulated seconds elapse, then stop."""
        await self.start()
        try:
            await self.clock.sleep(duration_s)
        finally:
            summary = await self.stop()
        return summary

    def snapshot(self) -> MetricsSnapshot:
        return self.metrics.snapshot()

    def queue_lengths(self) -> dict[str, int]:
        """Live depth of every queue, keyed by queue name."""
        lengths = {self.pending.name: self.pending.depth}
        for server in self.servers:
            lengths[server.queue.name] = server.depth
        return lengths

    def workloads(self) -> dict[str, float]:
        """Outstanding nominal service time per server, in simulated seconds."""
        return {server.name: server.workload for server in self.servers}

    @property
    def summary(self) -> SimulationSummary | None:
        return self._summary

    def _build_summary(self) -> SimulationSummary:
        snapshot = self.metrics.snapshot()
        assert self.generator.generated == snapshot.total + len(self.abandoned), (
            f"generated={self.generator.generated} total={snapshot.total} "
            f"abandoned={len(self.abandoned)}"
        )
        wall = time.perf_counter() - self._started_wall if self._started_wall is not None else 0.0
        processed_by_server = self.metrics.processed_by_server()
        servers = {
            server.name: ServerSummary(
                name=server.name,
                dispatched=self.dispatcher.stats.per_server[server.server_id],
                processed=processed_by_server.get(server.server_id, 0),
                busy_time=server.busy_time,
                utilization=server.utilization(snapshot.elapsed),
                queue_stats=_queue_stats(server.queue),
                peak_workload=server.peak_workload,
            )
            for server in self.servers
        }
        return SimulationSummary(
            balancing_mode=self.config.balancing_mode.value,
            arrival_rate=self.config.arrival_rate,
            metrics=snapshot,
            generated=self.generator.generated,
            abandoned=len(self.abandoned),
            wall_clock_seconds=wall,
            p50_response_time=self.metrics.response_time_percentile(0.50),
            p99_response_time=self.metrics.response_time_percentile(0.99),
            pending_queue=_queue_stats(self.pending),
            servers=servers,
        )


def _queue_stats(queue: BoundedQueue) -> QueueStats:
    return QueueStats(
        capacity=queue.capacity,
        peak_depth=queue.peak_depth,
        total_accepted=queue.stats_accepted,
        total_dropped=queue.stats_dropped,
    )


def _log_unit_failure(task: asyncio.Task) -> None:
    if task.cancelled() or task.exception() is None:
        return
    logger.error("Execution unit %s failed", task.get_name(), exc_info=task.exception())
