"""Arrival generator feeding the pending queue.

The generator draws inter-arrival gaps with mean 1/rate and schedules
arrivals on an absolute timeline: the next arrival is the previous one
plus a gap, not "now" plus a gap. Loop overhead therefore does not erode
the achieved mean rate.

Two arrival processes are available:
- POISSON: exponentially distributed gaps (the default)
- CONSTANT: evenly spaced gaps of exactly 1/rate
"""

from __future__ import annotations

import asyncio
import logging

import numpy as np

from dispatchsimulator.config import ArrivalProcess
from dispatchsimulator.core.clock import SimulationClock
from dispatchsimulator.core.request import Request, RequestFactory, RequestSize, RequestType
from dispatchsimulator.entities.bounded_queue import BoundedQueue
from dispatchsimulator.instrumentation.metrics import MetricsAggregator, RejectionPoint

logger = logging.getLogger(__name__)


class ArrivalGenerator:
    """Produces requests at a mean rate and offers them to the pending queue.

    Generation never blocks: when the pending queue is full the request is
    rejected, counted and discarded. A generator runs once; a new run
    creates a new generator.

    Args:
        rate: Mean arrivals per simulated second. Zero disables arrivals.
        pending: Destination queue.
        clock: Simulation time base.
        metrics: Shared aggregator receiving pending-queue rejections.
        rng: Random generator for gaps, types and sizes.
        process: Gap distribution.
        type_weights: Relative weight of each request type (uniform if None).
        size_weights: Relative weight of each request size (uniform if None).

    Attributes:
        generated: Requests created so far.
    """

    def __init__(
        self,
        rate: float,
        pending: BoundedQueue[Request],
        clock: SimulationClock,
        metrics: MetricsAggregator,
        rng: np.random.Generator | None = None,
        process: ArrivalProcess = ArrivalProcess.POISSON,
        type_weights: dict[RequestType, float] | None = None,
        size_weights: dict[RequestSize, float] | None = None,
    ):
        if rate < 0:
            raise ValueError("rate must be non-negative.")
        self.rate = rate
        self.process = process
        self._pending = pending
        self._clock = clock
        self._metrics = metrics
        self._rng = rng if rng is not None else np.random.default_rng()
        self._factory = RequestFactory()

        self._types, self._type_p = _choices(RequestType, type_weights)
        self._sizes, self._size_p = _choices(RequestSize, size_weights)

        self.generated: int = 0
        self._finished = False

    def next_gap(self) -> float:
        """Simulated seconds until the next arrival."""
        if self.process is ArrivalProcess.CONSTANT:
            return 1.0 / self.rate
        return float(self._rng.exponential(1.0 / self.rate))

    def create_request(self, arrival_time: float) -> Request:
        request_type = self._types[self._rng.choice(len(self._types), p=self._type_p)]
        size = self._sizes[self._rng.choice(len(self._sizes), p=self._size_p)]
        self.generated += 1
        return self._factory.create(arrival_time, request_type, size)

    def emit(self, arrival_time: float | None = None) -> bool:
        """Create one request and offer it to the pending queue.

        Returns:
            True if the pending queue accepted it.
        """
        request = self.create_request(self._clock.now() if arrival_time is None else arrival_time)
        if self._pending.offer(request):
            logger.debug("%s arrived", request)
            return True
        self._metrics.record_rejected(RejectionPoint.PENDING_QUEUE)
        logger.debug("%s rejected: pending queue full", request)
        return False

    async def run(self, stopping: asyncio.Event) -> None:
        """Emit requests until ``stopping`` is set."""
        if self._finished:
            raise RuntimeError("ArrivalGenerator cannot be restarted; create a new one.")
        self._finished = True

        if self.rate == 0:
            logger.info("Arrival rate is zero; no requests will be generated")
            await stopping.wait()
            return

        next_arrival = self._clock.now() + self.next_gap()
        while not stopping.is_set():
            try:
                await asyncio.wait_for(stopping.wait(), timeout=self._clock.until(next_arrival))
            except asyncio.TimeoutError:
                self.emit()
                next_arrival += self.next_gap()
        logger.debug("Generator stopped after %d requests", self.generated)


def _choices(enum_cls, weights):
    members = list(enum_cls)
    if not weights:
        return members, np.full(len(members), 1.0 / len(members))
    raw = np.array([float(weights.get(m, 0.0)) for m in members])
    total = raw.sum()
    if total <= 0:
        raise ValueError(f"{enum_cls.__name__} weights must contain a positive value.")
    return members, raw / total
