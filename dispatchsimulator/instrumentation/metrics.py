"""Thread-safe metrics aggregation for a simulation run.

The MetricsAggregator is the single shared sink for completion and
rejection events. Writers (the generator, the dispatcher and every server)
and readers (the front-end, the probe, tests) may live on different
threads, so every update and every snapshot happens under one lock. A
snapshot therefore never shows a processed count without its matching
response-time sum.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from dispatchsimulator.instrumentation.data import Data

DEFAULT_RESPONSE_SAMPLES = 100_000


class RejectionPoint(Enum):
    """Where an admission rejection happened."""

    PENDING_QUEUE = "pending"
    SERVER_QUEUE = "server"


@dataclass(frozen=True)
class MetricsSnapshot:
    """Consistent point-in-time view of the run's counters.

    Attributes:
        total: Requests whose outcome is final (processed + rejected).
        processed: Requests that completed service.
        rejected: Requests refused at either queue.
        response_time_sum: Sum of arrival-to-completion times, seconds.
        elapsed: Simulated seconds since the run started.
        rejected_pending: Rejections at the pending queue.
        rejected_server: Rejections at a server queue.
    """

    total: int
    processed: int
    rejected: int
    response_time_sum: float
    elapsed: float
    rejected_pending: int = 0
    rejected_server: int = 0

    @property
    def avg_response_time(self) -> float:
        if self.processed == 0:
            return 0.0
        return self.response_time_sum / self.processed

    @property
    def throughput(self) -> float:
        """Processed requests per simulated second."""
        if self.elapsed <= 0:
            return 0.0
        return self.processed / self.elapsed

    @property
    def rejection_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.rejected / self.total

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "processed": self.processed,
            "rejected": self.rejected,
            "rejected_pending": self.rejected_pending,
            "rejected_server": self.rejected_server,
            "avg_response_time": self.avg_response_time,
            "throughput": self.throughput,
            "elapsed": self.elapsed,
        }


class MetricsAggregator:
    """Running counters shared by every execution unit.

    Args:
        elapsed: Callable returning simulated seconds since the run started.
            Defaults to a constant zero, which makes throughput zero.
        max_samples: Most recent response times kept for percentiles.
            Counters and the response-time sum always cover the whole run.
    """

    def __init__(
        self,
        elapsed: Callable[[], float] | None = None,
        max_samples: int | None = DEFAULT_RESPONSE_SAMPLES,
    ):
        self._elapsed = elapsed or (lambda: 0.0)
        self._lock = threading.Lock()
        self._processed = 0
        self._rejected_pending = 0
        self._rejected_server = 0
        self._response_time_sum = 0.0
        self._processed_by_server: dict[int, int] = {}
        self.response_times = Data(max_samples=max_samples)

    def record_processed(
        self,
        response_time: float,
        server_id: int | None = None,
        completed_at: float | None = None,
    ) -> None:
        """Record one completed request and its response time in seconds."""
        if response_time < 0:
            raise ValueError(f"response_time must be non-negative, got {response_time}")
        with self._lock:
            self._processed += 1
            self._response_time_sum += response_time
            if server_id is not None:
                self._processed_by_server[server_id] = self._processed_by_server.get(server_id, 0) + 1
            self.response_times.add_stat(
                response_time, completed_at if completed_at is not None else self._elapsed()
            )

    def record_rejected(self, point: RejectionPoint = RejectionPoint.PENDING_QUEUE) -> None:
        """Record one admission rejection."""
        with self._lock:
            if point is RejectionPoint.SERVER_QUEUE:
                self._rejected_server += 1
            else:
                self._rejected_pending += 1

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            rejected = self._rejected_pending + self._rejected_server
            snap = MetricsSnapshot(
                total=self._processed + rejected,
                processed=self._processed,
                rejected=rejected,
                response_time_sum=self._response_time_sum,
                elapsed=self._elapsed(),
                rejected_pending=self._rejected_pending,
                rejected_server=self._rejected_server,
            )
        assert snap.total == snap.processed + snap.rejected
        return snap

    def processed_by_server(self) -> dict[int, int]:
        with self._lock:
            return dict(self._processed_by_server)

    def response_time_percentile(self, p: float) -> float:
        with self._lock:
            return self.response_times.percentile(p)

