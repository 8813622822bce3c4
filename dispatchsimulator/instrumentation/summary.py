"""Run summary generated when a simulation stops.

SimulationSummary provides a structured overview of what happened during a
run: the final metrics snapshot, conservation counts, and per-queue and
per-server statistics. It is returned by ``Simulation.stop()`` and
``SimulationEngine.stop()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from dispatchsimulator.instrumentation.metrics import MetricsSnapshot


@dataclass
class QueueStats:
    """Statistics for one bounded queue."""
    capacity: int
    peak_depth: int
    total_accepted: int
    total_dropped: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "capacity": self.capacity,
            "peak_depth": self.peak_depth,
            "total_accepted": self.total_accepted,
            "total_dropped": self.total_dropped,
        }


@dataclass
class ServerSummary:
    """Per-server statistics from a run."""
    name: str
    dispatched: int
    processed: int
    busy_time: float
    utilization: float
    queue_stats: QueueStats
    peak_workload: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "dispatched": self.dispatched,
            "processed": self.processed,
            "busy_time": self.busy_time,
            "utilization": self.utilization,
            "peak_workload": self.peak_workload,
            "queue": self.queue_stats.to_dict(),
        }


@dataclass
class SimulationSummary:
    """Final report of a run.

    Attributes:
        balancing_mode: Policy used for the run.
        arrival_rate: Configured mean arrivals per simulated second.
        metrics: Final, frozen metrics snapshot.
        generated: Requests created by the generator.
        abandoned: Requests still queued at stop, never processed.
        wall_clock_seconds: Real time the run took.
        p50_response_time: Median response time, seconds.
        p99_response_time: 99th percentile response time, seconds.
    """
    balancing_mode: str
    arrival_rate: float
    metrics: MetricsSnapshot
    generated: int
    abandoned: int
    wall_clock_seconds: float
    p50_response_time: float = 0.0
    p99_response_time: float = 0.0
    pending_queue: QueueStats | None = None
    servers: dict[str, ServerSummary] = field(default_factory=dict)

    @property
    def duration_s(self) -> float:
        return self.metrics.elapsed

    def __str__(self) -> str:
        m = self.metrics
        lines = [
            "Simulation Summary",
            f"  Policy: {self.balancing_mode} @ {self.arrival_rate:g} req/s",
            f"  Duration: {self.duration_s:.2f}s (sim) / {self.wall_clock_seconds:.3f}s (wall)",
            f"  Requests: generated={self.generated} processed={m.processed} "
            f"rejected={m.rejected} (pending={m.rejected_pending}, server={m.rejected_server}) "
            f"abandoned={self.abandoned}",
            f"  Response time: avg={m.avg_response_time * 1000:.1f}ms "
            f"p50={self.p50_response_time * 1000:.1f}ms p99={self.p99_response_time * 1000:.1f}ms",
            f"  Throughput: {m.throughput:.2f} req/s",
        ]
        if self.pending_queue is not None:
            qs = self.pending_queue
            lines.append(
                f"  Pending queue: peak={qs.peak_depth}/{qs.capacity}, "
                f"accepted={qs.total_accepted}, dropped={qs.total_dropped}"
            )
        if self.servers:
            lines.append("  Servers:")
            for name, ss in self.servers.items():
                qs = ss.queue_stats
                lines.append(
                    f"    {name}: dispatched={ss.dispatched} processed={ss.processed} "
                    f"util={ss.utilization:.0%} peak load={ss.peak_workload * 1000:.0f}ms "
                    f"| queue: peak={qs.peak_depth}/{qs.capacity}, "
                    f"dropped={qs.total_dropped}"
                )
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "balancing_mode": self.balancing_mode,
            "arrival_rate": self.arrival_rate,
            "duration_s": self.duration_s,
            "wall_clock_seconds": self.wall_clock_seconds,
            "generated": self.generated,
            "abandoned": self.abandoned,
            "metrics": self.metrics.to_dict(),
            "p50_response_time": self.p50_response_time,
            "p99_response_time": self.p99_response_time,
            "pending_queue": self.pending_queue.to_dict() if self.pending_queue else None,
            "servers": {name: ss.to_dict() for name, ss in self.servers.items()},
        }
