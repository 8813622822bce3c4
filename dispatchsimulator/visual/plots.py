"""Matplotlib charts for a finished run.

These helpers read the probe history and the response-time samples of a
run and write PNG files. They import matplotlib lazily so the simulator
itself does not require a plotting backend.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from dispatchsimulator.instrumentation.probe import PENDING_SERIES, THROUGHPUT_SERIES

if TYPE_CHECKING:
    from dispatchsimulator.instrumentation.data import Data
    from dispatchsimulator.instrumentation.summary import SimulationSummary

logger = logging.getLogger(__name__)


def _pyplot():
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    return plt


def plot_queue_depths(history: dict[str, Data], path: str | Path, title: str = "Queue depth") -> Path:
    """Plot every sampled queue depth over time.

    Args:
        history: Probe series, as returned by ``Simulation.history()``.
        path: Output PNG path. Parent directories are created.
        title: Chart title.

    Returns:
        The written path.
    """
    plt = _pyplot()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(10, 5))
    for name, data in history.items():
        if name == THROUGHPUT_SERIES or not data:
            continue
        style = "--" if name == PENDING_SERIES else "-"
        ax.step(data.times(), data.raw_values(), style, where="post", label=name)
    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Requests queued")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    ax.legend()
    fig.tight_layout()
    fig.savefig(path, dpi=120)
    plt.close(fig)
    logger.info("Saved queue depth plot to %s", path)
    return path


def plot_response_times(response_times: Data, path: str | Path, window_s: float = 1.0) -> Path:
    """Plot per-request response times with a windowed mean overlay."""
    plt = _pyplot()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(10, 5))
    ms = [v * 1000 for v in response_times.raw_values()]
    ax.scatter(response_times.times(), ms, s=6, alpha=0.4, label="request")
    bucket_times, bucket_means = response_times.bucket_means(window_s)
    ax.plot(bucket_times, [v * 1000 for v in bucket_means], color="tab:red", label=f"mean ({window_s:g}s)")
    ax.set_xlabel("Completion time (s)")
    ax.set_ylabel("Response time (ms)")
    ax.set_title("Response time")
    ax.grid(True, alpha=0.3)
    ax.legend()
    fig.tight_layout()
    fig.savefig(path, dpi=120)
    plt.close(fig)
    return path


def plot_policy_comparison(summaries: list[SimulationSummary], path: str | Path) -> Path:
    """Bar charts comparing throughput, response time and rejections across runs."""
    plt = _pyplot()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    labels = [s.balancing_mode for s in summaries]
    fig, axes = plt.subplots(1, 3, figsize=(14, 4))
    axes[0].bar(labels, [s.metrics.throughput for s in summaries])
    axes[0].set_title("Throughput (req/s)")
    axes[1].bar(labels, [s.metrics.avg_response_time * 1000 for s in summaries], label="avg")
    axes[1].plot(labels, [s.p99_response_time * 1000 for s in summaries], "ko", label="p99")
    axes[1].set_title("Response time (ms)")
    axes[1].legend()
    axes[2].bar(labels, [s.metrics.rejection_rate * 100 for s in summaries])
    axes[2].set_title("Rejected (%)")
    for ax in axes:
        ax.grid(True, axis="y", alpha=0.3)
    fig.tight_layout()
    fig.savefig(path, dpi=120)
    plt.close(fig)
    return path
