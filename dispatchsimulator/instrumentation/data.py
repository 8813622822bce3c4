"""Time-series data storage for simulation metrics.

Data is a container of timestamped samples collected during a run. The
metrics aggregator stores response times in one, and the probe stores
queue depths and throughput samples in others.
"""

from __future__ import annotations

import math
import statistics
from collections import defaultdict, deque
from typing import Any


class Data:
    """Container for timestamped metric samples with analysis utilities.

    Stores (time, value) pairs for post-run analysis. Times are simulated
    seconds; values should be numeric for the aggregations to work.

    Args:
        max_samples: Keep only the most recent samples. None keeps all.
    """

    def __init__(self, max_samples: int | None = None) -> None:
        self._samples: deque[tuple[float, Any]] = deque(maxlen=max_samples)

    def add_stat(self, value: Any, time_s: float) -> None:
        """Record a data point at the given simulated time."""
        self._samples.append((time_s, value))

    def clear(self) -> None:
        self._samples.clear()

    @property
    def values(self) -> list[tuple[float, Any]]:
        """All recorded samples as (time_seconds, value) tuples."""
        return list(self._samples)

    def between(self, start_s: float, end_s: float) -> Data:
        """Return a new Data with samples in [start, end)."""
        result = Data()
        result._samples.extend((t, v) for t, v in self._samples if start_s <= t < end_s)
        return result

    # === Aggregations ===

    def mean(self) -> float:
        vals = self.raw_values()
        if not vals:
            return 0.0
        return sum(vals) / len(vals)

    def max(self) -> float:
        vals = self.raw_values()
        if not vals:
            return 0.0
        return builtins_max(vals)

    def percentile(self, p: float) -> float:
        """Interpolated percentile of the values, p in [0, 1]. 0.0 if empty."""
        return _percentile_sorted(sorted(self.raw_values()), p)

    def count(self) -> int:
        return len(self._samples)

    def std(self) -> float:
        """Population standard deviation. 0.0 with fewer than 2 samples."""
        vals = self.raw_values()
        if len(vals) < 2:
            return 0.0
        return statistics.pstdev(vals)

    def bucket_means(self, window_s: float = 1.0) -> tuple[list[float], list[float]]:
        """Mean value per fixed-width time window as (bucket_starts, means)."""
        buckets: dict[int, list[float]] = defaultdict(list)
        for t, v in self._samples:
            buckets[int(math.floor(t / window_s))].append(float(v))
        keys = sorted(buckets)
        return (
            [k * window_s for k in keys],
            [sum(buckets[k]) / len(buckets[k]) for k in keys],
        )

    # === Convenience ===

    def times(self) -> list[float]:
        return [t for t, _ in self._samples]

    def raw_values(self) -> list[Any]:
        return [v for _, v in self._samples]

    def __len__(self) -> int:
        return len(self._samples)

    def __bool__(self) -> bool:
        return len(self._samples) > 0


def _percentile_sorted(sorted_values: list[float], p: float) -> float:
    """Calculate percentile from pre-sorted values (p in [0, 1])."""
    if not sorted_values:
        return 0.0
    if p <= 0:
        return float(sorted_values[0])
    if p >= 1:
        return float(sorted_values[-1])
    n = len(sorted_values)
    pos = p * (n - 1)
    lo = int(pos)
    hi = builtins_min(lo + 1, n - 1)
    frac = pos - lo
    return float(sorted_values[lo] * (1.0 - frac) + sorted_values[hi] * frac)


# Avoid shadowing builtins
import builtins as _builtins  # noqa: E402

builtins_min = _builtins.min
builtins_max = _builtins.max
