"""Scaled wall-clock time base for a simulation run.

The clock maps simulated seconds onto wall-clock seconds through a
``time_scale`` factor (wall seconds per simulated second). A scale of 1.0
runs in real time; 0.01 runs a hundred times faster. All timestamps handed
out by the clock are simulated seconds since ``start()``.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable


class SimulationClock:
    """Monotonic, scalable simulation clock.

    Args:
        time_scale: Wall-clock seconds that elapse per simulated second.
        timer: Monotonic wall-clock source, injectable for tests.
    """

    def __init__(self, time_scale: float = 1.0, timer: Callable[[], float] = time.monotonic):
        if time_scale <= 0:
            raise ValueError("time_scale must be positive.")
        self.time_scale = time_scale
        self._timer = timer
        self._started_at: float | None = None
        self._stopped_at: float | None = None

    def start(self) -> None:
        """Start (or restart) the clock at simulated time zero."""
        self._started_at = self._timer()
        self._stopped_at = None

    def stop(self) -> None:
        """Freeze the clock. Later reads of ``now()`` return the stop time."""
        if self._started_at is not None and self._stopped_at is None:
            self._stopped_at = self._timer()

    @property
    def running(self) -> bool:
        return self._started_at is not None and self._stopped_at is None

    def now(self) -> float:
        """Simulated seconds since start, or 0.0 if the clock never started."""
        if self._started_at is None:
            return 0.0
        end = self._stopped_at if self._stopped_at is not None else self._timer()
        return (end - self._started_at) / self.time_scale

    def to_wall(self, sim_seconds: float) -> float:
        """Convert a simulated duration to wall-clock seconds."""
        return max(0.0, sim_seconds) * self.time_scale

    def until(self, sim_time: float) -> float:
        """Wall-clock seconds remaining until the simulated instant ``sim_time``."""
        return self.to_wall(sim_time - self.now())

    async def sleep(self, sim_seconds: float) -> None:
        """Suspend the calling task for a simulated duration."""
        await asyncio.sleep(self.to_wall(sim_seconds))
