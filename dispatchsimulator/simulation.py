"""Thread-backed lifecycle controller for interactive use.

``Simulation`` runs a SimulationEngine on a private event loop in a
background thread so that synchronous callers, such as a front-end or a
script, can start a run, read live snapshots and queue lengths from their
own thread, and stop it again.

Example:
    from dispatchsimulator import Simulation, SimulationConfig

    sim = Simulation(SimulationConfig(balancing_mode="smallest-queue", arrival_rate=8))
    sim.start()
    ...
    print(sim.snapshot().throughput, sim.queue_lengths())
    summary = sim.stop()
    print(summary)
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time

from dispatchsimulator.config import SimulationConfig
from dispatchsimulator.engine import SimulationEngine
from dispatchsimulator.instrumentation.data import Data
from dispatchsimulator.instrumentation.metrics import MetricsSnapshot
from dispatchsimulator.instrumentation.summary import SimulationSummary

logger = logging.getLogger(__name__)


class Simulation:
    """One run of the dispatch simulator, controlled from any thread.

    The configuration is validated in the constructor, so a bad value
    raises ConfigurationError before any thread or task exists. A
    Simulation is single-use: no state survives a stop, and a new run
    needs a new Simulation.

    Args:
        config: Run parameters.
    """

    def __init__(self, config: SimulationConfig):
        self.engine = SimulationEngine(config)
        self.config = self.engine.config
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._started = threading.Event()
        self._finished = threading.Event()
        self._stop_requested: asyncio.Event | None = None
        self._summary: SimulationSummary | None = None
        self._error: BaseException | None = None
        self._lock = threading.Lock()

    # === Lifecycle ===

    def start(self) -> None:
        """Start every execution unit on a background event loop."""
        with self._lock:
            if self._thread is not None or self._finished.is_set():
                raise RuntimeError("Simulation already started; create a new Simulation for a new run.")
            self._thread = threading.Thread(target=self._run_loop, name="dispatchsimulator", daemon=True)
            self._thread.start()
        self._started.wait()
        if self._error is not None:
            raise self._error

    def stop(self, timeout: float | None = None) -> SimulationSummary:
        """Stop the run and return its final summary.

        Safe to call at any point and more than once. In-flight requests
        complete before this returns, so it can take up to the longest
        service time (scaled by ``time_scale``).

        Args:
            timeout: Maximum wall seconds to wait for the loop to finish.

        Raises:
            TimeoutError: If the run does not finish within ``timeout``.
            RuntimeError: If called from the simulation's loop thread,
                which would have to wait on itself.
        """
        with self._lock:
            thread = self._thread
            if thread is None:
                # Never started: finalize an empty run without a loop thread.
                if self._summary is None:
                    self._summary = asyncio.run(self.engine.stop())
                    self._finished.set()
                return self._summary
        if thread is threading.current_thread():
            raise RuntimeError("stop() cannot be called from the simulation's own loop thread")

        if not self._started.wait(timeout):
            raise TimeoutError(f"Simulation did not start within {timeout}s")
        if not self._finished.is_set() and self._loop is not None and self._stop_requested is not None:
            self._loop.call_soon_threadsafe(self._stop_requested.set)

        thread.join(timeout)
        if thread.is_alive():
            raise TimeoutError(f"Simulation did not stop within {timeout}s")

        if self._error is not None:
            raise self._error
        assert self._summary is not None
        return self._summary

    def run(self, duration_s: float) -> SimulationSummary:
        """Run for ``duration_s`` simulated seconds and return the summary."""
        self.start()
        try:
            time.sleep(self.engine.clock.to_wall(duration_s))
        finally:
            summary = self.stop()
        return summary

    @property
    def running(self) -> bool:
        return self._started.is_set() and not self._finished.is_set()

    # === Live reads ===

    def snapshot(self) -> MetricsSnapshot:
        """Consistent metrics snapshot, readable from any thread."""
        return self.engine.snapshot()

    def queue_lengths(self) -> dict[str, int]:
        return self.engine.queue_lengths()

    def workloads(self) -> dict[str, float]:
        """Outstanding nominal service time per server, in simulated seconds."""
        return self.engine.workloads()

    def history(self) -> dict[str, Data]:
        """Probe time series for this run (empty if probing is disabled)."""
        if self.engine.probe is None:
            return {}
        return self.engine.probe.series

    # === Loop thread ===

    def _run_loop(self) -> None:
        try:
            asyncio.run(self._main())
        except Exception as exc:
            # Re-raised from start() or stop() on the caller thread.
            logger.exception("Simulation loop failed")
            self._error = exc
        finally:
            self._started.set()
            self._finished.set()

    async def _main(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._stop_requested = asyncio.Event()
        await self.engine.start()
        self._started.set()
        await self._stop_requested.wait()
        self._summary = await self.engine.stop()
