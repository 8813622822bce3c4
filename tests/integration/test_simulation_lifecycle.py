"""Lifecycle tests for the thread-backed Simulation controller."""

from __future__ import annotations

import threading
import time

import pytest

from dispatchsimulator import ConfigurationError, Simulation, SimulationConfig


def _config(**overrides) -> SimulationConfig:
    values = {"arrival_rate": 8.0, "time_scale": 0.02, "seed": 7}
    values.update(overrides)
    return SimulationConfig(**values)


class TestStartStop:
    def test_start_then_stop(self):
        sim = Simulation(_config())
        sim.start()
        assert sim.running
        time.sleep(0.2)

        summary = sim.stop(timeout=5.0)

        assert not sim.running
        assert summary.generated > 0
        assert summary.generated == summary.metrics.total + summary.abandoned

    def test_stop_returns_same_summary_twice(self):
        sim = Simulation(_config())
        sim.start()
        time.sleep(0.05)
        assert sim.stop(timeout=5.0) is sim.stop(timeout=5.0)

    def test_run_for_duration(self):
        summary = Simulation(_config()).run(10.0)
        assert summary.duration_s >= 10.0
        assert summary.generated == summary.metrics.total + summary.abandoned

    def test_double_start_rejected(self):
        sim = Simulation(_config())
        sim.start()
        try:
            with pytest.raises(RuntimeError):
                sim.start()
        finally:
            sim.stop(timeout=5.0)

    def test_stop_before_start(self):
        sim = Simulation(_config())
        summary = sim.stop()

        assert summary.generated == 0
        assert summary.metrics.total == 0
        with pytest.raises(RuntimeError):
            sim.start()

    def test_stop_from_loop_thread_rejected(self):
        sim = Simulation(_config())
        sim.start()
        errors: list[BaseException] = []
        attempted = threading.Event()

        def stop_on_loop():
            try:
                sim.stop()
            except RuntimeError as exc:
                errors.append(exc)
            finally:
                attempted.set()

        try:
            sim._loop.call_soon_threadsafe(stop_on_loop)
            assert attempted.wait(5.0)
            assert sim.running
        finally:
            summary = sim.stop(timeout=5.0)

        assert len(errors) == 1
        assert "loop thread" in str(errors[0])
        assert summary.generated == summary.metrics.total + summary.abandoned

    def test_invalid_config_fails_before_start(self):
        before = threading.active_count()
        with pytest.raises(ConfigurationError):
            Simulation(_config(arrival_rate=25.0))
        assert threading.active_count() == before


class TestLiveReads:
    def test_snapshots_from_caller_thread(self):
        """Snapshots taken while the run is live always satisfy the total invariant."""
        sim = Simulation(_config(arrival_rate=10.0))
        sim.start()
        snapshots = []
        try:
            deadline = time.monotonic() + 0.3
            while time.monotonic() < deadline:
                snapshots.append(sim.snapshot())
                lengths = sim.queue_lengths()
                workloads = sim.workloads()
                assert set(workloads) == {"Server 1", "Server 2", "Server 3"}
                assert lengths["Pending queue"] <= 20
                assert all(lengths[f"Server {i} queue"] <= 10 for i in (1, 2, 3))
                time.sleep(0.005)
        finally:
            summary = sim.stop(timeout=5.0)

        assert snapshots
        for snap in snapshots:
            assert snap.total == snap.processed + snap.rejected
        assert snapshots[-1].total <= summary.metrics.total

    def test_snapshots_from_many_threads(self):
        sim = Simulation(_config(arrival_rate=10.0))
        sim.start()
        failures: list[str] = []

        def reader():
            for _ in range(50):
                snap = sim.snapshot()
                if snap.total != snap.processed + snap.rejected:
                    failures.append(repr(snap))
                time.sleep(0.002)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        sim.stop(timeout=5.0)

        assert not failures

    def test_history_available_after_stop(self):
        sim = Simulation(_config())
        sim.run(5.0)
        history = sim.history()
        assert "pending_depth" in history
        assert len(history["pending_depth"]) > 0
