"""
Shared pytest fixtures for dispatch-simulator tests.
"""

import logging
from pathlib import Path

import pytest

from dispatchsimulator import SimulationClock
from dispatchsimulator.instrumentation.metrics import MetricsAggregator


@pytest.fixture(scope="session")
def test_output_root() -> Path:
    """
    Returns the root test_output directory. Created once per test session.
    Files here persist after tests complete for easy access.
    """
    output_dir = Path(__file__).parent.parent / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture
def test_output_dir(request, test_output_root) -> Path:
    """
    Returns a directory for the current test to write output files.
    Directory structure: test_output/<module_name>/<test_name>/
    """
    module_name = request.module.__name__.split(".")[-1]
    test_name = request.node.name

    test_dir = test_output_root / module_name / test_name
    test_dir.mkdir(parents=True, exist_ok=True)
    return test_dir


class FakeTimer:
    """Manually advanced monotonic timer for deterministic clock tests."""

    def __init__(self, start: float = 100.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def fake_timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def fast_clock() -> SimulationClock:
    """A started clock running 100x faster than real time."""
    clock = SimulationClock(time_scale=0.01)
    clock.start()
    return clock


@pytest.fixture
def metrics(fast_clock) -> MetricsAggregator:
    return MetricsAggregator(elapsed=fast_clock.now)


@pytest.fixture(autouse=True)
def reset_dispatchsimulator_logging():
    """Reset logging state before and after each test.

    Removes every non-null handler and resets the level so logging
    configured by one test never leaks into another.
    """
    logger = logging.getLogger("dispatchsimulator")

    def _reset():
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if not isinstance(handler, logging.NullHandler):
                handler.close()
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()
