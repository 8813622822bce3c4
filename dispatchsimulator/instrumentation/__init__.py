"""Metrics collection, sampling and run summaries."""

from dispatchsimulator.instrumentation.data import Data
from dispatchsimulator.instrumentation.metrics import MetricsAggregator, MetricsSnapshot, RejectionPoint
from dispatchsimulator.instrumentation.probe import Probe
from dispatchsimulator.instrumentation.summary import QueueStats, ServerSummary, SimulationSummary

__all__ = [
    "Data",
    "MetricsAggregator",
    "MetricsSnapshot",
    "Probe",
    "QueueStats",
    "RejectionPoint",
    "ServerSummary",
    "SimulationSummary",
]
