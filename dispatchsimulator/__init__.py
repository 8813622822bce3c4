"""dispatchsimulator: request dispatch across a small server fleet.

Models an arrival process feeding a bounded pending queue, a dispatcher
applying a balancing policy, and single-concurrency servers with bounded
queues, for studying throughput and latency under load.

Logging is silent by default; see ``dispatchsimulator.logging_config``.
"""

import logging

from dispatchsimulator.config import (
    ArrivalProcess,
    BalancingMode,
    ConfigurationError,
    SimulationConfig,
)
from dispatchsimulator.core.clock import SimulationClock
from dispatchsimulator.core.request import Request, RequestSize, RequestType
from dispatchsimulator.engine import SimulationEngine
from dispatchsimulator.instrumentation.metrics import MetricsAggregator, MetricsSnapshot
from dispatchsimulator.instrumentation.summary import SimulationSummary
from dispatchsimulator.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    set_level,
    set_module_level,
)
from dispatchsimulator.simulation import Simulation

logging.getLogger("dispatchsimulator").addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "ArrivalProcess",
    "BalancingMode",
    "ConfigurationError",
    "MetricsAggregator",
    "MetricsSnapshot",
    "Request",
    "RequestSize",
    "RequestType",
    "Simulation",
    "SimulationClock",
    "SimulationConfig",
    "SimulationEngine",
    "SimulationSummary",
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]
