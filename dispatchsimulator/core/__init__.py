"""Core value types and the simulation time base."""

from dispatchsimulator.core.clock import SimulationClock
from dispatchsimulator.core.request import Request, RequestFactory, RequestSize, RequestType

__all__ = [
    "Request",
    "RequestFactory",
    "RequestSize",
    "RequestType",
    "SimulationClock",
]
