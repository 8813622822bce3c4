"""Simulation components."""

from dispatchsimulator.components.load_balancer import Dispatcher, RoundRobinCursor, select_server

__all__ = [
    "Dispatcher",
    "RoundRobinCursor",
    "select_server",
]
