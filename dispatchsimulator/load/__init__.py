"""Load generation for simulations."""

from dispatchsimulator.load.arrival_generator import ArrivalGenerator

__all__ = ["ArrivalGenerator"]
