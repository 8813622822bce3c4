"""Plotting helpers for finished runs (requires matplotlib)."""

from dispatchsimulator.visual.plots import plot_policy_comparison, plot_queue_depths, plot_response_times

__all__ = ["plot_policy_comparison", "plot_queue_depths", "plot_response_times"]
