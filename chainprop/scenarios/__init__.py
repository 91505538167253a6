"""Runnable simulation scenarios."""

from .baseline import generate_run_id, run_propagation_scenario

__all__ = ["generate_run_id", "run_propagation_scenario"]
