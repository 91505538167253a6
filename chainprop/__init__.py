"""Discrete event simulator for block propagation under pluggable consensus."""

from chainprop.config import MintingPolicy, Region, SimulationConfig

__all__ = [
    "MintingPolicy",
    "Region",
    "SimulationConfig",
]
