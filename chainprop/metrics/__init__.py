"""Propagation measurement and aggregation."""

from .results import PropagationMatrix
from .tracker import MAX_TRACKED_BLOCKS, PropagationRecord, PropagationTracker

__all__ = [
    "MAX_TRACKED_BLOCKS",
    "PropagationMatrix",
    "PropagationRecord",
    "PropagationTracker",
]
