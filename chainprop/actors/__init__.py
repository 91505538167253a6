"""Actor implementations for the block propagation simulator."""

from .node import Node

__all__ = ["Node"]
