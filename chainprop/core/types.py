"""Core type aliases for the simulation."""

from typing import NewType

# Node identification - positive integer, stable for the simulation lifetime
NodeId = NewType("NodeId", int)
