"""Consensus strategy interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chainprop.actors.node import Node
    from chainprop.chain.block import Block
    from chainprop.protocol.commands import MintingTask


class ConsensusAlgorithm(ABC):
    """Per-node strategy deciding how blocks are minted and accepted.

    A strategy is bound to one node at construction and keeps no state of
    its own; the owning node's head is the only chain state.
    """

    def __init__(self, node: Node) -> None:
        self._node = node

    @property
    def node(self) -> Node:
        return self._node

    @abstractmethod
    def mint(self) -> MintingTask | None:
        """Next minting attempt on top of the node's head, or None without a head."""
        ...

    @abstractmethod
    def build_block(self, task: MintingTask) -> Block:
        """Materialize the block a completed task produced, at the current time."""
        ...

    @abstractmethod
    def validate(self, received: Block, current: Block | None) -> bool:
        """Whether ``received`` should replace ``current`` as the head."""
        ...

    @abstractmethod
    def genesis(self) -> Block:
        """Height-0 block minted by the owning node."""
        ...
