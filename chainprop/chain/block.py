"""Block tree model shared by all nodes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chainprop.actors.node import Node


@dataclass(frozen=True, eq=False)
class Block:
    """An immutable node in the block tree.

    Blocks compare and hash by identity. The parent chain is shared between
    every node that references it, which is safe because nothing mutates a
    block after construction.
    """

    parent: Block | None = field(repr=False)
    minter: Node = field(repr=False)
    timestamp: int
    height: int = field(init=False)

    def __post_init__(self) -> None:
        height = 0 if self.parent is None else self.parent.height + 1
        object.__setattr__(self, "height", height)

    def __str__(self) -> str:
        return f"{type(self).__name__}(height={self.height}, minter={self.minter.id})"

    @property
    def is_genesis(self) -> bool:
        return self.parent is None

    def block_at_height(self, height: int) -> Block | None:
        """Walk back to the ancestor at ``height``; None if out of range."""
        if height < 0 or height > self.height:
            return None
        block: Block | None = self
        while block is not None and block.height > height:
            block = block.parent
        return block

    def is_on_same_chain_as(self, other: Block) -> bool:
        """True if one block is an ancestor of (or equal to) the other."""
        if self.height > other.height:
            return self.block_at_height(other.height) is other
        return other.block_at_height(self.height) is self


@dataclass(frozen=True, eq=False)
class ProofOfWorkBlock(Block):
    """Block carrying proof-of-work difficulty.

    ``next_difficulty`` is the difficulty required of a child; the consensus
    strategy computes it and passes it in so the block stays agnostic of the
    retarget rule.
    """

    difficulty: int = 0
    next_difficulty: int = 0
    total_difficulty: int = field(init=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        parent_total = 0
        if isinstance(self.parent, ProofOfWorkBlock):
            parent_total = self.parent.total_difficulty
        object.__setattr__(self, "total_difficulty", parent_total + self.difficulty)
