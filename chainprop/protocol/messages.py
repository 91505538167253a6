"""Network message types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from chainprop.core.events import MESSAGE_OVERHEAD, Message

if TYPE_CHECKING:
    from chainprop.chain.block import Block


@dataclass
class BlockMessage(Message):
    """Full block relayed from a node to one of its neighbors."""

    block: Block = field(repr=False)
    block_size: int = 0

    @property
    def size_bytes(self) -> int:
        return MESSAGE_OVERHEAD + self.block_size
