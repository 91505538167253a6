"""Commands for local simulation events (not transmitted over network).

Commands are local events that actors send to themselves. Unlike Messages,
Commands are never transmitted over the network.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from chainprop.core.events import Command

if TYPE_CHECKING:
    from chainprop.actors.node import Node
    from chainprop.chain.block import Block

__all__ = ["Command", "MintingTask"]


@dataclass
class MintingTask(Command):
    """A pending attempt by ``minter`` to extend ``parent``.

    The task carries the parent it was computed against. It is never
    cancelled: when it fires, the block it produces goes through the same
    validation as any received block.
    """

    minter: Node = field(repr=False)
    parent: Block = field(repr=False)
    interval: int
    difficulty: int
    valid_flag: bool = True  # Whether the minter was designated for this height
