"""Node actor: holds a chain head and reacts to minted and relayed blocks."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeAlias

from chainprop.consensus.pow import ProofOfWork
from chainprop.core.actor import Actor
from chainprop.core.events import EventPayload, Message
from chainprop.protocol.commands import MintingTask
from chainprop.protocol.messages import BlockMessage

if TYPE_CHECKING:
    from chainprop.chain.block import Block
    from chainprop.config import Region
    from chainprop.consensus.base import ConsensusAlgorithm
    from chainprop.core.simulator import Simulator
    from chainprop.core.types import NodeId

logger = logging.getLogger(__name__)

ConsensusFactory: TypeAlias = "Callable[[Node], ConsensusAlgorithm]"


class Node(Actor):
    """A network participant.

    The only modeled state is "awaiting mint": after every adopted block the
    node schedules one minting task against its new head. Tasks computed
    against an older head are left in the queue; when they fire, the block
    they produce is validated against the head at that time like any other.
    """

    def __init__(
        self,
        node_id: NodeId,
        simulator: Simulator,
        region: Region,
        mining_power: int,
        consensus_factory: ConsensusFactory = ProofOfWork,
    ) -> None:
        super().__init__(node_id, simulator)
        self._region = region
        self._mining_power = mining_power
        self._consensus = consensus_factory(self)

        self._block: Block | None = None
        self._orphans: set[Block] = set()
        self._minting_task: MintingTask | None = None

        # Propagation statistics for blocks this node minted
        self._mint_count: int = 0
        self._propagation_time: dict[NodeId, int] = defaultdict(int)

    @property
    def region(self) -> Region:
        return self._region

    @property
    def mining_power(self) -> int:
        return self._mining_power

    @property
    def consensus(self) -> ConsensusAlgorithm:
        return self._consensus

    @property
    def block(self) -> Block | None:
        """Current head of this node's best chain."""
        return self._block

    @property
    def orphans(self) -> set[Block]:
        return self._orphans

    @property
    def minting_task(self) -> MintingTask | None:
        """Most recently scheduled minting task."""
        return self._minting_task

    @property
    def mint_count(self) -> int:
        return self._mint_count

    def propagation_time(self, target_id: NodeId) -> int:
        """Accumulated propagation time from this node to ``target_id``."""
        return self._propagation_time.get(target_id, 0)

    def on_event(self, payload: EventPayload) -> None:
        """Dispatch events to appropriate handlers."""
        match payload:
            case MintingTask() as task:
                self._handle_minting_task(task)
            case BlockMessage() as msg:
                self.receive_block(msg.block)
            case Message():
                pass  # Unknown message type

    def genesis_block(self) -> None:
        """Create the genesis block and adopt it, relaying it to neighbors."""
        self.receive_block(self._consensus.genesis())

    def receive_block(self, block: Block) -> bool:
        """Adopt ``block`` if the consensus strategy prefers it to the head.

        Returns whether the block was adopted. Rejection is the normal
        outcome of a lost race and has no side effects.
        """
        if not self._consensus.validate(block, self._block):
            return False

        if self._block is not None and not self._block.is_on_same_chain_as(block):
            logger.debug(
                "node %d switches from %s to %s", self._id, self._block, block
            )
            self._add_orphans(self._block, block)

        self._block = block
        self._simulator.on_block_arrival(block, self)
        self.mint()
        self.broadcast(
            BlockMessage(
                sender=self._id,
                block=block,
                block_size=self._simulator.config.block_size,
            )
        )
        return True

    def mint(self) -> None:
        """Schedule the next minting attempt against the current head."""
        task = self._consensus.mint()
        self._minting_task = task
        if task is not None:
            self.schedule_command(task.interval, task)

    def record_propagation(self, target_id: NodeId, delay: int) -> None:
        self._propagation_time[target_id] += delay

    def increment_mint_count(self) -> None:
        self._mint_count += 1

    def _handle_minting_task(self, task: MintingTask) -> None:
        self.receive_block(self._consensus.build_block(task))

    def _add_orphans(self, orphan: Block | None, valid: Block | None) -> None:
        """Record blocks on the abandoned branch down to the common ancestor."""
        while orphan is not None and orphan is not valid:
            self._orphans.add(orphan)
            if valid is not None:
                self._orphans.discard(valid)

            if valid is None or orphan.height > valid.height:
                orphan = orphan.parent
            elif orphan.height == valid.height:
                orphan, valid = orphan.parent, valid.parent
            else:
                valid = valid.parent
