"""Bounded tracking of in-flight block propagation."""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from weakref import WeakSet

from chainprop.metrics.results import PropagationMatrix

if TYPE_CHECKING:
    from chainprop.actors.node import Node
    from chainprop.chain.block import Block
    from chainprop.core.simulator import Simulator
    from chainprop.core.types import NodeId

logger = logging.getLogger(__name__)

# Blocks whose propagation is tracked at once; the next distinct block evicts the oldest
MAX_TRACKED_BLOCKS = 10

# Fully covered blocks at multiples of this height are logged
DIAGNOSTIC_HEIGHT_INTERVAL = 100


@dataclass
class PropagationRecord:
    """First-arrival delay of one block at each node, in arrival order."""

    block: Block
    arrivals: dict[NodeId, int] = field(default_factory=dict)


@dataclass
class PropagationTracker:
    """Collects per-node arrival delays and folds them into minter totals.

    At most ``max_tracked_blocks`` records are held. When a new block arrives
    with the window full, the oldest record is folded into its minter's
    counters before it is dropped, and ``flush_all`` folds whatever is left
    at the end of a run.
    """

    simulator: Simulator
    require_full_coverage: bool = False
    max_tracked_blocks: int = MAX_TRACKED_BLOCKS

    node_ids: list[NodeId] = field(default_factory=list)
    records: OrderedDict[Block, PropagationRecord] = field(default_factory=OrderedDict)

    # Data quality counters
    blocks_observed: int = 0
    records_folded: int = 0
    discarded_records: int = 0
    duplicate_arrivals: int = 0
    reappeared_blocks: int = 0

    _evicted: WeakSet[Block] = field(default_factory=WeakSet)

    def register_node(self, node_id: NodeId) -> None:
        if node_id not in self.node_ids:
            self.node_ids.append(node_id)

    def unregister_node(self, node_id: NodeId) -> None:
        if node_id in self.node_ids:
            self.node_ids.remove(node_id)

    @property
    def tracked_count(self) -> int:
        return len(self.records)

    def on_arrival(self, block: Block, node: Node) -> None:
        """Record that ``node`` adopted ``block`` at the current time."""
        if block.height == 0:
            return

        delay = self.simulator.current_time - block.timestamp

        record = self.records.get(block)
        if record is not None:
            if node.id in record.arrivals:
                self.duplicate_arrivals += 1
                logger.debug("duplicate arrival of %s at node %d ignored", block, node.id)
                return
            record.arrivals[node.id] = delay
            return

        if block in self._evicted:
            self.reappeared_blocks += 1
            logger.debug("%s arrived again after eviction", block)

        if len(self.records) >= self.max_tracked_blocks:
            _, oldest = self.records.popitem(last=False)
            self._fold(oldest)

        self.records[block] = PropagationRecord(block=block, arrivals={node.id: delay})
        self.blocks_observed += 1

    def flush_all(self) -> None:
        """Fold every tracked record, oldest first, and empty the window."""
        while self.records:
            _, record = self.records.popitem(last=False)
            self._fold(record)

    def is_qualifying(self, record: PropagationRecord) -> bool:
        """A record qualifies once every registered node has seen the block."""
        return len(record.arrivals) >= len(self.node_ids)

    def _fold(self, record: PropagationRecord) -> None:
        block = record.block
        self._evicted.add(block)

        if self.is_qualifying(record):
            if block.height % DIAGNOSTIC_HEIGHT_INTERVAL == 0:
                logger.info("%s:%d", block, block.height)
        elif self.require_full_coverage:
            self.discarded_records += 1
            logger.debug(
                "discarding %s seen by %d of %d nodes",
                block,
                len(record.arrivals),
                len(self.node_ids),
            )
            return

        minter = block.minter
        minter.increment_mint_count()
        for node_id, delay in record.arrivals.items():
            minter.record_propagation(node_id, delay)
        self.records_folded += 1

    def propagation_matrix(self, nodes: list[Node]) -> PropagationMatrix:
        """Average delay per (minter, target) pair, rows and columns in ``nodes`` order."""
        rows: list[list[int]] = []
        for minter in nodes:
            if minter.mint_count == 0:
                rows.append([])
                continue
            rows.append(
                [minter.propagation_time(target.id) // minter.mint_count for target in nodes]
            )
        return PropagationMatrix(node_ids=[node.id for node in nodes], rows=rows)
