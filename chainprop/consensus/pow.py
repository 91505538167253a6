"""Proof-of-Work consensus."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from chainprop.chain.block import ProofOfWorkBlock
from chainprop.config import MintingPolicy
from chainprop.consensus.base import ConsensusAlgorithm
from chainprop.protocol.commands import MintingTask

if TYPE_CHECKING:
    from chainprop.chain.block import Block
    from chainprop.config import SimulationConfig

# Bounds on a single retarget step
MAX_RETARGET_FACTOR = 4


class ProofOfWork(ConsensusAlgorithm):
    """Proof-of-Work with greatest-total-difficulty fork choice.

    Mining time is not derived from hashing. Under ``ROUND_ROBIN`` one node
    per height is designated and mines after ``designated_interval`` while
    everyone else needs ``default_interval``. Under ``EXPONENTIAL`` each node
    draws an exponential time-to-mine scaled by difficulty over its mining
    power.
    """

    @property
    def config(self) -> SimulationConfig:
        return self.node.simulator.config

    def mint(self) -> MintingTask | None:
        parent = self.node.block
        if not isinstance(parent, ProofOfWorkBlock):
            return None

        difficulty = parent.next_difficulty

        match self.config.minting_policy:
            case MintingPolicy.ROUND_ROBIN:
                designated = self.is_designated(parent)
                interval = (
                    self.config.designated_interval
                    if designated
                    else self.config.default_interval
                )
            case MintingPolicy.EXPONENTIAL:
                designated = True
                interval = self._exponential_interval(difficulty)

        return MintingTask(
            minter=self.node,
            parent=parent,
            interval=interval,
            difficulty=difficulty,
            valid_flag=designated,
        )

    def is_designated(self, parent: Block) -> bool:
        """Round-robin slot: node ``k`` (1-based) mines heights ``k-1 mod N``."""
        return parent.height % self.config.node_count == self.node.id - 1

    def _exponential_interval(self, difficulty: int) -> int:
        u = self.node.simulator.rng.random()
        interval = -math.log(1 - u) * difficulty / self.node.mining_power
        return max(1, int(interval))

    def build_block(self, task: MintingTask) -> ProofOfWorkBlock:
        parent = task.parent
        if not isinstance(parent, ProofOfWorkBlock):
            raise TypeError(f"Cannot mint proof-of-work block on {parent}")
        timestamp = self.node.simulator.current_time
        return ProofOfWorkBlock(
            parent=parent,
            minter=task.minter,
            timestamp=timestamp,
            difficulty=task.difficulty,
            next_difficulty=self.next_difficulty(parent, task.difficulty, timestamp),
        )

    def next_difficulty(self, parent: ProofOfWorkBlock, difficulty: int, timestamp: int) -> int:
        """Difficulty required of the child of a new block on ``parent``.

        Constant unless ``retarget_window`` is set; then every ``window``
        heights it is scaled by expected over observed elapsed time, within
        a factor of MAX_RETARGET_FACTOR.
        """
        window = self.config.retarget_window
        height = parent.height + 1
        if window == 0 or height % window != 0:
            return parent.next_difficulty

        anchor = parent.block_at_height(height - window)
        if anchor is None:
            raise ValueError(f"No ancestor of {parent} at height {height - window}")
        elapsed = max(1, timestamp - anchor.timestamp)
        adjusted = difficulty * window * self.config.target_interval // elapsed

        lower = max(1, difficulty // MAX_RETARGET_FACTOR)
        upper = difficulty * MAX_RETARGET_FACTOR
        return min(max(adjusted, lower), upper)

    def validate(self, received: Block, current: Block | None) -> bool:
        if not isinstance(received, ProofOfWorkBlock):
            return False

        parent = received.parent
        if parent is not None:
            if not isinstance(parent, ProofOfWorkBlock):
                return False
            if received.difficulty < parent.next_difficulty:
                return False

        if current is None:
            return True
        # Ties keep the incumbent
        return (
            isinstance(current, ProofOfWorkBlock)
            and received.total_difficulty > current.total_difficulty
        )

    def genesis(self) -> ProofOfWorkBlock:
        simulator = self.node.simulator
        return ProofOfWorkBlock(
            parent=None,
            minter=self.node,
            timestamp=simulator.current_time,
            difficulty=0,
            next_difficulty=max(1, simulator.total_mining_power() * self.config.target_interval),
        )
