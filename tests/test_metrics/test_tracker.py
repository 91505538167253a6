"""Tests for the PropagationTracker."""

import logging
from collections.abc import Callable

import pytest

from chainprop.actors.node import Node
from chainprop.chain.block import ProofOfWorkBlock
from chainprop.core.simulator import Simulator
from chainprop.core.types import NodeId
from chainprop.metrics.tracker import MAX_TRACKED_BLOCKS, PropagationTracker

NodeFactory = Callable[..., Node]


def chain_of(minter: Node, length: int) -> list[ProofOfWorkBlock]:
    """Genesis plus ``length`` blocks minted 100 ms apart."""
    blocks = [ProofOfWorkBlock(None, minter, 0, difficulty=0, next_difficulty=1)]
    for _ in range(length):
        parent = blocks[-1]
        blocks.append(
            ProofOfWorkBlock(parent, minter, parent.timestamp + 100, difficulty=1, next_difficulty=1)
        )
    return blocks


@pytest.fixture
def nodes(simulator: Simulator, make_node: NodeFactory) -> list[Node]:
    return [make_node(simulator, 1), make_node(simulator, 2)]


@pytest.fixture
def tracker(simulator: Simulator) -> PropagationTracker:
    return simulator.tracker


def at(simulator: Simulator, time: int) -> None:
    simulator._current_time = time


class TestOnArrival:
    def test_genesis_is_ignored(
        self, simulator: Simulator, tracker: PropagationTracker, nodes: list[Node]
    ) -> None:
        genesis = chain_of(nodes[0], 0)[0]

        tracker.on_arrival(genesis, nodes[0])

        assert tracker.tracked_count == 0
        assert tracker.blocks_observed == 0

    def test_records_delay_per_node(
        self, simulator: Simulator, tracker: PropagationTracker, nodes: list[Node]
    ) -> None:
        block = chain_of(nodes[0], 1)[1]

        at(simulator, 100)
        tracker.on_arrival(block, nodes[0])
        at(simulator, 350)
        tracker.on_arrival(block, nodes[1])

        record = tracker.records[block]
        assert record.arrivals == {NodeId(1): 0, NodeId(2): 250}
        assert list(record.arrivals) == [NodeId(1), NodeId(2)]

    def test_first_arrival_wins(
        self, simulator: Simulator, tracker: PropagationTracker, nodes: list[Node]
    ) -> None:
        block = chain_of(nodes[0], 1)[1]

        at(simulator, 150)
        tracker.on_arrival(block, nodes[1])
        at(simulator, 900)
        tracker.on_arrival(block, nodes[1])

        assert tracker.records[block].arrivals == {NodeId(2): 50}
        assert tracker.duplicate_arrivals == 1

    def test_window_is_bounded(
        self, simulator: Simulator, tracker: PropagationTracker, nodes: list[Node]
    ) -> None:
        blocks = chain_of(nodes[0], 30)[1:]

        for block in blocks:
            at(simulator, block.timestamp)
            tracker.on_arrival(block, nodes[0])
            assert tracker.tracked_count <= MAX_TRACKED_BLOCKS

        assert tracker.tracked_count == MAX_TRACKED_BLOCKS
        assert tracker.records_folded == 30 - MAX_TRACKED_BLOCKS

    def test_eleventh_block_evicts_first(
        self, simulator: Simulator, tracker: PropagationTracker, nodes: list[Node]
    ) -> None:
        """The 11th distinct block folds the 1st into its minter's totals."""
        minter, observer = nodes
        blocks = chain_of(minter, 11)[1:]

        for block in blocks[:10]:
            at(simulator, block.timestamp + 40)
            tracker.on_arrival(block, observer)
        assert minter.mint_count == 0

        at(simulator, blocks[10].timestamp)
        tracker.on_arrival(blocks[10], observer)

        assert minter.mint_count == 1
        assert minter.propagation_time(observer.id) == 40
        assert blocks[0] not in tracker.records
        assert list(tracker.records) == blocks[1:]

    def test_reappearing_block_is_counted(
        self, simulator: Simulator, tracker: PropagationTracker, nodes: list[Node]
    ) -> None:
        blocks = chain_of(nodes[0], 11)[1:]
        for block in blocks:
            tracker.on_arrival(block, nodes[0])

        tracker.on_arrival(blocks[0], nodes[1])

        assert tracker.reappeared_blocks == 1
        assert blocks[0] in tracker.records


class TestFlushAll:
    def test_flush_folds_everything(
        self, simulator: Simulator, tracker: PropagationTracker, nodes: list[Node]
    ) -> None:
        """Every non-genesis block observed ends up counted exactly once."""
        first, second = nodes
        blocks = chain_of(first, 7)[1:] + chain_of(second, 8)[1:]
        for block in blocks:
            at(simulator, block.timestamp + 10)
            tracker.on_arrival(block, first)

        tracker.flush_all()

        assert tracker.tracked_count == 0
        assert first.mint_count + second.mint_count == len(blocks)
        assert first.mint_count == 7
        assert second.mint_count == 8
        assert first.propagation_time(first.id) == 70

    def test_flush_on_empty_window(self, tracker: PropagationTracker) -> None:
        tracker.flush_all()

        assert tracker.records_folded == 0

    def test_partial_records_are_folded_by_default(
        self, simulator: Simulator, tracker: PropagationTracker, nodes: list[Node]
    ) -> None:
        block = chain_of(nodes[0], 1)[1]
        tracker.on_arrival(block, nodes[0])

        tracker.flush_all()

        assert nodes[0].mint_count == 1
        assert tracker.discarded_records == 0

    def test_full_coverage_required(self, simulator: Simulator, nodes: list[Node]) -> None:
        tracker = PropagationTracker(simulator=simulator, require_full_coverage=True)
        for node in nodes:
            tracker.register_node(node.id)
        partial, full = chain_of(nodes[0], 2)[1:]

        tracker.on_arrival(partial, nodes[0])
        tracker.on_arrival(full, nodes[0])
        tracker.on_arrival(full, nodes[1])
        tracker.flush_all()

        assert tracker.discarded_records == 1
        assert tracker.records_folded == 1
        assert nodes[0].mint_count == 1


class TestDiagnostics:
    def test_logs_every_hundredth_full_block(
        self,
        simulator: Simulator,
        tracker: PropagationTracker,
        nodes: list[Node],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        blocks = chain_of(nodes[0], 100)
        for block in blocks[99:]:
            for node in nodes:
                tracker.on_arrival(block, node)

        with caplog.at_level(logging.INFO, logger="chainprop.metrics.tracker"):
            tracker.flush_all()

        assert caplog.messages == ["ProofOfWorkBlock(height=100, minter=1):100"]

    def test_partial_block_is_not_logged(
        self,
        simulator: Simulator,
        tracker: PropagationTracker,
        nodes: list[Node],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        tracker.on_arrival(chain_of(nodes[0], 100)[100], nodes[0])

        with caplog.at_level(logging.INFO, logger="chainprop.metrics.tracker"):
            tracker.flush_all()

        assert caplog.messages == []


class TestPropagationMatrix:
    def test_averages_per_minter(
        self, simulator: Simulator, tracker: PropagationTracker, nodes: list[Node]
    ) -> None:
        minter, other = nodes
        blocks = chain_of(minter, 2)[1:]
        delays = [(10, 31), (20, 40)]
        for block, (own, remote) in zip(blocks, delays, strict=True):
            at(simulator, block.timestamp + own)
            tracker.on_arrival(block, minter)
            at(simulator, block.timestamp + remote)
            tracker.on_arrival(block, other)
        tracker.flush_all()

        matrix = simulator.propagation_matrix()

        assert matrix.node_ids == [NodeId(1), NodeId(2)]
        assert matrix.rows == [[15, 35], []]
        assert matrix.average(NodeId(1), NodeId(2)) == 35
        assert matrix.average(NodeId(2), NodeId(1)) is None

    def test_text_output_is_square_with_missing_rows(
        self, simulator: Simulator, tracker: PropagationTracker, nodes: list[Node]
    ) -> None:
        block = chain_of(nodes[1], 1)[1]
        at(simulator, block.timestamp + 5)
        tracker.on_arrival(block, nodes[0])
        tracker.on_arrival(block, nodes[1])
        tracker.flush_all()

        text = simulator.propagation_matrix().to_text()

        assert text == "\n5 5 \n"
