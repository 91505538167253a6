"""Shared pytest fixtures for chainprop tests."""

from collections.abc import Callable

import pytest

from chainprop.actors.node import Node
from chainprop.config import Region, SimulationConfig
from chainprop.core.network import Network
from chainprop.core.simulator import Simulator
from chainprop.core.types import NodeId


@pytest.fixture
def config() -> SimulationConfig:
    """Two-node configuration with default intervals."""
    return SimulationConfig(node_count=2, mesh_degree=1)


@pytest.fixture
def simulator(config: SimulationConfig) -> Simulator:
    """Create a fresh simulator with default seed."""
    return Simulator(seed=42, config=config)


@pytest.fixture
def simulator_with_network(simulator: Simulator) -> tuple[Simulator, Network]:
    """Create a simulator with network configured."""
    network = Network(simulator)
    simulator._network = network
    return simulator, network


@pytest.fixture
def make_node() -> Callable[..., Node]:
    """Factory that creates, registers and (when a network exists) attaches a node."""

    def factory(
        simulator: Simulator,
        node_id: int,
        mining_power: int = 1000,
        region: Region = Region.NORTH_AMERICA,
    ) -> Node:
        node = Node(NodeId(node_id), simulator, region=region, mining_power=mining_power)
        simulator.register_actor(node)
        if simulator._network is not None:
            simulator._network.register_node(node.id, region)
        return node

    return factory


@pytest.fixture
def connect() -> Callable[[Node, Node], None]:
    """Link two nodes as neighbors in both directions."""

    def factory(a: Node, b: Node) -> None:
        a.add_neighbor(b.id)
        b.add_neighbor(a.id)

    return factory
