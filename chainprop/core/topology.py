"""Network topology generation: regions, mining power and neighbor links."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

import networkx as nx

from chainprop.core.types import NodeId

if TYPE_CHECKING:
    from random import Random

    from chainprop.config import Region, SimulationConfig


class NodeSpec(NamedTuple):
    """Static per-node attributes supplied to the core."""

    region: Region
    mining_power: int


class Topology(NamedTuple):
    """Network topology: node attributes and peer connections."""

    nodes: dict[NodeId, NodeSpec]
    edges: list[tuple[NodeId, NodeId]]


def build_topology(config: SimulationConfig, rng: Random) -> Topology:
    """Build network topology with region assignments and peer connections.

    Node ids run from 1 to ``node_count``.
    """
    nodes: dict[NodeId, NodeSpec] = {}
    for i in range(1, config.node_count + 1):
        region = _pick_region(config.region_distribution, rng)
        mining_power = _draw_mining_power(
            config.average_mining_power, config.stdev_mining_power, rng
        )
        nodes[NodeId(i)] = NodeSpec(region=region, mining_power=mining_power)

    edges = random_policy(list(nodes), config.mesh_degree, rng)
    return Topology(nodes=nodes, edges=edges)


def _pick_region(distribution: dict[Region, float], rng: Random) -> Region:
    """Pick a region from a weighted distribution."""
    regions = list(distribution)
    total = sum(distribution.values())

    r = rng.random() * total
    running = 0.0
    for region in regions:
        running += distribution[region]
        if r < running:
            return region
    return regions[-1]


def _draw_mining_power(average: int, stdev: int, rng: Random) -> int:
    """Normally distributed mining power, at least 1."""
    return max(1, round(rng.gauss(average, stdev)))


def random_policy(
    node_ids: list[NodeId],
    mesh_degree: int,
    rng: Random,
) -> list[tuple[NodeId, NodeId]]:
    """Each node picks mesh_degree random peers."""
    n = len(node_ids)
    if n < 2:
        return []

    if (n * mesh_degree) % 2 == 0 and mesh_degree < n:
        try:
            G = nx.random_regular_graph(mesh_degree, n, seed=rng.randint(0, 2**32 - 1))
            return [_normalize_edge(node_ids[u], node_ids[v]) for u, v in G.edges()]
        except nx.NetworkXError:
            pass

    edges: set[tuple[NodeId, NodeId]] = set()
    for i, node_id in enumerate(node_ids):
        candidates = [j for j in range(n) if j != i]
        targets = rng.sample(candidates, min(mesh_degree, len(candidates)))
        for j in targets:
            edges.add(_normalize_edge(node_id, node_ids[j]))

    return sorted(edges)


def _normalize_edge(a: NodeId, b: NodeId) -> tuple[NodeId, NodeId]:
    """Normalize edge to avoid duplicates (smaller ID first)."""
    return (a, b) if a < b else (b, a)
