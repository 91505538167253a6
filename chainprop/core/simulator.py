"""Discrete event simulation engine."""

from __future__ import annotations

import heapq
from itertools import count
from random import Random
from typing import TYPE_CHECKING, TypeVar

from chainprop.core.events import Event
from chainprop.metrics.tracker import PropagationTracker

if TYPE_CHECKING:
    from chainprop.actors.node import Node
    from chainprop.chain.block import Block
    from chainprop.config import SimulationConfig
    from chainprop.core.actor import Actor
    from chainprop.core.network import Network
    from chainprop.core.topology import Topology
    from chainprop.core.types import NodeId
    from chainprop.metrics.results import PropagationMatrix

ActorT = TypeVar("ActorT", bound="Actor")


class Simulator:
    """Single-threaded, deterministic discrete event simulator.

    Uses a min-heap priority queue for event scheduling and processing. Ties
    on timestamp are broken by insertion order. All randomness is derived
    from a seeded RNG for reproducibility.

    The simulator is also the per-run context: it owns the node registry and
    the propagation tracker, so several simulations can coexist in one
    process.
    """

    def __init__(self, seed: int | None = None, config: SimulationConfig | None = None) -> None:
        """An explicit ``seed`` overrides ``config.seed`` for the RNG."""
        from chainprop.config import SimulationConfig

        if config is None:
            config = SimulationConfig() if seed is None else SimulationConfig(seed=seed)
        self._config = config
        self._current_time: int = 0
        self._event_queue: list[Event] = []
        self._sequence = count()
        self._actors: dict[NodeId, Actor] = {}
        self._rng = Random(config.seed if seed is None else seed)
        self._events_processed: int = 0
        self._max_height: int = 0

        self._tracker = PropagationTracker(
            simulator=self,
            require_full_coverage=self._config.require_full_coverage,
        )
        self._network: Network | None = None
        self._topology: Topology | None = None

    @property
    def current_time(self) -> int:
        return self._current_time

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def rng(self) -> Random:
        return self._rng

    @property
    def actors(self) -> dict[NodeId, Actor]:
        return self._actors

    def actors_by_type(self, actor_type: type[ActorT]) -> list[ActorT]:
        return [actor for actor in self._actors.values() if isinstance(actor, actor_type)]

    @property
    def events_processed(self) -> int:
        return self._events_processed

    @property
    def max_height(self) -> int:
        """Greatest block height adopted by any node so far."""
        return self._max_height

    @property
    def nodes(self) -> list[Node]:
        """Registered nodes in registration order."""
        from chainprop.actors.node import Node

        return self.actors_by_type(Node)

    @property
    def tracker(self) -> PropagationTracker:
        return self._tracker

    @property
    def network(self) -> Network:
        if self._network is None:
            raise RuntimeError("Simulator not configured with network")
        return self._network

    @property
    def topology(self) -> Topology:
        if self._topology is None:
            raise RuntimeError("Simulator not configured with topology")
        return self._topology

    def total_mining_power(self) -> int:
        return sum(node.mining_power for node in self.nodes)

    def register_actor(self, actor: Actor) -> None:
        if actor.id in self._actors:
            raise ValueError(f"Actor {actor.id} already registered")
        self._actors[actor.id] = actor
        self._tracker.register_node(actor.id)

    def unregister_actor(self, actor_id: NodeId) -> None:
        """Remove an actor, its links from every remaining actor, and its queued events."""
        if actor_id not in self._actors:
            raise ValueError(f"Actor {actor_id} not registered")
        del self._actors[actor_id]
        for actor in self._actors.values():
            actor.remove_neighbor(actor_id)
        if self._network is not None:
            self._network.unregister_node(actor_id)
        self._tracker.unregister_node(actor_id)
        self._event_queue = [e for e in self._event_queue if e.target_id != actor_id]
        heapq.heapify(self._event_queue)

    def schedule(self, event: Event) -> None:
        event.sequence = next(self._sequence)
        heapq.heappush(self._event_queue, event)

    def step(self) -> Event | None:
        """Process the earliest pending event. Returns None once the queue is empty."""
        if not self._event_queue:
            return None

        event = heapq.heappop(self._event_queue)
        # Callers compute timestamps from current_time; never move the clock back
        self._current_time = max(self._current_time, event.timestamp)
        self._dispatch_event(event)
        self._events_processed += 1
        return event

    def run(self, until: int) -> None:
        while self._event_queue and self._current_time < until:
            # Don't process events beyond our target time
            if self._event_queue[0].timestamp > until:
                break
            self.step()

    def run_until_empty(self) -> None:
        while self.step() is not None:
            pass

    def run_until_height(self, height: int) -> None:
        """Run until a minting task on top of ``height`` is about to fire.

        Blocks at ``height`` finish propagating before the run stops, so none
        of them is left seen by its minter alone. The run also ends when the
        queue drains.
        """
        from chainprop.protocol.commands import MintingTask

        while self._event_queue:
            match self._event_queue[0].payload:
                case MintingTask(parent=parent) if parent.height >= height:
                    break
            self.step()

    def _dispatch_event(self, event: Event) -> None:
        if event.target_id not in self._actors:
            raise RuntimeError(f"Event targeted unknown actor: {event.target_id}")
        actor = self._actors[event.target_id]
        actor.on_event(event.payload)

    def pending_event_count(self) -> int:
        return len(self._event_queue)

    def on_block_arrival(self, block: Block, node: Node) -> None:
        """Arrival hook invoked by nodes whenever they adopt a new head."""
        self._max_height = max(self._max_height, block.height)
        self._tracker.on_arrival(block, node)

    def propagation_matrix(self) -> PropagationMatrix:
        return self._tracker.propagation_matrix(self.nodes)

    @classmethod
    def build(cls, config: SimulationConfig | None = None) -> Simulator:
        """Build a fully configured simulator.

        Creates the network and all nodes, assigns regions and mining power
        from the generated topology, establishes neighbor links and registers
        everything with the simulator.
        """
        from chainprop.actors.node import Node
        from chainprop.config import SimulationConfig
        from chainprop.consensus.pow import ProofOfWork
        from chainprop.core.network import Network
        from chainprop.core.topology import build_topology

        if config is None:
            config = SimulationConfig()

        simulator = cls(config=config)
        network = Network(simulator=simulator)

        topology = build_topology(config, simulator.rng)

        for node_id, spec in topology.nodes.items():
            node = Node(
                node_id=node_id,
                simulator=simulator,
                region=spec.region,
                mining_power=spec.mining_power,
                consensus_factory=ProofOfWork,
            )
            simulator.register_actor(node)
            network.register_node(node_id, spec.region)

        for node_a_id, node_b_id in topology.edges:
            node_a = simulator.actors.get(node_a_id)
            node_b = simulator.actors.get(node_b_id)

            if isinstance(node_a, Node) and isinstance(node_b, Node):
                node_a.add_neighbor(node_b_id)
                node_b.add_neighbor(node_a_id)

        simulator._network = network
        simulator._topology = topology

        return simulator
