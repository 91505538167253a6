"""Actor base class: a network participant driven by the simulator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from chainprop.core.events import Event

if TYPE_CHECKING:
    from chainprop.core.events import Command, EventPayload, Message
    from chainprop.core.simulator import Simulator
    from chainprop.core.types import NodeId


class Actor(ABC):
    """A participant in the peer-to-peer network.

    The simulator calls ``on_event`` for every event addressed to the actor.
    Actors reach their neighbors only through the Network and drive their
    own timers, such as minting attempts, by scheduling commands.
    """

    def __init__(self, actor_id: NodeId, simulator: Simulator) -> None:
        if actor_id < 1:
            raise ValueError(f"Node id must be positive, got {actor_id}")
        self._id = actor_id
        self._simulator = simulator
        self._neighbors: set[NodeId] = set()

    @property
    def id(self) -> NodeId:
        return self._id

    @property
    def simulator(self) -> Simulator:
        return self._simulator

    @property
    def neighbors(self) -> set[NodeId]:
        return self._neighbors

    def add_neighbor(self, node_id: NodeId) -> None:
        if node_id == self._id:
            raise ValueError(f"Node {node_id} cannot be its own neighbor")
        self._neighbors.add(node_id)

    def remove_neighbor(self, node_id: NodeId) -> None:
        self._neighbors.discard(node_id)

    @abstractmethod
    def on_event(self, payload: EventPayload) -> None:
        """Single entrypoint for all events. Dispatch based on payload type."""
        ...

    def send(self, msg: Message, to: NodeId) -> None:
        """Send a message to another node via the network."""
        self._simulator.network.deliver(msg, self._id, to)

    def broadcast(self, msg: Message) -> None:
        """Send ``msg`` to every neighbor, lowest id first."""
        for neighbor_id in sorted(self._neighbors):
            self.send(msg, neighbor_id)

    def schedule_command(self, delay: int, command: Command) -> Event:
        """Schedule a self-targeted command ``delay`` ms from now."""
        if delay < 1:
            raise ValueError(f"Command delay must be a positive integer, got {delay}")
        event = Event(
            timestamp=self._simulator.current_time + delay,
            target_id=self._id,
            payload=command,
        )
        self._simulator.schedule(event)
        return event
