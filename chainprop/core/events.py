"""Event payloads and the scheduled event envelope."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chainprop.core.types import NodeId

# Framing overhead added to every relayed message, in bytes
MESSAGE_OVERHEAD = 8


@dataclass
class Message:
    """Payload relayed from one node to a neighbor over the Network.

    The delivery delay depends on both endpoints' regions and on
    ``size_bytes``.
    """

    sender: NodeId

    @property
    def size_bytes(self) -> int:
        return MESSAGE_OVERHEAD


@dataclass
class Command:
    """Payload a node schedules for itself, such as a minting attempt.

    Commands never cross the network; they fire at the node that scheduled
    them.
    """


EventPayload = Message | Command


@dataclass(order=True)
class Event:
    """A payload bound to a virtual time and a target node.

    The queue orders events by ``(timestamp, sequence)``. ``Simulator.schedule``
    stamps the sequence from its insertion counter, so events due at the same
    time fire in the order they were scheduled.
    """

    timestamp: int
    target_id: NodeId = field(compare=False)
    payload: EventPayload = field(compare=False)
    sequence: int = 0
