"""Core simulation infrastructure."""

from chainprop.core.actor import Actor
from chainprop.core.events import Command, Event, EventPayload, Message
from chainprop.core.network import Bandwidth, LatencyParams, Network
from chainprop.core.simulator import Simulator
from chainprop.core.topology import NodeSpec, Topology, build_topology
from chainprop.core.types import NodeId

__all__ = [
    "Actor",
    "Bandwidth",
    "Command",
    "Event",
    "EventPayload",
    "LatencyParams",
    "Message",
    "Network",
    "NodeId",
    "NodeSpec",
    "Simulator",
    "Topology",
    "build_topology",
]
