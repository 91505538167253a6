"""Network component for block delivery with latency modeling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from chainprop.config import Region
from chainprop.core.events import Event

if TYPE_CHECKING:
    from chainprop.core.events import Message
    from chainprop.core.simulator import Simulator
    from chainprop.core.types import NodeId


@dataclass(frozen=True)
class LatencyParams:
    """Parameters for modeling network latency between regions."""

    base_ms: float  # Base one-way delay in milliseconds
    jitter_ratio: float  # Standard deviation as fraction of base


@dataclass(frozen=True)
class Bandwidth:
    """Per-region link capacity in bits per second."""

    upload_bps: int
    download_bps: int


_R = Region

# Mean one-way latency between regions in ms (Bitcoin 2019 measurements)
_LATENCY_MS: dict[Region, tuple[float, ...]] = {
    _R.NORTH_AMERICA: (32, 124, 184, 198, 151, 189),
    _R.EUROPE: (124, 11, 227, 237, 252, 294),
    _R.SOUTH_AMERICA: (184, 227, 88, 325, 301, 322),
    _R.ASIA_PACIFIC: (198, 237, 325, 85, 58, 198),
    _R.JAPAN: (151, 252, 301, 58, 12, 126),
    _R.AUSTRALIA: (189, 294, 322, 198, 126, 16),
}

# Default latency matrix (one-way delay)
LATENCY_DEFAULTS: dict[tuple[Region, Region], LatencyParams] = {
    (from_, to): LatencyParams(base_ms, 0.15 if from_ != to else 0.1)
    for from_, row in _LATENCY_MS.items()
    for to, base_ms in zip(Region, row, strict=True)
}

BANDWIDTH_DEFAULTS: dict[Region, Bandwidth] = {
    _R.NORTH_AMERICA: Bandwidth(upload_bps=19_200_000, download_bps=52_000_000),
    _R.EUROPE: Bandwidth(upload_bps=20_700_000, download_bps=40_000_000),
    _R.SOUTH_AMERICA: Bandwidth(upload_bps=5_800_000, download_bps=18_000_000),
    _R.ASIA_PACIFIC: Bandwidth(upload_bps=15_700_000, download_bps=22_800_000),
    _R.JAPAN: Bandwidth(upload_bps=10_200_000, download_bps=22_800_000),
    _R.AUSTRALIA: Bandwidth(upload_bps=11_300_000, download_bps=29_900_000),
}


class Network:
    """Network component that handles message delivery with realistic latency.

    Actors call network.deliver() to send messages. Delay is calculated based on:
    - Base latency between regions
    - Random jitter
    - Transmission time based on message size and the narrower of the
      sender's upload and the receiver's download bandwidth
    """

    def __init__(
        self,
        simulator: Simulator,
        latency_matrix: dict[tuple[Region, Region], LatencyParams] | None = None,
        bandwidths: dict[Region, Bandwidth] | None = None,
    ) -> None:
        self._simulator = simulator
        self._latency_matrix = latency_matrix or LATENCY_DEFAULTS
        self._bandwidths = bandwidths or BANDWIDTH_DEFAULTS

        self._node_regions: dict[NodeId, Region] = {}

        # Statistics
        self._messages_delivered: int = 0
        self._total_bytes: int = 0

    def register_node(self, node_id: NodeId, region: Region) -> None:
        self._node_regions[node_id] = region

    def unregister_node(self, node_id: NodeId) -> None:
        self._node_regions.pop(node_id, None)

    def deliver(self, msg: Message, from_: NodeId, to: NodeId) -> None:
        """Schedule message delivery with calculated delay."""
        delay = self.delay(from_, to, msg.size_bytes)

        self._simulator.schedule(
            Event(
                timestamp=self._simulator.current_time + delay,
                target_id=to,
                payload=msg,
            )
        )

        self._messages_delivered += 1
        self._total_bytes += msg.size_bytes

    def delay(self, from_: NodeId, to: NodeId, size_bytes: int) -> int:
        """Delay in ms = base latency + jitter + transmission time, at least 1."""
        from_region = self._node_regions.get(from_, Region.NORTH_AMERICA)
        to_region = self._node_regions.get(to, Region.NORTH_AMERICA)

        params = self._latency_matrix.get(
            (from_region, to_region),
            LatencyParams(150, 0.15),  # Default fallback
        )

        # Jitter (Gaussian)
        jitter = self._simulator.rng.gauss(0, params.base_ms * params.jitter_ratio)

        # Transmission time
        upload = self._bandwidths[from_region].upload_bps
        download = self._bandwidths[to_region].download_bps
        transmission = size_bytes * 8 * 1000 / min(upload, download)

        return max(1, round(params.base_ms + jitter + transmission))

    @property
    def messages_delivered(self) -> int:
        return self._messages_delivered

    @property
    def total_bytes(self) -> int:
        return self._total_bytes
