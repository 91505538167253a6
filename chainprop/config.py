"""Simulation configuration."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


class Region(Enum):
    """Geographic regions for network latency modeling."""

    NORTH_AMERICA = auto()
    EUROPE = auto()
    SOUTH_AMERICA = auto()
    ASIA_PACIFIC = auto()
    JAPAN = auto()
    AUSTRALIA = auto()


class MintingPolicy(Enum):
    ROUND_ROBIN = auto()  # One designated minter per height, fixed intervals
    EXPONENTIAL = auto()  # Poisson race proportional to mining power


# Bitcoin node distribution by region (2019 measurements)
DEFAULT_REGION_DISTRIBUTION: dict[Region, float] = {
    Region.NORTH_AMERICA: 0.3316,
    Region.EUROPE: 0.4998,
    Region.SOUTH_AMERICA: 0.0090,
    Region.ASIA_PACIFIC: 0.1177,
    Region.JAPAN: 0.0224,
    Region.AUSTRALIA: 0.0195,
}


@dataclass(frozen=True)
class SimulationConfig:
    """Configuration for the block propagation simulation.

    All times are virtual milliseconds.
    """

    # Network topology
    node_count: int = 300
    mesh_degree: int = 8
    region_distribution: dict[Region, float] = field(
        default_factory=lambda: dict(DEFAULT_REGION_DISTRIBUTION)
    )

    # Mining
    average_mining_power: int = 400_000
    stdev_mining_power: int = 100_000
    target_interval: int = 1000 * 60 * 10  # 10 minutes
    retarget_window: int = 0  # 0 disables retargeting
    minting_policy: MintingPolicy = MintingPolicy.ROUND_ROBIN
    designated_interval: int = 10_000_000
    default_interval: int = 100_000_000

    # Blocks
    block_size: int = 535_000  # bytes
    end_block_height: int = 100

    # Measurement
    require_full_coverage: bool = False

    # Simulation parameters
    seed: int = 42

    def __post_init__(self) -> None:
        if self.node_count < 1:
            raise ValueError(f"node_count must be positive, got {self.node_count}")
        if self.node_count > 1 and not 0 < self.mesh_degree < self.node_count:
            raise ValueError(
                f"mesh_degree ({self.mesh_degree}) must be in [1, node_count - 1]"
            )
        for name in ("target_interval", "designated_interval", "default_interval"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.retarget_window < 0:
            raise ValueError(f"retarget_window must be >= 0, got {self.retarget_window}")

    @classmethod
    def from_toml(cls, path: Path) -> SimulationConfig:
        """Load a config from the ``[simulation]`` table of a TOML file.

        Unknown keys are rejected. ``minting_policy`` is given by name and
        ``region_distribution`` as a table of region name to weight.
        """
        import tomllib

        with path.open("rb") as f:
            data = tomllib.load(f)

        section = data.get("simulation", {})
        known = {f.name for f in fields(cls)}
        unknown = set(section) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        kwargs: dict[str, Any] = dict(section)
        if "minting_policy" in kwargs:
            kwargs["minting_policy"] = MintingPolicy[str(kwargs["minting_policy"]).upper()]
        if "region_distribution" in kwargs:
            kwargs["region_distribution"] = {
                Region[name.upper()]: float(weight)
                for name, weight in kwargs["region_distribution"].items()
            }

        return cls(**kwargs)
