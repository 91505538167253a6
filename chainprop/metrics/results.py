"""Aggregated propagation results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import TextIO

    from chainprop.core.types import NodeId


@dataclass
class PropagationMatrix:
    """Average propagation time from each minter (row) to each node (column).

    Rows follow node registration order. A node that never had a minted block
    folded has an empty row: its averages are missing, not zero.
    """

    node_ids: list[NodeId]
    rows: list[list[int]] = field(default_factory=list)

    def average(self, minter_id: NodeId, target_id: NodeId) -> int | None:
        row = self.rows[self.node_ids.index(minter_id)]
        if not row:
            return None
        return row[self.node_ids.index(target_id)]

    def to_text(self) -> str:
        """One line per row, each value followed by a single space."""
        return "".join("".join(f"{value} " for value in row) + "\n" for row in self.rows)

    def write(self, stream: TextIO) -> None:
        stream.write(self.to_text())
        stream.flush()
