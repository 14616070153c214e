from __future__ import annotations

from typing import Iterable, Protocol

from .models import Direction, LineageEdge, LineageVertex


class LineageStore(Protocol):
    """Traversal source over the persisted lineage graph."""

    def find_vertex(self, node_id: str) -> LineageVertex | None: ...

    def adjacent(
        self, node_id: str, labels: Iterable[str], direction: Direction
    ) -> list[tuple[LineageEdge, LineageVertex]]:
        """Edges with one of `labels` incident to `node_id`, paired with the vertex at the far end.

        Direction.IN returns edges ending at `node_id`, Direction.OUT edges
        starting at it, Direction.BOTH both.
        """
        ...
