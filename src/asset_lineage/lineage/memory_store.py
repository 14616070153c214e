from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable

from .models import Direction, LineageEdge, LineageVertex

DEFAULT_PROCESS_LABELS = frozenset({"Process", "SubProcess"})


class InMemoryLineageStore:
    """Adjacency-list lineage graph kept in process memory.

    Used by tests, by the CLI with JSON graph files, and as a scratch target
    for exports from a real store.
    """

    def __init__(self) -> None:
        self.vertices: dict[str, LineageVertex] = {}
        self._out: dict[str, list[LineageEdge]] = defaultdict(list)
        self._in: dict[str, list[LineageEdge]] = defaultdict(list)

    def add_vertex(self, vertex: LineageVertex) -> None:
        self.vertices[vertex.node_id] = vertex

    def add_edge(self, edge: LineageEdge) -> None:
        for node_id in (edge.source_id, edge.destination_id):
            if node_id not in self.vertices:
                raise ValueError(f"edge {edge.key} references unknown vertex {node_id}")
        self._out[edge.source_id].append(edge)
        self._in[edge.destination_id].append(edge)

    def connect(self, source_id: str, destination_id: str, label: str) -> LineageEdge:
        edge = LineageEdge(source_id=source_id, destination_id=destination_id, label=label)
        self.add_edge(edge)
        return edge

    @property
    def edges(self) -> list[LineageEdge]:
        return [e for edges in self._out.values() for e in edges]

    def find_vertex(self, node_id: str) -> LineageVertex | None:
        return self.vertices.get(node_id)

    def adjacent(
        self, node_id: str, labels: Iterable[str], direction: Direction
    ) -> list[tuple[LineageEdge, LineageVertex]]:
        wanted = set(labels)
        out: list[tuple[LineageEdge, LineageVertex]] = []
        if direction in (Direction.IN, Direction.BOTH):
            out.extend((e, self.vertices[e.source_id]) for e in self._in.get(node_id, ()) if e.label in wanted)
        if direction in (Direction.OUT, Direction.BOTH):
            out.extend(
                (e, self.vertices[e.destination_id]) for e in self._out.get(node_id, ()) if e.label in wanted
            )
        return out

    def export(self) -> dict[str, Any]:
        """Whole graph as {"vertices": [...], "edges": [...]}, loadable by from_dict."""
        return {
            "vertices": [self.vertices[k].to_dict() for k in sorted(self.vertices)],
            "edges": [e.to_dict() for e in self.edges],
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], *, process_labels: Iterable[str] = DEFAULT_PROCESS_LABELS
    ) -> "InMemoryLineageStore":
        process_labels = frozenset(process_labels)
        store = cls()
        for v in data.get("vertices", []):
            type_label = v.get("type_label", "")
            store.add_vertex(
                LineageVertex(
                    node_id=v["node_id"],
                    display_name=v.get("display_name") or v["node_id"],
                    type_label=type_label,
                    is_process=bool(v.get("is_process", type_label in process_labels)),
                    properties=v.get("properties") or {},
                )
            )
        for e in data.get("edges", []):
            store.add_edge(
                LineageEdge(
                    source_id=e["source_id"],
                    destination_id=e["destination_id"],
                    label=e["label"],
                    edge_id=e.get("edge_id"),
                )
            )
        return store
