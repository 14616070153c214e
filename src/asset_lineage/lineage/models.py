from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Scope(str, Enum):
    """Traversal patterns a lineage query can ask for."""

    SOURCE_AND_DESTINATION = "SOURCE_AND_DESTINATION"
    END_TO_END = "END_TO_END"
    ULTIMATE_SOURCE = "ULTIMATE_SOURCE"
    ULTIMATE_DESTINATION = "ULTIMATE_DESTINATION"
    GLOSSARY = "GLOSSARY"


class View(str, Enum):
    """Granularity of data-flow lineage; each view follows its own edge label."""

    TABLE_VIEW = "TABLE_VIEW"
    COLUMN_VIEW = "COLUMN_VIEW"


class Direction(str, Enum):
    IN = "in"
    OUT = "out"
    BOTH = "both"


@dataclass(frozen=True, slots=True)
class LineageVertex:
    node_id: str
    display_name: str
    type_label: str
    is_process: bool = False
    properties: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "node_id": self.node_id,
            "display_name": self.display_name,
            "type_label": self.type_label,
            "is_process": self.is_process,
            "properties": self.properties,
        }


@dataclass(frozen=True, slots=True)
class LineageEdge:
    """A directed lineage edge. Without an `edge_id`, identity is (source, destination, label)."""

    source_id: str
    destination_id: str
    label: str
    edge_id: str | None = None

    @property
    def key(self) -> tuple[str, ...]:
        if self.edge_id is not None:
            return (self.edge_id,)
        return (self.source_id, self.destination_id, self.label)

    def touches(self, node_ids: set[str] | frozenset[str]) -> bool:
        return self.source_id in node_ids or self.destination_id in node_ids

    def to_dict(self) -> dict[str, Any]:
        return {
            "edge_id": self.edge_id,
            "source_id": self.source_id,
            "destination_id": self.destination_id,
            "label": self.label,
        }


@dataclass(slots=True)
class LineageResult:
    """Vertices and edges selected by a lineage query.

    Traversals only add vertices as endpoints of edges, so a query that
    reaches nothing yields an empty result. Filters never leave an edge whose
    endpoint was removed. `terminal_ids` is filled by the ULTIMATE_* scopes
    only.
    """

    vertices: dict[str, LineageVertex] = field(default_factory=dict)
    edges: dict[tuple[str, ...], LineageEdge] = field(default_factory=dict)
    terminal_ids: set[str] = field(default_factory=set)

    def add(self, edge: LineageEdge, source: LineageVertex, destination: LineageVertex) -> None:
        self.vertices.setdefault(source.node_id, source)
        self.vertices.setdefault(destination.node_id, destination)
        self.edges.setdefault(edge.key, edge)

    def remove_vertices(self, node_ids: set[str]) -> None:
        """Drop the given vertices and every edge touching them."""
        if not node_ids:
            return
        for node_id in node_ids:
            self.vertices.pop(node_id, None)
        self.edges = {k: e for k, e in self.edges.items() if not e.touches(node_ids)}
        self.terminal_ids -= node_ids

    @property
    def is_empty(self) -> bool:
        return not self.vertices and not self.edges

    @property
    def terminals(self) -> list[LineageVertex]:
        return [self.vertices[n] for n in sorted(self.terminal_ids) if n in self.vertices]

    def sorted_vertices(self) -> list[LineageVertex]:
        return [self.vertices[k] for k in sorted(self.vertices)]

    def sorted_edges(self) -> list[LineageEdge]:
        return sorted(self.edges.values(), key=lambda e: (e.source_id, e.destination_id, e.label))

    def to_dict(self) -> dict[str, Any]:
        return {
            "vertices": [v.to_dict() for v in self.sorted_vertices()],
            "edges": [e.to_dict() for e in self.sorted_edges()],
            "terminal_ids": sorted(self.terminal_ids),
        }
