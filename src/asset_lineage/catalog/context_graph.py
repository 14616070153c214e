from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .models import Entity, Relationship


@dataclass(frozen=True, slots=True)
class ContextEdge:
    source_guid: str
    destination_guid: str
    relationship_type: str
    relationship_guid: str


@dataclass(slots=True)
class ContextGraph:
    """Append-only graph of the entities and relationships around an asset.

    Owned by a single build. Edges may only join entities already present, and
    each relationship is recorded once, in the direction it was first reached.
    """

    entities: dict[str, Entity] = field(default_factory=dict)
    edges: list[ContextEdge] = field(default_factory=list)
    _relationship_guids: set[str] = field(default_factory=set, repr=False)

    def add_entity(self, entity: Entity) -> None:
        self.entities.setdefault(entity.guid, entity)

    def add_edge(self, edge: ContextEdge) -> bool:
        if edge.source_guid not in self.entities or edge.destination_guid not in self.entities:
            raise ValueError(
                f"edge {edge.relationship_guid} joins entities outside the graph: "
                f"{edge.source_guid} -> {edge.destination_guid}"
            )
        if edge.relationship_guid in self._relationship_guids:
            return False
        self._relationship_guids.add(edge.relationship_guid)
        self.edges.append(edge)
        return True

    def add_relationship(
        self, start: Entity, end: Entity, relationship: Relationship, *, change_direction: bool = False
    ) -> ContextEdge:
        """Record start -> end (or end -> start when `change_direction`)."""
        self.add_entity(start)
        self.add_entity(end)
        src, dst = (end, start) if change_direction else (start, end)
        edge = ContextEdge(
            source_guid=src.guid,
            destination_guid=dst.guid,
            relationship_type=relationship.type_name,
            relationship_guid=relationship.guid,
        )
        self.add_edge(edge)
        return edge

    def has_entity(self, guid: str) -> bool:
        return guid in self.entities

    def edges_of_type(self, relationship_type: str) -> list[ContextEdge]:
        return [e for e in self.edges if e.relationship_type == relationship_type]

    def to_dict(self) -> dict[str, Any]:
        return {
            "entities": [
                {"guid": e.guid, "type_name": e.type_name, "display_name": e.display_name, "properties": e.properties}
                for e in self.entities.values()
            ],
            "edges": [
                {
                    "source": e.source_guid,
                    "destination": e.destination_guid,
                    "relationship_type": e.relationship_type,
                    "relationship_guid": e.relationship_guid,
                }
                for e in self.edges
            ],
        }
