from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Entity:
    """A catalog entity as returned by the metadata repository.

    `guid` is unique within the owning repository.
    """

    guid: str
    type_name: str
    properties: dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return str(self.properties.get("displayName") or self.properties.get("name") or self.guid)


@dataclass(frozen=True, slots=True)
class EntityProxy:
    """One end of a relationship: enough to look the entity up again."""

    guid: str
    type_name: str


@dataclass(frozen=True, slots=True)
class Relationship:
    """A typed, directed edge from `entity_one` to `entity_two`."""

    guid: str
    type_name: str
    entity_one: EntityProxy
    entity_two: EntityProxy

    def other_end(self, guid: str) -> EntityProxy:
        if self.entity_one.guid == guid:
            return self.entity_two
        if self.entity_two.guid == guid:
            return self.entity_one
        raise ValueError(f"{guid} is not an end of relationship {self.guid}")


@dataclass(frozen=True, slots=True)
class TypeDef:
    name: str
    super_type: str | None = None
