from __future__ import annotations

from typing import Any, Iterable, Protocol

from ..errors import AccessDeniedError
from .models import Entity, EntityProxy, Relationship, TypeDef


class RepositoryAccessor(Protocol):
    """Read access to the metadata repository.

    Implementations return None / empty lists for absent data and raise
    AccessDeniedError or StoreError when the repository cannot answer.
    """

    def get_entity(self, user_id: str, guid: str, type_name: str) -> Entity | None: ...

    def get_relationships(
        self, user_id: str, guid: str, relationship_type: str, type_name: str
    ) -> list[Relationship]: ...

    def get_type_defs(self, user_id: str) -> list[TypeDef]: ...


def is_type_of(type_name: str, expected: str, type_defs: dict[str, TypeDef]) -> bool:
    """True if `type_name` is `expected` or inherits from it."""
    seen: set[str] = set()
    current: str | None = type_name
    while current is not None and current not in seen:
        if current == expected:
            return True
        seen.add(current)
        td = type_defs.get(current)
        current = td.super_type if td else None
    return False


class InMemoryRepository:
    """Dict-backed repository used by tests, fixtures and the CLI.

    `denied_users` simulates an authorization layer: every call made on
    behalf of one of them raises AccessDeniedError.
    """

    def __init__(
        self,
        entities: Iterable[Entity] = (),
        relationships: Iterable[Relationship] = (),
        type_defs: Iterable[TypeDef] = (),
        *,
        denied_users: Iterable[str] = (),
    ):
        self.entities: dict[str, Entity] = {e.guid: e for e in entities}
        self.relationships: list[Relationship] = list(relationships)
        self.type_defs: dict[str, TypeDef] = {t.name: t for t in type_defs}
        self.denied_users = set(denied_users)

    def _check(self, user_id: str) -> None:
        if user_id in self.denied_users:
            raise AccessDeniedError(f"user {user_id} is not authorized to read the repository")

    def add_entity(self, entity: Entity) -> None:
        self.entities[entity.guid] = entity

    def relate(self, guid: str, type_name: str, one: Entity, two: Entity) -> Relationship:
        rel = Relationship(
            guid=guid,
            type_name=type_name,
            entity_one=EntityProxy(one.guid, one.type_name),
            entity_two=EntityProxy(two.guid, two.type_name),
        )
        self.relationships.append(rel)
        return rel

    def get_entity(self, user_id: str, guid: str, type_name: str) -> Entity | None:
        self._check(user_id)
        entity = self.entities.get(guid)
        if entity is None:
            return None
        if type_name and not is_type_of(entity.type_name, type_name, self.type_defs):
            return None
        return entity

    def get_relationships(
        self, user_id: str, guid: str, relationship_type: str, type_name: str
    ) -> list[Relationship]:
        self._check(user_id)
        return [
            r
            for r in self.relationships
            if r.type_name == relationship_type and guid in (r.entity_one.guid, r.entity_two.guid)
        ]

    def get_type_defs(self, user_id: str) -> list[TypeDef]:
        self._check(user_id)
        return list(self.type_defs.values())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InMemoryRepository":
        """Load a catalog fixture.

        Shape: {"entities": [{guid, type_name, properties}],
                "relationships": [{guid, type_name, entity_one, entity_two}],
                "type_defs": [{name, super_type}]}
        where entity_one / entity_two are guids of listed entities.
        """
        entities = [
            Entity(guid=e["guid"], type_name=e["type_name"], properties=e.get("properties") or {})
            for e in data.get("entities", [])
        ]
        by_guid = {e.guid: e for e in entities}
        relationships = []
        for r in data.get("relationships", []):
            one, two = by_guid[r["entity_one"]], by_guid[r["entity_two"]]
            relationships.append(
                Relationship(
                    guid=r["guid"],
                    type_name=r["type_name"],
                    entity_one=EntityProxy(one.guid, one.type_name),
                    entity_two=EntityProxy(two.guid, two.type_name),
                )
            )
        type_defs = [TypeDef(name=t["name"], super_type=t.get("super_type")) for t in data.get("type_defs", [])]
        return cls(entities, relationships, type_defs)
