from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .constants import COMPLEX_SCHEMA_TYPE, DATABASE, FILE_FOLDER
from .models import TypeDef
from .repository import is_type_of


class AssetKind(Enum):
    """How the context builder treats an entity of a given type."""

    SCHEMA_BOUNDARY = "schema_boundary"
    DATABASE = "database"
    FOLDER_BEARING = "folder_bearing"
    GENERIC = "generic"


@dataclass(frozen=True, slots=True)
class TypeCatalog:
    """Type name -> AssetKind, computed once from the repository's type definitions.

    Classification follows the supertype chain, so a RelationalTableType that
    inherits from TabularSchemaType (itself a ComplexSchemaType) is a schema
    boundary. Unknown type names fall back to exact-name checks.
    """

    kinds: dict[str, AssetKind]

    @classmethod
    def from_type_defs(cls, type_defs: Iterable[TypeDef]) -> "TypeCatalog":
        by_name = {t.name: t for t in type_defs}
        return cls(kinds={name: _classify(name, by_name) for name in by_name})

    def kind_of(self, type_name: str) -> AssetKind:
        kind = self.kinds.get(type_name)
        if kind is None:
            return _classify(type_name, {})
        return kind

    def is_schema_boundary(self, type_name: str) -> bool:
        return self.kind_of(type_name) is AssetKind.SCHEMA_BOUNDARY

    def is_folder(self, type_name: str) -> bool:
        return self.kind_of(type_name) is AssetKind.FOLDER_BEARING


def _classify(name: str, type_defs: dict[str, TypeDef]) -> AssetKind:
    # ComplexSchemaType itself is abstract; only its subtypes mark a boundary
    if name != COMPLEX_SCHEMA_TYPE and is_type_of(name, COMPLEX_SCHEMA_TYPE, type_defs):
        return AssetKind.SCHEMA_BOUNDARY
    if is_type_of(name, DATABASE, type_defs):
        return AssetKind.DATABASE
    if is_type_of(name, FILE_FOLDER, type_defs):
        return AssetKind.FOLDER_BEARING
    return AssetKind.GENERIC
