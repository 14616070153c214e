"""Asset context subsystem.

This module provides:
- Catalog entity / relationship / type definition models
- A repository accessor abstraction with in-memory and ArangoDB backends
- The context graph builder

The ArangoDB backend is imported on demand (python-arango).
"""

from .builder import AssetContextBuilder, SchemaNestingPolicy
from .classification import AssetKind, TypeCatalog
from .context_graph import ContextEdge, ContextGraph
from .models import Entity, EntityProxy, Relationship, TypeDef
from .repository import InMemoryRepository, RepositoryAccessor

__all__ = [
    "AssetContextBuilder",
    "SchemaNestingPolicy",
    "AssetKind",
    "TypeCatalog",
    "ContextEdge",
    "ContextGraph",
    "Entity",
    "EntityProxy",
    "Relationship",
    "TypeDef",
    "InMemoryRepository",
    "RepositoryAccessor",
]
