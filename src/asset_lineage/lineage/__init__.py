"""Lineage query subsystem.

This module provides:
- Lineage vertex / edge / result models and the scope and view enumerations
- A lineage store abstraction with in-memory and Neo4j backends
- The scoped query engine and its display filters

The Neo4j backend lives in `neo4j_store` and is imported on demand.
"""

from .engine import LineageQueryEngine
from .memory_store import InMemoryLineageStore
from .models import Direction, LineageEdge, LineageResult, LineageVertex, Scope, View
from .store import LineageStore

__all__ = [
    "LineageQueryEngine",
    "InMemoryLineageStore",
    "Direction",
    "LineageEdge",
    "LineageResult",
    "LineageVertex",
    "Scope",
    "View",
    "LineageStore",
]
