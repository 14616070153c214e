"""Asset context builder.

Starting from one catalog entity, walks a fixed set of type-dependent
relationships and records everything it reaches in a ContextGraph:

    column -> schema type -> table -> data set -> database -> connection -> endpoint
                                                 \\-> folder -> parent folder -> ...

The walk is driven by a worklist of (stage, entity) tasks. Each task runs at
most once and each (entity, relationship type) pair is fetched at most once,
so cyclic catalog data cannot make a build loop forever.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from enum import Enum

from ..errors import EntityNotFoundError
from .classification import AssetKind, TypeCatalog
from .constants import (
    ASSET_SCHEMA_TYPE,
    ATTRIBUTE_FOR_SCHEMA,
    CONNECTION_ENDPOINT,
    CONNECTION_TO_ASSET,
    DATA_CONTENT_FOR_DATA_SET,
    DATA_FILE,
    FOLDER_HIERARCHY,
    NESTED_FILE,
    NESTED_SCHEMA_ATTRIBUTE,
    SCHEMA_ATTRIBUTE_TYPE,
    SCHEMA_TYPE_OWNERS,
)
from .context_graph import ContextGraph
from .models import Entity
from .repository import RepositoryAccessor

logger = logging.getLogger(__name__)


class SchemaNestingPolicy(str, Enum):
    """Which nested schema attributes the builder descends into."""

    FIRST = "first"
    ALL = "all"


class _Stage(Enum):
    SCHEMA = "schema"
    ASSET = "asset"
    FOLDER = "folder"


class AssetContextBuilder:
    """Builds the context graph of a catalog asset.

    The builder holds no per-build state; concurrent builds are safe as long
    as the repository accessor is.
    """

    def __init__(
        self,
        repository: RepositoryAccessor,
        *,
        nesting_policy: SchemaNestingPolicy = SchemaNestingPolicy.FIRST,
    ):
        self.repository = repository
        self.nesting_policy = SchemaNestingPolicy(nesting_policy)

    def build(self, user_id: str, guid: str, type_name: str) -> ContextGraph:
        t0 = time.perf_counter()
        seed = self.repository.get_entity(user_id, guid, type_name)
        if seed is None:
            logger.warning("Context build failed: entity %s of type %s not found", guid, type_name)
            raise EntityNotFoundError(guid)

        catalog = TypeCatalog.from_type_defs(self.repository.get_type_defs(user_id))
        graph = _BuildRun(self.repository, user_id, catalog, self.nesting_policy).run(seed)

        logger.debug(
            "Built context for %s (%s): %d entities, %d edges in %.1fms",
            guid,
            seed.type_name,
            len(graph.entities),
            len(graph.edges),
            (time.perf_counter() - t0) * 1000.0,
        )
        return graph


class _BuildRun:
    """Accumulator for a single build."""

    def __init__(
        self,
        repository: RepositoryAccessor,
        user_id: str,
        catalog: TypeCatalog,
        nesting_policy: SchemaNestingPolicy,
    ):
        self.repository = repository
        self.user_id = user_id
        self.catalog = catalog
        self.nesting_policy = nesting_policy
        self.graph = ContextGraph()
        self._expanded: dict[tuple[str, str], list[Entity]] = {}
        self._scheduled: set[tuple[_Stage, str]] = set()
        self._queue: deque[tuple[_Stage, Entity]] = deque()

    def run(self, seed: Entity) -> ContextGraph:
        self.graph.add_entity(seed)
        self._schedule(_Stage.SCHEMA, seed)
        handlers = {
            _Stage.SCHEMA: self._schema_stage,
            _Stage.ASSET: self._asset_stage,
            _Stage.FOLDER: self._folder_stage,
        }
        while self._queue:
            stage, entity = self._queue.popleft()
            handlers[stage](entity)
        return self.graph

    def _schedule(self, stage: _Stage, entity: Entity) -> None:
        key = (stage, entity.guid)
        if key in self._scheduled:
            return
        self._scheduled.add(key)
        self._queue.append((stage, entity))

    def _expand(self, start: Entity, relationship_type: str, *, change_direction: bool = False) -> list[Entity]:
        """Follow one relationship type from `start`, recording every edge found."""
        key = (start.guid, relationship_type)
        if key in self._expanded:
            return self._expanded[key]

        relationships = self.repository.get_relationships(
            self.user_id, start.guid, relationship_type, start.type_name
        )
        if self.catalog.is_folder(start.type_name):
            # from a folder only follow relationships that point at it
            relationships = [r for r in relationships if r.entity_two.guid == start.guid]

        found: list[Entity] = []
        for rel in relationships:
            proxy = rel.other_end(start.guid)
            end = self.repository.get_entity(self.user_id, proxy.guid, proxy.type_name)
            if end is None:
                logger.warning(
                    "Skipping %s relationship %s: entity %s not found", rel.type_name, rel.guid, proxy.guid
                )
                continue
            self.graph.add_relationship(start, end, rel, change_direction=change_direction)
            found.append(end)

        self._expanded[key] = found
        return found

    # --- stages ---

    def _schema_stage(self, entity: Entity) -> None:
        if entity.type_name in SCHEMA_TYPE_OWNERS:
            self._add_schema_type_columns(entity)

        candidates = self._expand(entity, ATTRIBUTE_FOR_SCHEMA) or self._expand(entity, NESTED_SCHEMA_ATTRIBUTE)

        nested: list[Entity] = []
        for candidate in candidates:
            if self.catalog.is_schema_boundary(candidate.type_name):
                self._schedule(_Stage.ASSET, candidate)
            else:
                nested.append(candidate)

        if self.nesting_policy is SchemaNestingPolicy.FIRST:
            if len(nested) > 1:
                logger.debug(
                    "Entity %s has %d nested schema attributes; following only %s",
                    entity.guid,
                    len(nested),
                    nested[0].guid,
                )
            nested = nested[:1]
        for attribute in nested:
            self._schedule(_Stage.SCHEMA, attribute)

    def _add_schema_type_columns(self, entity: Entity) -> None:
        schema_types = self._expand(entity, SCHEMA_ATTRIBUTE_TYPE, change_direction=True)
        if not schema_types:
            self._expand(entity, NESTED_SCHEMA_ATTRIBUTE, change_direction=True)
        for schema_type in schema_types:
            self._expand(schema_type, ATTRIBUTE_FOR_SCHEMA, change_direction=True)

    def _asset_stage(self, schema_type: Entity) -> None:
        data_sets = self._expand(schema_type, ASSET_SCHEMA_TYPE)
        if not data_sets:
            return
        data_set = data_sets[0]

        content_rel = NESTED_FILE if data_set.type_name == DATA_FILE else DATA_CONTENT_FOR_DATA_SET
        for holder in self._expand(data_set, content_rel):
            if self.catalog.kind_of(holder.type_name) is AssetKind.DATABASE:
                self._add_connections(holder)
            else:
                self._schedule(_Stage.FOLDER, holder)

    def _add_connections(self, asset: Entity) -> None:
        for connection in self._expand(asset, CONNECTION_TO_ASSET):
            self._expand(connection, CONNECTION_ENDPOINT)

    def _folder_stage(self, entity: Entity) -> None:
        self._add_connections(entity)

        parents = self._expand(entity, FOLDER_HIERARCHY)
        if len(parents) > 1:
            logger.warning(
                "Folder %s has %d parent folders; following only %s", entity.guid, len(parents), parents[0].guid
            )
        if parents:
            self._schedule(_Stage.FOLDER, parents[0])
