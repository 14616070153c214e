from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, NamedTuple

from ..errors import NodeNotFoundError
from ..settings import AssetLineageSettings
from .filters import filter_display_name, filter_out_processes
from .models import Direction, LineageResult, LineageVertex, Scope, View
from .store import LineageStore

logger = logging.getLogger(__name__)

DEFAULT_VIEW_LABELS = {View.TABLE_VIEW: "TableDataFlow", View.COLUMN_VIEW: "DataFlow"}
DEFAULT_GLOSSARY_LABELS = ("SemanticAssignment", "RelatedTerm")


class _State(Enum):
    FRONTIER = "frontier"
    VISITED = "visited"
    TERMINAL = "terminal"


class _Walk(NamedTuple):
    direction: Direction
    max_hops: int | None
    glossary: bool = False
    terminals: bool = False


# Each scope is one or more frontier walks from the queried vertex.
_SCOPE_WALKS: dict[Scope, tuple[_Walk, ...]] = {
    Scope.SOURCE_AND_DESTINATION: (_Walk(Direction.IN, 1), _Walk(Direction.OUT, 1)),
    Scope.END_TO_END: (_Walk(Direction.BOTH, None),),
    Scope.ULTIMATE_SOURCE: (_Walk(Direction.IN, None, terminals=True),),
    Scope.ULTIMATE_DESTINATION: (_Walk(Direction.OUT, None, terminals=True),),
    Scope.GLOSSARY: (_Walk(Direction.BOTH, None, glossary=True),),
}


@dataclass(slots=True)
class LineageQueryEngine:
    """Scoped lineage queries over a LineageStore.

    Read-only; one engine may serve concurrent queries if the store allows it.
    `display_name_case_sensitive` defaults to False so that filtering on
    "orders" keeps "Orders_2024"; set it for exact substring matching.
    """

    store: LineageStore
    view_labels: dict[View, str] = field(default_factory=lambda: dict(DEFAULT_VIEW_LABELS))
    glossary_labels: tuple[str, ...] = DEFAULT_GLOSSARY_LABELS
    display_name_case_sensitive: bool = False

    @classmethod
    def from_settings(cls, store: LineageStore, cfg: AssetLineageSettings) -> "LineageQueryEngine":
        return cls(
            store=store,
            view_labels={View.TABLE_VIEW: cfg.table_view_label, View.COLUMN_VIEW: cfg.column_view_label},
            glossary_labels=tuple(cfg.glossary_labels),
            display_name_case_sensitive=cfg.display_name_case_sensitive,
        )

    def edge_label(self, view: View) -> str:
        return self.view_labels[View(view)]

    def lineage(
        self,
        scope: Scope | str,
        view: View | str,
        node_id: str,
        display_name_must_contain: str = "",
        include_processes: bool = True,
    ) -> LineageResult:
        t0 = time.perf_counter()
        scope = Scope(scope)
        start = self.store.find_vertex(node_id)
        if start is None:
            raise NodeNotFoundError(node_id)

        data_flow = (self.edge_label(view),)
        result = LineageResult()
        for walk in _SCOPE_WALKS[scope]:
            labels = self.glossary_labels if walk.glossary else data_flow
            terminals = self._walk(start, labels, walk.direction, result, max_hops=walk.max_hops)
            if walk.terminals:
                result.terminal_ids |= terminals

        if not include_processes:
            filter_out_processes(result)
        if display_name_must_contain:
            filter_display_name(
                result, display_name_must_contain, case_sensitive=self.display_name_case_sensitive
            )

        logger.debug(
            "Lineage %s/%s for %s: %d vertices, %d edges in %.1fms",
            scope.value,
            View(view).value,
            node_id,
            len(result.vertices),
            len(result.edges),
            (time.perf_counter() - t0) * 1000.0,
        )
        return result

    def _walk(
        self,
        start: LineageVertex,
        labels: Iterable[str],
        direction: Direction,
        result: LineageResult,
        *,
        max_hops: int | None = None,
    ) -> set[str]:
        """Breadth-first walk from `start`, adding every edge crossed to `result`.

        Returns the terminal vertices: those reached that have no edge of
        `labels` in `direction`. The start vertex is never terminal.
        """
        labels = tuple(labels)
        state: dict[str, _State] = {start.node_id: _State.FRONTIER}
        frontier = [start]
        hops = 0
        while frontier and (max_hops is None or hops < max_hops):
            next_frontier: list[LineageVertex] = []
            for vertex in frontier:
                pairs = self.store.adjacent(vertex.node_id, labels, direction)
                if not pairs and vertex.node_id != start.node_id:
                    state[vertex.node_id] = _State.TERMINAL
                    continue
                state[vertex.node_id] = _State.VISITED
                for edge, other in pairs:
                    ends = {vertex.node_id: vertex, other.node_id: other}
                    result.add(edge, ends[edge.source_id], ends[edge.destination_id])
                    if other.node_id not in state:
                        state[other.node_id] = _State.FRONTIER
                        next_frontier.append(other)
            frontier = next_frontier
            hops += 1
        return {node_id for node_id, s in state.items() if s is _State.TERMINAL}
