from __future__ import annotations

import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterable

from neo4j import GraphDatabase
from neo4j.exceptions import DriverError, Neo4jError

from ..errors import StoreError
from .models import Direction, LineageEdge, LineageVertex

logger = logging.getLogger(__name__)

_NODE_KEYS = frozenset({"node_id", "display_name", "type_label", "is_process"})
_LABEL_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(slots=True)
class Neo4jConfig:
    uri: str
    user: str
    password: str
    database: str = "neo4j"
    # ingestion performance
    batch_size: int = 500


def batched(it: Iterable, batch_size: int) -> Iterable[list]:
    batch: list = []
    for x in it:
        batch.append(x)
        if len(batch) >= batch_size:
            yield batch
            batch = []
    if batch:
        yield batch


def _edge_label(label: str) -> str:
    # Relationship types cannot be parameterized; only plain identifiers are interpolated.
    if not _LABEL_RE.match(label):
        raise ValueError(f"invalid edge label: {label!r}")
    return label


class Neo4jLineageStore:
    """Neo4j-backed lineage graph.

    Vertices are :LineageNode nodes keyed by `node_id`; the relationship type
    of an edge is its lineage label.
    """

    def __init__(self, cfg: Neo4jConfig, *, driver: Any = None):
        self.cfg = cfg
        # Driver is thread-safe; sessions are lightweight.
        self._driver = driver or GraphDatabase.driver(cfg.uri, auth=(cfg.user, cfg.password))

    def close(self) -> None:
        self._driver.close()

    def query(self, cypher: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        try:
            with self._driver.session(database=self.cfg.database) as s:
                res = s.run(cypher, **(params or {}))
                return [dict(r) for r in res]
        except (Neo4jError, DriverError) as e:
            logger.error(f"Neo4j query failed on {self.cfg.uri}: {e}")
            raise StoreError(f"lineage store query failed: {e}") from e

    def ensure_schema(self) -> None:
        self.query("CREATE CONSTRAINT lineage_node_id IF NOT EXISTS FOR (n:LineageNode) REQUIRE n.node_id IS UNIQUE")
        self.query("CREATE INDEX lineage_display_name IF NOT EXISTS FOR (n:LineageNode) ON (n.display_name)")

    @staticmethod
    def _to_vertex(node: Any) -> LineageVertex:
        props = dict(node)
        return LineageVertex(
            node_id=props["node_id"],
            display_name=props.get("display_name") or props["node_id"],
            type_label=props.get("type_label", ""),
            is_process=bool(props.get("is_process", False)),
            properties={k: v for k, v in props.items() if k not in _NODE_KEYS},
        )

    def find_vertex(self, node_id: str) -> LineageVertex | None:
        rows = self.query("MATCH (n:LineageNode {node_id: $id}) RETURN n LIMIT 1", {"id": node_id})
        return self._to_vertex(rows[0]["n"]) if rows else None

    def adjacent(
        self, node_id: str, labels: Iterable[str], direction: Direction
    ) -> list[tuple[LineageEdge, LineageVertex]]:
        params = {"id": node_id, "labels": list(labels)}
        out: list[tuple[LineageEdge, LineageVertex]] = []
        if direction in (Direction.IN, Direction.BOTH):
            q = """
            MATCH (m:LineageNode)-[r]->(n:LineageNode {node_id: $id})
            WHERE type(r) IN $labels
            RETURN m AS other, m.node_id AS src, n.node_id AS dst, type(r) AS label, r.edge_id AS edge_id
            """
            out.extend(self._pairs(self.query(q, params)))
        if direction in (Direction.OUT, Direction.BOTH):
            q = """
            MATCH (n:LineageNode {node_id: $id})-[r]->(m:LineageNode)
            WHERE type(r) IN $labels
            RETURN m AS other, n.node_id AS src, m.node_id AS dst, type(r) AS label, r.edge_id AS edge_id
            """
            out.extend(self._pairs(self.query(q, params)))
        return out

    def _pairs(self, rows: list[dict[str, Any]]) -> list[tuple[LineageEdge, LineageVertex]]:
        return [
            (
                LineageEdge(source_id=r["src"], destination_id=r["dst"], label=r["label"], edge_id=r.get("edge_id")),
                self._to_vertex(r["other"]),
            )
            for r in rows
        ]

    def upsert(self, *, vertices: list[LineageVertex], edges: list[LineageEdge]) -> None:
        if not vertices and not edges:
            return

        with self._driver.session(database=self.cfg.database) as s:
            try:
                for batch in batched(vertices, self.cfg.batch_size):
                    s.execute_write(self._upsert_nodes_tx, batch)
                by_label: dict[str, list[LineageEdge]] = defaultdict(list)
                for e in edges:
                    by_label[_edge_label(e.label)].append(e)
                for label, label_edges in by_label.items():
                    for batch in batched(label_edges, self.cfg.batch_size):
                        s.execute_write(self._upsert_edges_tx, label, batch)
            except (Neo4jError, DriverError) as e:
                logger.error(f"Neo4j upsert failed on {self.cfg.uri}: {e}")
                raise StoreError(f"lineage store upsert failed: {e}") from e

    @staticmethod
    def _upsert_nodes_tx(tx, batch: list[LineageVertex]):
        rows = [
            {
                "node_id": v.node_id,
                "display_name": v.display_name,
                "type_label": v.type_label,
                "is_process": v.is_process,
                "props": v.properties or {},
            }
            for v in batch
        ]
        q = """
        UNWIND $rows as row
        MERGE (n:LineageNode {node_id: row.node_id})
        SET n.display_name = row.display_name
        SET n.type_label = row.type_label
        SET n.is_process = row.is_process
        SET n += row.props
        RETURN count(*) as n
        """
        tx.run(q, rows=rows)

    @staticmethod
    def _upsert_edges_tx(tx, label: str, batch: list[LineageEdge]):
        rows = [{"src": e.source_id, "dst": e.destination_id, "edge_id": e.edge_id} for e in batch]
        q = f"""
        UNWIND $rows as row
        MATCH (a:LineageNode {{node_id: row.src}})
        MATCH (b:LineageNode {{node_id: row.dst}})
        MERGE (a)-[r:`{label}`]->(b)
        SET r.edge_id = row.edge_id
        RETURN count(*) as n
        """
        tx.run(q, rows=rows)

    def export_graph(self) -> dict[str, Any]:
        """Whole lineage graph in the shape InMemoryLineageStore.from_dict reads."""
        nodes = self.query("MATCH (n:LineageNode) RETURN n ORDER BY n.node_id")
        rels = self.query(
            """
            MATCH (a:LineageNode)-[r]->(b:LineageNode)
            RETURN a.node_id AS src, b.node_id AS dst, type(r) AS label, r.edge_id AS edge_id
            """
        )
        return {
            "vertices": [self._to_vertex(row["n"]).to_dict() for row in nodes],
            "edges": [
                LineageEdge(source_id=r["src"], destination_id=r["dst"], label=r["label"], edge_id=r.get("edge_id")).to_dict()
                for r in rels
            ],
        }
