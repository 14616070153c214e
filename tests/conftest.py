from __future__ import annotations

import pytest

from asset_lineage.catalog.models import Entity, TypeDef
from asset_lineage.catalog.repository import InMemoryRepository
from asset_lineage.lineage.memory_store import InMemoryLineageStore
from asset_lineage.lineage.models import LineageVertex

TYPE_DEFS = [
    TypeDef("Referenceable"),
    TypeDef("Asset", "Referenceable"),
    TypeDef("DataSet", "Asset"),
    TypeDef("DataStore", "Asset"),
    TypeDef("Database", "DataStore"),
    TypeDef("DataFile", "DataStore"),
    TypeDef("FileFolder", "DataStore"),
    TypeDef("DeployedDatabaseSchema", "DataSet"),
    TypeDef("Connection", "Referenceable"),
    TypeDef("Endpoint", "Referenceable"),
    TypeDef("SchemaElement", "Referenceable"),
    TypeDef("SchemaType", "SchemaElement"),
    TypeDef("ComplexSchemaType", "SchemaType"),
    TypeDef("TabularSchemaType", "ComplexSchemaType"),
    TypeDef("RelationalTableType", "TabularSchemaType"),
    TypeDef("RelationalDBSchemaType", "ComplexSchemaType"),
    TypeDef("SchemaAttribute", "SchemaElement"),
    TypeDef("RelationalTable", "SchemaAttribute"),
    TypeDef("RelationalColumn", "SchemaAttribute"),
    TypeDef("TabularColumn", "SchemaAttribute"),
]


def entity(guid: str, type_name: str, name: str | None = None) -> Entity:
    return Entity(guid=guid, type_name=type_name, properties={"displayName": name or guid})


class RecordingRepository(InMemoryRepository):
    """InMemoryRepository that remembers every relationship lookup."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.lookups: list[tuple[str, str]] = []

    def get_relationships(self, user_id, guid, relationship_type, type_name):
        self.lookups.append((guid, relationship_type))
        return super().get_relationships(user_id, guid, relationship_type, type_name)


@pytest.fixture
def database_catalog() -> RecordingRepository:
    """Relational table `t1` with two columns, deployed in database `db1`."""
    e = {
        "t1": entity("t1", "RelationalTable", "orders"),
        "tt1": entity("tt1", "RelationalTableType", "orders_type"),
        "c1": entity("c1", "RelationalColumn", "order_id"),
        "c2": entity("c2", "RelationalColumn", "amount"),
        "st1": entity("st1", "RelationalDBSchemaType", "sales_schema_type"),
        "ds1": entity("ds1", "DeployedDatabaseSchema", "sales"),
        "db1": entity("db1", "Database", "sales_db"),
        "conn1": entity("conn1", "Connection", "sales_db_connection"),
        "ep1": entity("ep1", "Endpoint", "db.example.com:5432"),
    }
    repo = RecordingRepository(e.values(), type_defs=TYPE_DEFS)
    repo.relate("r1", "SchemaAttributeType", e["t1"], e["tt1"])
    repo.relate("r2", "AttributeForSchema", e["tt1"], e["c1"])
    repo.relate("r3", "AttributeForSchema", e["tt1"], e["c2"])
    repo.relate("r4", "AttributeForSchema", e["st1"], e["t1"])
    repo.relate("r5", "AssetSchemaType", e["ds1"], e["st1"])
    repo.relate("r6", "DataContentForDataSet", e["db1"], e["ds1"])
    repo.relate("r7", "ConnectionToAsset", e["conn1"], e["db1"])
    repo.relate("r8", "ConnectionEndpoint", e["ep1"], e["conn1"])
    return repo


@pytest.fixture
def file_catalog() -> RecordingRepository:
    """CSV column `col1` of data file `f1` in folder `fo1`, nested in `fo0`, with child folder `fo2`."""
    e = {
        "col1": entity("col1", "TabularColumn", "order_id"),
        "ts1": entity("ts1", "TabularSchemaType", "orders_csv_schema"),
        "f1": entity("f1", "DataFile", "orders.csv"),
        "fo0": entity("fo0", "FileFolder", "data"),
        "fo1": entity("fo1", "FileFolder", "landing"),
        "fo2": entity("fo2", "FileFolder", "archive"),
        "conn2": entity("conn2", "Connection", "landing_connection"),
        "ep2": entity("ep2", "Endpoint", "/data/landing"),
    }
    repo = RecordingRepository(e.values(), type_defs=TYPE_DEFS)
    repo.relate("f-r1", "AttributeForSchema", e["ts1"], e["col1"])
    repo.relate("f-r2", "AssetSchemaType", e["f1"], e["ts1"])
    repo.relate("f-r3", "NestedFile", e["fo1"], e["f1"])
    repo.relate("f-r4", "FolderHierarchy", e["fo0"], e["fo1"])
    repo.relate("f-r5", "FolderHierarchy", e["fo1"], e["fo2"])
    repo.relate("f-r6", "ConnectionToAsset", e["conn2"], e["fo1"])
    repo.relate("f-r7", "ConnectionEndpoint", e["ep2"], e["conn2"])
    return repo


def vertex(node_id: str, name: str | None = None, type_label: str = "RelationalTable") -> LineageVertex:
    return LineageVertex(
        node_id=node_id,
        display_name=name or node_id,
        type_label=type_label,
        is_process=type_label in ("Process", "SubProcess"),
    )


@pytest.fixture
def chain_store() -> InMemoryLineageStore:
    """A -> B -> C -> D table flow, plus E -> C feeding the middle of the chain."""
    store = InMemoryLineageStore()
    for node_id in "ABCDE":
        store.add_vertex(vertex(node_id))
    store.connect("A", "B", "TableDataFlow")
    store.connect("B", "C", "TableDataFlow")
    store.connect("C", "D", "TableDataFlow")
    store.connect("E", "C", "TableDataFlow")
    return store
