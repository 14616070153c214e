from __future__ import annotations

import logging

import pytest

from asset_lineage.catalog.builder import AssetContextBuilder, SchemaNestingPolicy
from asset_lineage.errors import AccessDeniedError, EntityNotFoundError
from conftest import TYPE_DEFS, RecordingRepository, entity

USER = "tester"


def edge_set(graph):
    return {(e.source_guid, e.relationship_type, e.destination_guid) for e in graph.edges}


class TestDatabaseContext:
    def test_table_context_reaches_database_endpoint(self, database_catalog):
        graph = AssetContextBuilder(database_catalog).build(USER, "t1", "RelationalTable")

        assert set(graph.entities) == {"t1", "tt1", "c1", "c2", "st1", "ds1", "db1", "conn1", "ep1"}
        assert edge_set(graph) == {
            # schema type relations are recorded pointing from the attribute side
            ("tt1", "SchemaAttributeType", "t1"),
            ("c1", "AttributeForSchema", "tt1"),
            ("c2", "AttributeForSchema", "tt1"),
            ("t1", "AttributeForSchema", "st1"),
            ("st1", "AssetSchemaType", "ds1"),
            ("ds1", "DataContentForDataSet", "db1"),
            ("db1", "ConnectionToAsset", "conn1"),
            ("conn1", "ConnectionEndpoint", "ep1"),
        }

    def test_seed_is_first_entity(self, database_catalog):
        graph = AssetContextBuilder(database_catalog).build(USER, "t1", "RelationalTable")
        assert next(iter(graph.entities)) == "t1"

    def test_relationships_fetched_once_per_entity_and_type(self, database_catalog):
        AssetContextBuilder(database_catalog).build(USER, "t1", "RelationalTable")
        assert len(database_catalog.lookups) == len(set(database_catalog.lookups))

    def test_every_edge_joins_graph_entities(self, database_catalog):
        graph = AssetContextBuilder(database_catalog).build(USER, "t1", "RelationalTable")
        for e in graph.edges:
            assert graph.has_entity(e.source_guid)
            assert graph.has_entity(e.destination_guid)

    def test_column_seed_skips_schema_attribute_type(self, database_catalog):
        AssetContextBuilder(database_catalog).build(USER, "c1", "RelationalColumn")
        assert all(rel != "SchemaAttributeType" for _guid, rel in database_catalog.lookups)

    def test_table_seed_queries_schema_attribute_type_first(self, database_catalog):
        AssetContextBuilder(database_catalog).build(USER, "t1", "RelationalTable")
        assert database_catalog.lookups[0] == ("t1", "SchemaAttributeType")


class TestFileContext:
    def test_column_context_walks_up_folders(self, file_catalog):
        graph = AssetContextBuilder(file_catalog).build(USER, "col1", "TabularColumn")

        assert set(graph.entities) == {"col1", "ts1", "f1", "fo1", "fo0", "conn2", "ep2"}
        assert edge_set(graph) == {
            ("col1", "AttributeForSchema", "ts1"),
            ("ts1", "AssetSchemaType", "f1"),
            ("f1", "NestedFile", "fo1"),
            ("fo1", "ConnectionToAsset", "conn2"),
            ("conn2", "ConnectionEndpoint", "ep2"),
            ("fo1", "FolderHierarchy", "fo0"),
        }

    def test_folder_never_follows_hierarchy_where_it_is_proxy_one(self, file_catalog):
        graph = AssetContextBuilder(file_catalog).build(USER, "col1", "TabularColumn")

        assert "fo2" not in graph.entities
        assert all(e.relationship_guid != "f-r5" for e in graph.edges)

    def test_folder_cycle_terminates(self, file_catalog):
        fo0, fo1 = file_catalog.entities["fo0"], file_catalog.entities["fo1"]
        file_catalog.relate("f-cycle", "FolderHierarchy", fo1, fo0)

        graph = AssetContextBuilder(file_catalog).build(USER, "col1", "TabularColumn")

        assert ("fo0", "FolderHierarchy", "fo1") in edge_set(graph)
        assert len(graph.edges_of_type("FolderHierarchy")) == 2

    def test_data_file_seed_falls_back_to_nested_schema_attributes(self):
        f = entity("f9", "DataFile", "raw.parquet")
        col = entity("col9", "TabularColumn", "payload")
        repo = RecordingRepository([f, col], type_defs=TYPE_DEFS)
        repo.relate("n1", "NestedSchemaAttribute", f, col)

        graph = AssetContextBuilder(repo).build(USER, "f9", "DataFile")

        assert repo.lookups[:2] == [("f9", "SchemaAttributeType"), ("f9", "NestedSchemaAttribute")]
        assert edge_set(graph) == {("col9", "NestedSchemaAttribute", "f9")}


class TestSchemaNesting:
    @pytest.fixture
    def nested_catalog(self):
        street = entity("street", "SchemaAttribute")
        address = entity("address", "SchemaAttribute")
        location = entity("location", "SchemaAttribute")
        ts1 = entity("ts1", "TabularSchemaType")
        ts2 = entity("ts2", "TabularSchemaType")
        repo = RecordingRepository([street, address, location, ts1, ts2], type_defs=TYPE_DEFS)
        repo.relate("n1", "NestedSchemaAttribute", address, street)
        repo.relate("n2", "NestedSchemaAttribute", location, street)
        repo.relate("a1", "AttributeForSchema", ts1, address)
        repo.relate("a2", "AttributeForSchema", ts2, location)
        return repo

    def test_first_policy_follows_only_first_parent(self, nested_catalog):
        graph = AssetContextBuilder(nested_catalog).build(USER, "street", "SchemaAttribute")

        assert "ts1" in graph.entities
        assert "ts2" not in graph.entities
        # the sibling is still recorded, just not expanded
        assert "location" in graph.entities

    def test_all_policy_follows_every_parent(self, nested_catalog):
        builder = AssetContextBuilder(nested_catalog, nesting_policy=SchemaNestingPolicy.ALL)
        graph = builder.build(USER, "street", "SchemaAttribute")

        assert {"ts1", "ts2"} <= set(graph.entities)

    def test_policy_accepts_plain_string(self, nested_catalog):
        builder = AssetContextBuilder(nested_catalog, nesting_policy="all")
        assert builder.nesting_policy is SchemaNestingPolicy.ALL


class TestEdgeCases:
    def test_isolated_seed_gives_single_node(self):
        repo = RecordingRepository([entity("lonely", "RelationalTable")], type_defs=TYPE_DEFS)

        graph = AssetContextBuilder(repo).build(USER, "lonely", "RelationalTable")

        assert list(graph.entities) == ["lonely"]
        assert graph.edges == []

    def test_missing_seed_raises(self, database_catalog):
        with pytest.raises(EntityNotFoundError) as err:
            AssetContextBuilder(database_catalog).build(USER, "nope", "RelationalTable")
        assert err.value.guid == "nope"

    def test_seed_of_wrong_type_is_not_found(self, database_catalog):
        with pytest.raises(EntityNotFoundError):
            AssetContextBuilder(database_catalog).build(USER, "t1", "Database")

    def test_access_denied_propagates(self, database_catalog):
        database_catalog.denied_users.add("mallory")
        with pytest.raises(AccessDeniedError):
            AssetContextBuilder(database_catalog).build("mallory", "t1", "RelationalTable")

    def test_unresolvable_far_end_is_skipped(self, database_catalog, caplog):
        del database_catalog.entities["c2"]

        with caplog.at_level(logging.WARNING, logger="asset_lineage.catalog.builder"):
            graph = AssetContextBuilder(database_catalog).build(USER, "t1", "RelationalTable")

        assert "c2" not in graph.entities
        assert "c1" in graph.entities
        assert "db1" in graph.entities
        assert any("c2" in rec.getMessage() for rec in caplog.records)

    def test_builds_are_independent(self, database_catalog, file_catalog):
        builder = AssetContextBuilder(database_catalog)
        first = builder.build(USER, "t1", "RelationalTable")
        second = builder.build(USER, "c1", "RelationalColumn")

        assert first is not second
        assert "c1" in first.entities
        assert "t1" not in second.entities
