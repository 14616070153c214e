from __future__ import annotations

import pytest
from pydantic import ValidationError

from asset_lineage.settings import AssetLineageSettings


def test_defaults(monkeypatch):
    monkeypatch.delenv("ASSET_LINEAGE_SCHEMA_NESTING_POLICY", raising=False)
    cfg = AssetLineageSettings()

    assert cfg.schema_nesting_policy == "first"
    assert cfg.table_view_label == "TableDataFlow"
    assert cfg.column_view_label == "DataFlow"
    assert cfg.glossary_labels == ["SemanticAssignment", "RelatedTerm"]
    assert cfg.display_name_case_sensitive is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ASSET_LINEAGE_BIND_PORT", "9000")
    monkeypatch.setenv("ASSET_LINEAGE_SCHEMA_NESTING_POLICY", "all")
    monkeypatch.setenv("ASSET_LINEAGE_GLOSSARY_LABELS", '["Means"]')
    monkeypatch.setenv("ASSET_LINEAGE_DISPLAY_NAME_CASE_SENSITIVE", "true")

    cfg = AssetLineageSettings()

    assert cfg.bind_port == 9000
    assert cfg.schema_nesting_policy == "all"
    assert cfg.glossary_labels == ["Means"]
    assert cfg.display_name_case_sensitive is True


def test_invalid_nesting_policy(monkeypatch):
    monkeypatch.setenv("ASSET_LINEAGE_SCHEMA_NESTING_POLICY", "some")
    with pytest.raises(ValidationError):
        AssetLineageSettings()
