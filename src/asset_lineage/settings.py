from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AssetLineageSettings(BaseSettings):
    """Unified configuration for asset-lineage.

    Environment variables are prefixed with ASSET_LINEAGE_.
    """

    model_config = SettingsConfigDict(env_prefix="ASSET_LINEAGE_", extra="ignore")

    # --- Core ---
    log_level: str = Field(default="INFO", description="Python logging level")
    default_user_id: str = Field(default="asset-lineage", description="User id sent to the repository")

    # HTTP
    bind_host: str = "0.0.0.0"
    bind_port: int = 8089

    # Auth
    api_key: str | None = Field(default=None, description="If set, require X-API-Key")

    # Lineage graph (Neo4j)
    neo4j_uri: str | None = None
    neo4j_user: str | None = None
    neo4j_password: str | None = None
    neo4j_database: str = "neo4j"

    # Metadata repository (ArangoDB)
    arango_url: str | None = None
    arango_username: str = "root"
    arango_password: str = ""
    arango_database: str = "metadata_repository"

    # --- Context builder ---
    schema_nesting_policy: Literal["first", "all"] = Field(
        default="first",
        description="first: follow only the first nested schema attribute; all: follow every one",
    )

    # --- Lineage queries ---
    table_view_label: str = "TableDataFlow"
    column_view_label: str = "DataFlow"
    glossary_labels: list[str] = Field(default_factory=lambda: ["SemanticAssignment", "RelatedTerm"])
    process_type_labels: list[str] = Field(default_factory=lambda: ["Process", "SubProcess"])
    display_name_case_sensitive: bool = False


settings = AssetLineageSettings()
