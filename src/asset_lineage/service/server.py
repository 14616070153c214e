from __future__ import annotations

import logging

import uvicorn

from ..catalog.arango_repository import ArangoRepository
from ..lineage.neo4j_store import Neo4jConfig, Neo4jLineageStore
from ..settings import settings
from .app import create_app

logger = logging.getLogger(__name__)


def _repository() -> ArangoRepository | None:
    if not settings.arango_url:
        logger.warning("ArangoDB not configured (ASSET_LINEAGE_ARANGO_URL); context endpoints disabled")
        return None
    return ArangoRepository(
        url=settings.arango_url,
        username=settings.arango_username,
        password=settings.arango_password,
        database=settings.arango_database,
    )


def _lineage_store() -> Neo4jLineageStore | None:
    if not (settings.neo4j_uri and settings.neo4j_user and settings.neo4j_password):
        logger.warning("Neo4j not configured (ASSET_LINEAGE_NEO4J_URI/USER/PASSWORD); lineage endpoints disabled")
        return None
    store = Neo4jLineageStore(
        Neo4jConfig(
            uri=settings.neo4j_uri,
            user=settings.neo4j_user,
            password=settings.neo4j_password,
            database=settings.neo4j_database,
        )
    )
    store.ensure_schema()
    return store


def main() -> None:
    logging.basicConfig(
        level=(settings.log_level or "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    repository = _repository()
    store = _lineage_store()
    app = create_app(repository, store)

    config = uvicorn.Config(
        app,
        host=settings.bind_host,
        port=settings.bind_port,
        log_level=(settings.log_level or "info").lower(),
    )
    server = uvicorn.Server(config)

    try:
        server.run()
    finally:
        if repository is not None:
            repository.close()
        if store is not None:
            store.close()


if __name__ == "__main__":
    main()
