from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..catalog.builder import AssetContextBuilder, SchemaNestingPolicy
from ..catalog.repository import RepositoryAccessor
from ..errors import AccessDeniedError, NotFoundError, StoreError
from ..lineage.engine import LineageQueryEngine
from ..lineage.store import LineageStore
from ..settings import AssetLineageSettings, settings
from .api import build_lineage_router

logger = logging.getLogger(__name__)


def create_app(
    repository: RepositoryAccessor | None = None,
    lineage_store: LineageStore | None = None,
    cfg: AssetLineageSettings = settings,
) -> FastAPI:
    app = FastAPI(title="Asset Lineage Service", version=__version__)
    app.state.cfg = cfg

    # either backend may be absent; its endpoints then answer 503
    if repository is not None:
        app.state.builder = AssetContextBuilder(
            repository, nesting_policy=SchemaNestingPolicy(cfg.schema_nesting_policy)
        )
    if lineage_store is not None:
        app.state.engine = LineageQueryEngine.from_settings(lineage_store, cfg)

    @app.exception_handler(NotFoundError)
    async def not_found(_request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(AccessDeniedError)
    async def access_denied(_request: Request, exc: AccessDeniedError):
        return JSONResponse(status_code=403, content={"detail": str(exc)})

    @app.exception_handler(StoreError)
    async def store_error(_request: Request, exc: StoreError):
        logger.error(f"Store failure while serving request: {exc}")
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.get("/health")
    async def health():
        return {
            "ok": True,
            "host": os.uname().nodename,
            "repository": repository is not None,
            "lineage_store": lineage_store is not None,
        }

    app.include_router(build_lineage_router())
    return app
