from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from ..catalog.builder import AssetContextBuilder
from ..lineage.engine import LineageQueryEngine
from ..lineage.models import Scope, View
from .auth import require_api_key


class LineageIn(BaseModel):
    scope: Scope
    view: View = View.TABLE_VIEW
    node_id: str
    display_name_must_contain: str = ""
    include_processes: bool = True


def _builder(request: Request) -> AssetContextBuilder:
    builder = getattr(request.app.state, "builder", None)
    if builder is None:
        raise HTTPException(status_code=503, detail="metadata repository not configured")
    return builder


def _engine(request: Request) -> LineageQueryEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="lineage store not configured")
    return engine


def build_lineage_router() -> APIRouter:
    r = APIRouter(prefix="/v1", tags=["lineage"])

    @r.get("/assets/{guid}/context")
    def asset_context(
        request: Request,
        guid: str,
        type_name: str = Query(..., description="Catalog type of the asset, e.g. RelationalColumn"),
        user_id: str | None = None,
        builder: AssetContextBuilder = Depends(_builder),
        _auth: None = Depends(require_api_key),
    ) -> dict[str, Any]:
        graph = builder.build(user_id or request.app.state.cfg.default_user_id, guid, type_name)
        return graph.to_dict()

    @r.post("/lineage")
    def lineage(
        payload: LineageIn,
        engine: LineageQueryEngine = Depends(_engine),
        _auth: None = Depends(require_api_key),
    ) -> dict[str, Any]:
        result = engine.lineage(
            payload.scope,
            payload.view,
            payload.node_id,
            display_name_must_contain=payload.display_name_must_contain,
            include_processes=payload.include_processes,
        )
        return result.to_dict()

    @r.get("/lineage/export")
    def export(request: Request, _auth: None = Depends(require_api_key)) -> dict[str, Any]:
        store = _engine(request).store
        exporter = getattr(store, "export_graph", None) or getattr(store, "export", None)
        if exporter is None:
            raise HTTPException(status_code=501, detail="lineage store does not support export")
        return exporter()

    return r
