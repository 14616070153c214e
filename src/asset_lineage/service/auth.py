from __future__ import annotations

from fastapi import Header, HTTPException, Request


def require_api_key(request: Request, x_api_key: str | None = Header(default=None)) -> None:
    """Reject the request unless it carries the API key configured for this app, if any."""
    expected = request.app.state.cfg.api_key
    if expected and x_api_key != expected:
        raise HTTPException(status_code=401, detail="invalid API key")
