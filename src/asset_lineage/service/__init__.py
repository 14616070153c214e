"""HTTP service exposing asset context builds and lineage queries."""

from .app import create_app

__all__ = ["create_app"]
