from __future__ import annotations


class AssetLineageError(Exception):
    """Base class for every error raised by asset_lineage."""


class NotFoundError(AssetLineageError):
    pass


class EntityNotFoundError(NotFoundError):
    """The seed entity of a context build does not exist in the repository."""

    def __init__(self, guid: str):
        super().__init__(f"entity not found: {guid}")
        self.guid = guid


class NodeNotFoundError(NotFoundError):
    """The queried node does not exist in the lineage graph."""

    def __init__(self, node_id: str):
        super().__init__(f"lineage node not found: {node_id}")
        self.node_id = node_id


class AccessDeniedError(AssetLineageError):
    """The repository refused the request for this user."""


class StoreError(AssetLineageError):
    """A repository or lineage store could not be reached or queried."""
