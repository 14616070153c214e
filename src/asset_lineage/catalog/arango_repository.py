"""
ArangoDB-backed metadata repository accessor.

Entities live in a document collection keyed by guid, relationships in an
edge collection whose `_from` is proxy one and `_to` is proxy two, and type
definitions in a third collection keyed by type name.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from arango import ArangoClient
from arango.database import StandardDatabase
from arango.exceptions import ArangoError, ArangoServerError

from ..errors import AccessDeniedError, StoreError
from .models import Entity, EntityProxy, Relationship, TypeDef
from .repository import is_type_of

logger = logging.getLogger(__name__)

_DENIED_HTTP_CODES = (401, 403)


class ArangoRepository:
    """Read-only RepositoryAccessor over an ArangoDB database."""

    def __init__(
        self,
        url: str = "http://localhost:8529",
        username: str = "root",
        password: str = "",
        database: str = "metadata_repository",
        *,
        db: Optional[StandardDatabase] = None,
        entities_collection: str = "entities",
        relationships_collection: str = "relationships",
        type_defs_collection: str = "type_defs",
    ):
        self.url = url
        self.database_name = database
        self.entities_collection = entities_collection
        self.relationships_collection = relationships_collection
        self.type_defs_collection = type_defs_collection

        self.client: Optional[ArangoClient] = None
        if db is None:
            self.client = ArangoClient(hosts=url)
            db = self.client.db(database, username=username, password=password)
        self.db = db

    def close(self) -> None:
        if self.client:
            self.client.close()
            logger.info("Disconnected from ArangoDB")

    def _fail(self, user_id: str, action: str, e: ArangoError) -> Exception:
        if isinstance(e, ArangoServerError) and e.http_code in _DENIED_HTTP_CODES:
            return AccessDeniedError(f"user {user_id} may not {action}: {e}")
        logger.error(f"Failed to {action} in ArangoDB {self.database_name}: {e}")
        return StoreError(f"failed to {action}: {e}")

    def _doc_to_entity(self, doc: Dict[str, Any]) -> Entity:
        return Entity(guid=doc["_key"], type_name=doc["type_name"], properties=doc.get("properties") or {})

    def _doc_to_relationship(self, doc: Dict[str, Any]) -> Relationship:
        return Relationship(
            guid=doc["_key"],
            type_name=doc["type_name"],
            entity_one=EntityProxy(doc["_from"].split("/")[-1], doc.get("entity_one_type", "")),
            entity_two=EntityProxy(doc["_to"].split("/")[-1], doc.get("entity_two_type", "")),
        )

    def get_entity(self, user_id: str, guid: str, type_name: str) -> Optional[Entity]:
        try:
            doc = self.db.collection(self.entities_collection).get({"_key": guid})
        except ArangoError as e:
            raise self._fail(user_id, f"read entity {guid}", e) from e
        if not doc:
            return None

        entity = self._doc_to_entity(doc)
        if type_name and entity.type_name != type_name:
            type_defs = {t.name: t for t in self.get_type_defs(user_id)}
            if not is_type_of(entity.type_name, type_name, type_defs):
                return None
        return entity

    def get_relationships(
        self, user_id: str, guid: str, relationship_type: str, type_name: str
    ) -> List[Relationship]:
        query = """
        FOR r IN @@relationships
            FILTER r.type_name == @type_name
            FILTER r._from == @ref OR r._to == @ref
            RETURN r
        """
        bind_vars = {
            "@relationships": self.relationships_collection,
            "type_name": relationship_type,
            "ref": f"{self.entities_collection}/{guid}",
        }
        try:
            cursor = self.db.aql.execute(query, bind_vars=bind_vars)
            return [self._doc_to_relationship(doc) for doc in cursor]
        except ArangoError as e:
            raise self._fail(user_id, f"read {relationship_type} relationships of {guid}", e) from e

    def get_type_defs(self, user_id: str) -> List[TypeDef]:
        try:
            cursor = self.db.aql.execute(
                "FOR t IN @@type_defs RETURN t",
                bind_vars={"@type_defs": self.type_defs_collection},
            )
            return [TypeDef(name=doc["_key"], super_type=doc.get("super_type")) for doc in cursor]
        except ArangoError as e:
            raise self._fail(user_id, "read type definitions", e) from e
