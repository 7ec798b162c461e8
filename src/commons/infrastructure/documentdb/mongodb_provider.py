"""MongoDB implementation of document database."""

import time
from typing import Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from src.commons.infrastructure.blob.base import HealthStatus
from src.commons.infrastructure.documentdb.base import DocumentDBBase


def _id_candidates(document_id: str) -> list[Any]:
    """Values of ``_id`` that may match an external document ID.

    String UUIDs are stored as-is; documents created outside this service
    may still carry a native ObjectId.
    """
    candidates: list[Any] = [document_id]
    if ObjectId.is_valid(document_id):
        candidates.append(ObjectId(document_id))
    return candidates


def _to_domain(doc: dict[str, Any]) -> dict[str, Any]:
    """Restore the domain 'id' field from MongoDB's '_id'."""
    doc["id"] = str(doc.pop("_id"))
    return dict(doc)


class MongoDBDocumentDB(DocumentDBBase):
    """MongoDB implementation of document database.

    Uses Motor for async operations. The domain ``id`` is stored as ``_id``.
    """

    def __init__(
        self,
        connection_string: str,
        database_name: str,
    ) -> None:
        """Initialize MongoDB client.

        Args:
            connection_string: MongoDB connection URI.
            database_name: Name of the database to use.
        """
        self._client: AsyncIOMotorClient[dict[str, Any]] = AsyncIOMotorClient(
            connection_string
        )
        self._db: AsyncIOMotorDatabase[dict[str, Any]] = self._client[database_name]
        self._database_name = database_name

    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert a document, using its 'id' as '_id' when present."""
        doc = document.copy()
        if "id" in doc:
            doc["_id"] = doc.pop("id")

        result = await self._db[collection].insert_one(doc)
        return str(result.inserted_id)

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by ID."""
        doc = await self._db[collection].find_one(
            {"_id": {"$in": _id_candidates(document_id)}}
        )
        return _to_domain(doc) if doc else None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 0,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filters."""
        cursor = self._db[collection].find(filters)

        if sort:
            cursor = cursor.sort(sort)

        # Motor treats limit 0 as "no limit"
        cursor = cursor.skip(skip).limit(limit)

        return [_to_domain(doc) async for doc in cursor]

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        """Set fields on a document. The ID itself is never rewritten."""
        update_doc = {k: v for k, v in updates.items() if k not in ("id", "_id")}
        result = await self._db[collection].update_one(
            {"_id": {"$in": _id_candidates(document_id)}},
            {"$set": update_doc},
        )
        return bool(result.matched_count > 0)

    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """Delete a document."""
        result = await self._db[collection].delete_one(
            {"_id": {"$in": _id_candidates(document_id)}}
        )
        return bool(result.deleted_count > 0)

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        """Create an index on the collection."""
        options: dict[str, Any] = {"unique": unique}
        if name:
            options["name"] = name
        index_name = await self._db[collection].create_index(fields, **options)
        return str(index_name)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            await self._client.admin.command("ping")
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="MongoDB is healthy",
                details={"database": self._database_name},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"MongoDB health check failed: {e}",
                details={"database": self._database_name, "error": str(e)},
            )

    async def close(self) -> None:
        """Close the client connection."""
        self._client.close()
