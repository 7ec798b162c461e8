"""Document database contract used by the video record store."""

from abc import ABC, abstractmethod
from typing import Any

from src.commons.infrastructure.blob.base import HealthStatus


class DocumentDBBase(ABC):
    """Async store of JSON-like documents grouped in named collections.

    A document's ``id`` is its primary key. Providers may store it under
    another name (MongoDB uses ``_id``) but must hand it back as ``id``
    from every read, so records round-trip unchanged.
    """

    @abstractmethod
    async def insert(self, collection: str, document: dict[str, Any]) -> str:
        """Store a new document, keyed by its ``id`` when it carries one.

        Returns:
            The primary key the document was stored under.
        """

    @abstractmethod
    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Document with this primary key, or None."""

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 0,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Documents whose fields equal every value in ``filters``.

        Args:
            collection: Collection name.
            filters: Field equality filters; empty matches everything.
            skip: Leading matches to leave out.
            limit: Cap on the result size; 0 returns every match.
            sort: ``(field, 1 | -1)`` pairs, most significant first.
        """

    @abstractmethod
    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        """Overwrite the given fields. ``id`` in ``updates`` is ignored.

        Returns:
            Whether a document with this key exists.
        """

    @abstractmethod
    async def delete(self, collection: str, document_id: str) -> bool:
        """Remove a document.

        Returns:
            Whether a document with this key existed.
        """

    @abstractmethod
    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        """Declare a secondary index; repeating an existing one is allowed.

        Run by ``VideoRecordStore.ensure_schema`` on every startup.

        Returns:
            The index name.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check the connection, reporting failures in the status."""

    async def close(self) -> None:  # noqa: B027
        """Release connections. Providers without any keep this version."""
