"""Shared fixtures for unit tests."""

import copy
from pathlib import Path
from typing import Any

import pytest

from src.application.services.chunk_receiver import ChunkReceiver
from src.application.services.storage import VideoRecordStore
from src.application.services.validation import VideoValidator
from src.application.services.video_upload import VideoUploadService
from src.commons.infrastructure.blob import HealthStatus, LocalBlobStorage
from src.commons.infrastructure.documentdb import DocumentDBBase
from src.commons.settings.models import DocumentDBSettings, UploadSettings


class InMemoryDocumentDB(DocumentDBBase):
    """Dict-backed document database for tests."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.indexes: dict[str, list[str]] = {}

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self.collections.setdefault(name, {})

    async def insert(self, collection: str, document: dict[str, Any]) -> str:
        doc = copy.deepcopy(document)
        doc_id = str(doc["id"])
        self._collection(collection)[doc_id] = doc
        return doc_id

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        doc = self._collection(collection).get(document_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 0,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        docs = [
            copy.deepcopy(doc)
            for doc in self._collection(collection).values()
            if all(doc.get(key) == value for key, value in filters.items())
        ]
        for field, direction in reversed(sort or []):
            docs.sort(key=lambda d, f=field: d.get(f), reverse=direction < 0)
        docs = docs[skip:]
        return docs[:limit] if limit else docs

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        docs = self._collection(collection)
        if document_id not in docs:
            return False
        fields = {k: v for k, v in updates.items() if k not in ("id", "_id")}
        docs[document_id].update(copy.deepcopy(fields))
        return True

    async def delete(self, collection: str, document_id: str) -> bool:
        return self._collection(collection).pop(document_id, None) is not None

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        index_name = name or "_".join(f"{k}_{d}" for k, d in fields)
        self.indexes.setdefault(collection, []).append(index_name)
        return index_name

    async def health_check(self) -> HealthStatus:
        return HealthStatus(healthy=True, latency_ms=0.0, message="in memory")


@pytest.fixture
def document_db() -> InMemoryDocumentDB:
    return InMemoryDocumentDB()


@pytest.fixture
def upload_settings(tmp_path: Path) -> UploadSettings:
    return UploadSettings(work_dir=str(tmp_path / "chunks"))


@pytest.fixture
def blob_storage(tmp_path: Path) -> LocalBlobStorage:
    return LocalBlobStorage(root=tmp_path / "public", public_url_prefix="/storage")


@pytest.fixture
def record_store(document_db: InMemoryDocumentDB) -> VideoRecordStore:
    return VideoRecordStore(document_db=document_db, doc_settings=DocumentDBSettings())


@pytest.fixture
def chunk_receiver(upload_settings: UploadSettings) -> ChunkReceiver:
    return ChunkReceiver(
        work_dir=Path(upload_settings.work_dir),
        session_ttl_seconds=upload_settings.session_ttl_seconds,
        file_field=upload_settings.file_field,
        max_bytes=upload_settings.max_file_size_bytes,
    )


@pytest.fixture
def video_service(
    blob_storage: LocalBlobStorage,
    record_store: VideoRecordStore,
    chunk_receiver: ChunkReceiver,
    upload_settings: UploadSettings,
) -> VideoUploadService:
    return VideoUploadService(
        blob_storage=blob_storage,
        record_store=record_store,
        receiver=chunk_receiver,
        validator=VideoValidator(upload_settings),
        upload_settings=upload_settings,
    )
