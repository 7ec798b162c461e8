"""Unit tests for VideoRecordStore."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from src.application.services.storage import VideoRecordStore
from src.commons.settings.models import DocumentDBSettings
from src.domain.models.video import VideoRecord


def _video(title: str = "Intro", **overrides) -> VideoRecord:
    return VideoRecord(
        module_id=5,
        title=title,
        url_video=f"/storage/videos/module_5/{title}_5.mp4",
        duration=120,
        **overrides,
    )


class TestVideoRecordStore:
    """Tests for VideoRecordStore over the in-memory document DB."""

    async def test_ensure_schema_creates_module_index(self, record_store, document_db):
        await record_store.ensure_schema()
        assert document_db.indexes == {"videos": ["module_id_idx"]}

    async def test_insert_and_find(self, record_store):
        video = _video()

        doc_id = await record_store.insert(video)
        found = await record_store.find_by_id(doc_id)

        assert doc_id == video.id
        assert found == video

    async def test_find_missing(self, record_store):
        assert await record_store.find_by_id("missing") is None

    async def test_find_all_orders_by_created_at(self, record_store):
        now = datetime.now(UTC)
        later = _video("Later", created_at=now + timedelta(minutes=1))
        earlier = _video("Earlier", created_at=now)
        await record_store.insert(later)
        await record_store.insert(earlier)

        videos = await record_store.find_all()

        assert [v.title for v in videos] == ["Earlier", "Later"]

    async def test_same_title_and_module_allowed(self, record_store):
        await record_store.insert(_video())
        await record_store.insert(_video())

        assert len(await record_store.find_all()) == 2

    async def test_update(self, record_store):
        video = _video()
        await record_store.insert(video)

        updated = video.with_changes(title="Outro", module_id=6, duration=10)
        assert await record_store.update(updated) is True

        found = await record_store.find_by_id(video.id)
        assert found is not None
        assert found.title == "Outro"
        assert found.module_id == 6

    async def test_update_missing(self, record_store):
        assert await record_store.update(_video()) is False

    async def test_delete(self, record_store):
        video = _video()
        await record_store.insert(video)

        assert await record_store.delete(video.id) is True
        assert await record_store.find_by_id(video.id) is None
        assert await record_store.delete(video.id) is False


class TestVideoRecordStoreQueries:
    """Tests for the queries sent to the document DB."""

    @pytest.fixture
    def mock_db(self):
        db = AsyncMock()
        db.find.return_value = []
        return db

    async def test_uses_configured_collection(self, mock_db):
        settings = DocumentDBSettings()
        settings.collections.videos = "module_videos"
        store = VideoRecordStore(document_db=mock_db, doc_settings=settings)

        await store.find_all()

        mock_db.find.assert_awaited_once_with(
            "module_videos", {}, sort=[("created_at", 1)]
        )

    async def test_insert_serializes_as_json(self, mock_db):
        mock_db.insert.return_value = "id"
        store = VideoRecordStore(document_db=mock_db, doc_settings=DocumentDBSettings())
        video = _video()

        await store.insert(video)

        document = mock_db.insert.call_args[0][1]
        assert document["id"] == video.id
        assert isinstance(document["created_at"], str)
