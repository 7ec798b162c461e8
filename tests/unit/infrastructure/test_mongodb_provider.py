"""Unit tests for MongoDB document database provider."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from bson import ObjectId


class _AsyncCursor:
    """Minimal stand-in for a Motor cursor."""

    def __init__(self, docs):
        self._docs = list(docs)
        self.sort = MagicMock(return_value=self)
        self.skip = MagicMock(return_value=self)
        self.limit = MagicMock(return_value=self)

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration from None


class TestMongoDBDocumentDB:
    """Tests for MongoDBDocumentDB provider.

    These tests verify the ID mapping behavior between domain model 'id'
    and MongoDB's '_id' field.
    """

    @pytest.fixture
    def mock_motor_client(self):
        """Create a mock Motor client."""
        with patch(
            "src.commons.infrastructure.documentdb.mongodb_provider.AsyncIOMotorClient"
        ) as mock_client_class:
            mock_client = MagicMock()
            mock_db = MagicMock()
            mock_collection = MagicMock()

            mock_client.__getitem__ = MagicMock(return_value=mock_db)
            mock_db.__getitem__ = MagicMock(return_value=mock_collection)

            mock_client_class.return_value = mock_client

            yield {
                "client_class": mock_client_class,
                "client": mock_client,
                "db": mock_db,
                "collection": mock_collection,
            }

    @pytest.fixture
    def mongodb_provider(self, mock_motor_client):
        """Create MongoDB provider with mocked client."""
        from src.commons.infrastructure.documentdb.mongodb_provider import (
            MongoDBDocumentDB,
        )

        return MongoDBDocumentDB(
            connection_string="mongodb://localhost:27017",
            database_name="test_db",
        )

    # =========================================================================
    # Insert Tests
    # =========================================================================

    async def test_insert_uses_id_as_mongodb_id(
        self, mongodb_provider, mock_motor_client
    ):
        """Test that insert uses document 'id' as MongoDB '_id'."""
        collection = mock_motor_client["collection"]
        collection.insert_one = AsyncMock(
            return_value=MagicMock(inserted_id="test-uuid-123")
        )

        document = {"id": "test-uuid-123", "title": "Intro", "module_id": 5}

        result = await mongodb_provider.insert("videos", document)

        call_args = collection.insert_one.call_args[0][0]
        assert call_args["_id"] == "test-uuid-123"
        assert "id" not in call_args
        assert result == "test-uuid-123"

    async def test_insert_without_id_field(self, mongodb_provider, mock_motor_client):
        """Test insert when document doesn't have 'id' field."""
        collection = mock_motor_client["collection"]
        mongo_id = ObjectId()
        collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=mongo_id))

        result = await mongodb_provider.insert("videos", {"title": "Intro"})

        assert result == str(mongo_id)

    async def test_insert_does_not_modify_original_document(
        self, mongodb_provider, mock_motor_client
    ):
        """Test that insert doesn't modify the original document."""
        collection = mock_motor_client["collection"]
        collection.insert_one = AsyncMock(
            return_value=MagicMock(inserted_id="test-uuid")
        )

        original_document = {"id": "test-uuid", "title": "Test"}

        await mongodb_provider.insert("videos", original_document)

        assert "id" in original_document
        assert "_id" not in original_document

    # =========================================================================
    # Find Tests
    # =========================================================================

    async def test_find_by_id_with_uuid_string(
        self, mongodb_provider, mock_motor_client
    ):
        """UUID strings are not ObjectIds, so only the string is queried."""
        collection = mock_motor_client["collection"]
        collection.find_one = AsyncMock(
            return_value={"_id": "test-uuid", "title": "Intro"}
        )

        result = await mongodb_provider.find_by_id("videos", "test-uuid")

        collection.find_one.assert_called_once_with({"_id": {"$in": ["test-uuid"]}})
        assert result == {"id": "test-uuid", "title": "Intro"}

    async def test_find_by_id_matches_objectid_too(
        self, mongodb_provider, mock_motor_client
    ):
        """A 24-hex ID also matches documents keyed by a native ObjectId."""
        collection = mock_motor_client["collection"]
        object_id = ObjectId()
        collection.find_one = AsyncMock(return_value={"_id": object_id, "title": "x"})

        result = await mongodb_provider.find_by_id("videos", str(object_id))

        query = collection.find_one.call_args[0][0]
        assert query == {"_id": {"$in": [str(object_id), object_id]}}
        assert result is not None
        assert result["id"] == str(object_id)

    async def test_find_by_id_not_found(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.find_one = AsyncMock(return_value=None)

        assert await mongodb_provider.find_by_id("videos", "missing") is None

    async def test_find_returns_id_field_and_applies_sort(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        cursor = _AsyncCursor([{"_id": "a", "title": "A"}, {"_id": "b", "title": "B"}])
        collection.find = MagicMock(return_value=cursor)

        result = await mongodb_provider.find(
            "videos", {}, sort=[("created_at", 1)]
        )

        assert [doc["id"] for doc in result] == ["a", "b"]
        assert all("_id" not in doc for doc in result)
        cursor.sort.assert_called_once_with([("created_at", 1)])
        cursor.skip.assert_called_once_with(0)
        cursor.limit.assert_called_once_with(0)

    # =========================================================================
    # Update / Delete Tests
    # =========================================================================

    async def test_update_strips_id_fields(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))

        result = await mongodb_provider.update(
            "videos", "test-uuid", {"id": "test-uuid", "_id": "x", "title": "New"}
        )

        assert result is True
        update_doc = collection.update_one.call_args[0][1]
        assert update_doc == {"$set": {"title": "New"}}

    async def test_update_returns_true_when_matched_but_not_modified(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(
            return_value=MagicMock(matched_count=1, modified_count=0)
        )

        assert await mongodb_provider.update("videos", "id", {"title": "Same"})

    async def test_update_not_found(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=0))

        assert await mongodb_provider.update("videos", "id", {"title": "x"}) is False

    async def test_delete(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))

        assert await mongodb_provider.delete("videos", "test-uuid") is True
        collection.delete_one.assert_called_once_with(
            {"_id": {"$in": ["test-uuid"]}}
        )

    async def test_delete_not_found(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=0))

        assert await mongodb_provider.delete("videos", "missing") is False

    # =========================================================================
    # Index / Health Tests
    # =========================================================================

    async def test_create_index(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.create_index = AsyncMock(return_value="module_id_idx")

        name = await mongodb_provider.create_index(
            "videos", [("module_id", 1)], name="module_id_idx"
        )

        assert name == "module_id_idx"
        collection.create_index.assert_called_once_with(
            [("module_id", 1)], unique=False, name="module_id_idx"
        )

    async def test_create_index_default_name(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.create_index = AsyncMock(return_value="module_id_1")

        await mongodb_provider.create_index("videos", [("module_id", 1)])

        collection.create_index.assert_called_once_with(
            [("module_id", 1)], unique=False
        )

    async def test_health_check_healthy(self, mongodb_provider, mock_motor_client):
        mock_motor_client["client"].admin.command = AsyncMock(return_value={"ok": 1})

        status = await mongodb_provider.health_check()

        assert status.healthy is True
        assert status.details == {"database": "test_db"}

    async def test_health_check_unhealthy(self, mongodb_provider, mock_motor_client):
        mock_motor_client["client"].admin.command = AsyncMock(
            side_effect=ConnectionError("refused")
        )

        status = await mongodb_provider.health_check()

        assert status.healthy is False
        assert "refused" in (status.message or "")
