"""Video record persistence over the document database."""

from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.settings.models import DocumentDBSettings
from src.commons.telemetry import get_logger
from src.domain.models.video import VideoRecord

# Stored document layout; `id` maps to the database primary key
VIDEO_SCHEMA_FIELDS = (
    "id",
    "module_id",
    "title",
    "url_video",
    "duration",
    "created_at",
    "updated_at",
)


class VideoRecordStore:
    """CRUD repository for video records.

    Only ``id`` is unique. Nothing stops two records from sharing a title
    and module.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        doc_settings: DocumentDBSettings,
    ) -> None:
        """Initialize the store.

        Args:
            document_db: Document database provider.
            doc_settings: Document database configuration.
        """
        self._doc_db = document_db
        self._collection = doc_settings.collections.videos
        self._logger = get_logger(__name__)

    async def ensure_schema(self) -> None:
        """Create the collection indexes. Safe to run on every startup."""
        index = await self._doc_db.create_index(
            self._collection,
            [("module_id", 1)],
            name="module_id_idx",
        )
        self._logger.info(
            "Video collection ready",
            extra={"collection": self._collection, "index": index},
        )

    async def insert(self, video: VideoRecord) -> str:
        """Persist a new record.

        Returns:
            Document ID.
        """
        self._logger.debug(
            "Saving video record",
            extra={"video_id": video.id, "module_id": video.module_id},
        )
        doc_id = await self._doc_db.insert(
            self._collection,
            video.model_dump(mode="json", include=set(VIDEO_SCHEMA_FIELDS)),
        )
        self._logger.info("Video record saved", extra={"video_id": doc_id})
        return doc_id

    async def find_by_id(self, video_id: str) -> VideoRecord | None:
        """Get a record by ID, or None if not found."""
        doc = await self._doc_db.find_by_id(self._collection, video_id)
        if not doc:
            self._logger.debug("Video record not found", extra={"video_id": video_id})
            return None
        return VideoRecord(**doc)

    async def find_all(self) -> list[VideoRecord]:
        """All records, oldest first."""
        docs = await self._doc_db.find(
            self._collection,
            {},
            sort=[("created_at", 1)],
        )
        self._logger.debug("Video records listed", extra={"count": len(docs)})
        return [VideoRecord(**doc) for doc in docs]

    async def update(self, video: VideoRecord) -> bool:
        """Overwrite a stored record.

        Returns:
            True if updated, False if not found.
        """
        result = await self._doc_db.update(
            self._collection,
            video.id,
            video.model_dump(mode="json", include=set(VIDEO_SCHEMA_FIELDS)),
        )
        if result:
            self._logger.debug("Video record updated", extra={"video_id": video.id})
        else:
            self._logger.warning(
                "Video record not found for update",
                extra={"video_id": video.id},
            )
        return result

    async def delete(self, video_id: str) -> bool:
        """Delete a record.

        Returns:
            True if deleted, False if not found.
        """
        result = await self._doc_db.delete(self._collection, video_id)
        if result:
            self._logger.info("Video record deleted", extra={"video_id": video_id})
        else:
            self._logger.warning(
                "Video record not found for deletion",
                extra={"video_id": video_id},
            )
        return result
