"""Video upload orchestration.

Ties request validation, chunk receipt, blob placement and record
persistence together for the create, update and delete operations.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import BinaryIO
from uuid import uuid4

from src.application.dtos.upload import (
    AssembledFile,
    IncomingFile,
    UploadProgress,
    VideoForm,
)
from src.application.services.chunk_handlers import parse_chunk
from src.application.services.chunk_receiver import ChunkReceiver, derive_upload_key
from src.application.services.storage import VideoRecordStore
from src.application.services.validation import VideoValidator
from src.commons.infrastructure.blob.base import BlobStorageBase, BlobStorageError
from src.commons.settings.models import UploadSettings
from src.commons.telemetry import LogContext, get_logger
from src.domain.exceptions import (
    UploadMissingFileException,
    VideoNotFoundException,
    VideoStorageException,
)
from src.domain.models.video import VideoRecord


@dataclass
class CleanupResult:
    """Outcome of a best-effort blob removal."""

    path: str | None
    deleted: bool
    error: str | None = None


def _safe_title(title: str) -> str:
    """Title usable as a single path segment."""
    return title.replace("/", "_").replace("\\", "_")


class VideoUploadService:
    """Creates, updates and deletes videos together with their files."""

    def __init__(
        self,
        blob_storage: BlobStorageBase,
        record_store: VideoRecordStore,
        receiver: ChunkReceiver,
        validator: VideoValidator,
        upload_settings: UploadSettings,
    ) -> None:
        """Initialize the service.

        Args:
            blob_storage: Store for the video files.
            record_store: Repository for the video records.
            receiver: Chunk receiver shared by all requests of the process.
            validator: Request validator.
            upload_settings: Upload configuration.
        """
        self._blob = blob_storage
        self._records = record_store
        self._receiver = receiver
        self._validator = validator
        self._settings = upload_settings
        self._logger = get_logger(__name__)

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_videos(self) -> list[VideoRecord]:
        """List all videos, oldest first."""
        return await self._records.find_all()

    async def get_video(self, video_id: str) -> VideoRecord:
        """Get a video by ID.

        Raises:
            VideoNotFoundException: If no record has this ID.
        """
        video = await self._records.find_by_id(video_id)
        if video is None:
            raise VideoNotFoundException(video_id)
        return video

    # =========================================================================
    # Create
    # =========================================================================

    async def create_video(
        self,
        fields: Mapping[str, str],
        headers: Mapping[str, str],
        file: IncomingFile | None,
        client_id: str,
    ) -> VideoRecord | UploadProgress:
        """Receive one chunk of a new video.

        Args:
            fields: Non-file form fields, including chunk metadata.
            headers: Request headers.
            file: The chunk bytes.
            client_id: Identity of the uploading client.

        Returns:
            The created record once the last chunk arrived, otherwise the
            upload progress.

        Raises:
            VideoValidationException: If the metadata or file is invalid.
            UploadMissingFileException: If the request has no file part.
            InvalidChunkException: If the chunk metadata is inconsistent.
            VideoStorageException: If the file could not be stored.
        """
        self._logger.info(
            "Request received for video upload",
            extra={"title": fields.get("title"), "module_id": fields.get("module_id")},
        )
        form = self._validator.validate(fields, file, file_required=True)
        if file is None:
            raise UploadMissingFileException(self._settings.file_field)

        chunk = parse_chunk(fields, headers, file)
        self._validator.check_extension(chunk.file_name)
        self._validator.check_declared_size(chunk.total_bytes)
        upload_key = derive_upload_key(client_id, self._settings.file_field, chunk)

        with LogContext(upload_key=upload_key):
            result = await self._receiver.receive(upload_key, chunk, file)
            if not result.is_finished or result.assembled is None:
                self._logger.info(
                    "Upload in progress",
                    extra={
                        "done": result.percentage_done,
                        "chunk_index": chunk.index,
                        "handler": chunk.handler,
                    },
                )
                return UploadProgress(done=result.percentage_done)

            self._logger.info(
                "Upload finished, saving file",
                extra={"file_name": result.assembled.original_name},
            )
            try:
                return await self._store_new_video(form, result.assembled)
            finally:
                await self._receiver.release(result.assembled)

    async def _store_new_video(
        self,
        form: VideoForm,
        assembled: AssembledFile,
    ) -> VideoRecord:
        directory = f"{self._settings.videos_dir}/module_{form.module_id}"
        file_name = f"{_safe_title(form.title)}_{form.module_id}.{assembled.extension}"
        path = f"{directory}/{file_name}"

        with assembled.path.open("rb") as stream:
            await self._store_file(path, stream)

        video = VideoRecord(
            module_id=form.module_id,
            title=form.title,
            duration=form.duration,
            url_video=self._blob.public_url(path),
        )
        await self._records.insert(video)
        self._logger.info(
            "Video uploaded successfully",
            extra={"video_id": video.id, "url_video": video.url_video},
        )
        return video

    async def _store_file(self, path: str, stream: BinaryIO) -> None:
        """Write a file to blob storage and confirm it landed.

        Raises:
            VideoStorageException: If the write failed or left nothing behind.
        """
        directory = path.rsplit("/", 1)[0]
        try:
            if await self._blob.exists(directory):
                self._logger.info("Directory already exists", extra={"path": directory})
            else:
                await self._blob.make_directory(directory)
                self._logger.info("Directory created", extra={"path": directory})

            metadata = await self._blob.put(path, stream)
        except BlobStorageError as e:
            self._logger.error(
                "Failed to save file",
                extra={"path": path, "kind": e.kind.value, "reason": e.reason},
            )
            await self._cleanup(path)
            raise VideoStorageException(path, e.reason) from e

        if not await self._blob.exists(path):
            self._logger.error("Failed to save file", extra={"path": path})
            raise VideoStorageException(path, "file missing after write")

        self._logger.info(
            "File saved to storage",
            extra={"path": path, "size_bytes": metadata.size_bytes},
        )

    # =========================================================================
    # Update / delete
    # =========================================================================

    async def update_video(
        self,
        video_id: str,
        fields: Mapping[str, str],
        file: IncomingFile | None,
    ) -> VideoRecord:
        """Overwrite a video's metadata and optionally replace its file.

        Raises:
            VideoValidationException: If the metadata or file is invalid.
            VideoNotFoundException: If no record has this ID.
            VideoStorageException: If the new file could not be stored.
        """
        form = self._validator.validate(fields, file, file_required=False)
        video = await self.get_video(video_id)

        url_video: str | None = None
        if file is not None and file.filename:
            old_path = self._blob.path_from_public_url(video.url_video)
            cleanup = await self._cleanup(old_path)
            if cleanup.deleted:
                self._logger.info("Old video file deleted", extra={"path": old_path})

            path = f"{self._settings.videos_dir}/{uuid4().hex}.{file.extension}"
            await self._store_file(path, file.stream)
            url_video = self._blob.public_url(path)

        updated = video.with_changes(
            title=form.title,
            module_id=form.module_id,
            duration=form.duration,
            url_video=url_video,
        )
        if not await self._records.update(updated):
            raise VideoNotFoundException(video_id)

        self._logger.info(
            "Video updated",
            extra={"video_id": video_id, "file_replaced": url_video is not None},
        )
        return updated

    async def delete_video(self, video_id: str) -> CleanupResult:
        """Delete a video record and, best-effort, its file.

        Returns:
            What happened to the file. The record is gone either way.

        Raises:
            VideoNotFoundException: If no record has this ID.
        """
        video = await self.get_video(video_id)
        cleanup = await self._cleanup(self._blob.path_from_public_url(video.url_video))
        await self._records.delete(video_id)
        self._logger.info(
            "Video deleted",
            extra={"video_id": video_id, "file_deleted": cleanup.deleted},
        )
        return cleanup

    async def _cleanup(self, path: str | None) -> CleanupResult:
        """Remove a blob, logging instead of raising on failure."""
        if path is None:
            return CleanupResult(path=None, deleted=False, error="not a storage URL")
        try:
            deleted = await self._blob.delete(path)
        except BlobStorageError as e:
            self._logger.error(
                "Failed to delete file",
                extra={"path": path, "kind": e.kind.value, "reason": e.reason},
            )
            return CleanupResult(path=path, deleted=False, error=e.reason)
        if not deleted:
            self._logger.warning("File to delete not found", extra={"path": path})
        return CleanupResult(path=path, deleted=deleted)
