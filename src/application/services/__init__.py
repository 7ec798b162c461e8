"""Application services for video uploads and management."""

from src.application.services.chunk_handlers import (
    ChunkHandler,
    ContentRangeHandler,
    DropZoneHandler,
    ResumableJSHandler,
    SingleUploadHandler,
    parse_chunk,
)
from src.application.services.chunk_receiver import (
    ChunkReceiver,
    ReceiveResult,
    derive_upload_key,
)
from src.application.services.storage import VideoRecordStore
from src.application.services.validation import VideoValidator
from src.application.services.video_upload import CleanupResult, VideoUploadService

__all__ = [
    "ChunkHandler",
    "ChunkReceiver",
    "CleanupResult",
    "ContentRangeHandler",
    "DropZoneHandler",
    "ReceiveResult",
    "ResumableJSHandler",
    "SingleUploadHandler",
    "VideoRecordStore",
    "VideoUploadService",
    "VideoValidator",
    "derive_upload_key",
    "parse_chunk",
]
