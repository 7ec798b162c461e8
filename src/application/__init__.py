"""Application layer - use cases and orchestration.

This layer contains:
- Services: upload orchestration, chunk receipt, validation
- DTOs: Data transfer objects for API boundaries
"""

from src.application.dtos import (
    AssembledFile,
    ChunkInfo,
    IncomingFile,
    UploadProgress,
    VideoForm,
)
from src.application.services import (
    ChunkReceiver,
    VideoRecordStore,
    VideoUploadService,
    VideoValidator,
)

__all__ = [
    # DTOs
    "AssembledFile",
    "ChunkInfo",
    "IncomingFile",
    "UploadProgress",
    "VideoForm",
    # Services
    "ChunkReceiver",
    "VideoRecordStore",
    "VideoUploadService",
    "VideoValidator",
]
