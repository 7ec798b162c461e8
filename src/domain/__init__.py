"""Domain layer - business models and exceptions."""

from src.domain.exceptions import (
    DomainException,
    InvalidChunkException,
    UploadMissingFileException,
    VideoNotFoundException,
    VideoStorageException,
    VideoValidationException,
)
from src.domain.models import UploadSession, VideoRecord

__all__ = [
    # Exceptions
    "DomainException",
    "VideoNotFoundException",
    "VideoValidationException",
    "UploadMissingFileException",
    "InvalidChunkException",
    "VideoStorageException",
    # Models
    "VideoRecord",
    "UploadSession",
]
