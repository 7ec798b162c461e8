"""Domain models."""

from src.domain.models.upload import UploadSession
from src.domain.models.video import VideoRecord

__all__ = [
    "UploadSession",
    "VideoRecord",
]
