"""Data Transfer Objects for application layer."""

from src.application.dtos.upload import (
    AssembledFile,
    ChunkInfo,
    IncomingFile,
    UploadProgress,
    VideoForm,
)

__all__ = [
    "AssembledFile",
    "ChunkInfo",
    "IncomingFile",
    "UploadProgress",
    "VideoForm",
]
