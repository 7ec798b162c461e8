"""Blob storage abstractions and implementations."""

from src.commons.infrastructure.blob.base import (
    BlobErrorKind,
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBase,
    BlobStorageError,
    HealthStatus,
)
from src.commons.infrastructure.blob.local_provider import LocalBlobStorage
from src.commons.infrastructure.blob.minio_provider import MinioBlobStorage

__all__ = [
    # Base classes
    "BlobMetadata",
    "BlobStorageBase",
    "HealthStatus",
    # Implementations
    "LocalBlobStorage",
    "MinioBlobStorage",
    # Exceptions
    "BlobErrorKind",
    "BlobNotFoundError",
    "BlobStorageError",
]
