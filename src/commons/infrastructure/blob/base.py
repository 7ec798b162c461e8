"""Abstract base class for blob storage operations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import BinaryIO


class BlobErrorKind(str, Enum):
    """Why a storage operation failed."""

    DISK_FULL = "disk_full"
    PERMISSION_DENIED = "permission_denied"
    PATH_INVALID = "path_invalid"
    IO_ERROR = "io_error"


class BlobStorageError(Exception):
    """Raised when the backing store cannot complete an operation."""

    def __init__(self, path: str, kind: BlobErrorKind, reason: str) -> None:
        self.path = path
        self.kind = kind
        self.reason = reason
        super().__init__(f"Blob operation failed for '{path}' ({kind.value}): {reason}")


class BlobNotFoundError(Exception):
    """Raised when a blob is not found."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Blob not found: {path}")


@dataclass
class BlobMetadata:
    """Metadata for a stored blob."""

    path: str
    size_bytes: int
    created_at: datetime


@dataclass
class HealthStatus:
    """Health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None


def join_url(prefix: str, path: str) -> str:
    """Join a public URL prefix and a relative blob path."""
    return f"{prefix.rstrip('/')}/{path.lstrip('/')}"


def strip_url_prefix(prefix: str, url: str) -> str | None:
    """Inverse of ``join_url``; None when ``url`` is not under ``prefix``."""
    base = prefix.rstrip("/") + "/"
    if not url.startswith(base):
        return None
    return url[len(base) :] or None


class BlobStorageBase(ABC):
    """Key-addressed file storage.

    Paths are relative and '/'-separated, e.g. ``videos/module_5/Intro_5.mp4``.
    ``put`` is not atomic: a failed write can leave a partial blob behind, so
    callers confirm with ``exists`` before trusting it.

    Implementations:
    - Local filesystem (default, served under a public URL prefix)
    - MinIO / S3
    """

    @abstractmethod
    async def put(self, path: str, data: BinaryIO | bytes) -> BlobMetadata:
        """Write a blob, replacing any existing one at ``path``.

        Args:
            path: Relative blob path.
            data: File-like object (read from its current position) or bytes.

        Returns:
            Metadata of the stored blob.

        Raises:
            BlobStorageError: On disk full, permission or path problems.
        """

    @abstractmethod
    async def read(self, path: str) -> bytes:
        """Read a whole blob.

        Raises:
            BlobNotFoundError: If blob doesn't exist.
        """

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether a blob or directory exists at ``path``."""

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """Delete a blob.

        Returns:
            True if deleted, False if it didn't exist.

        Raises:
            BlobStorageError: If the blob exists but could not be removed.
        """

    @abstractmethod
    async def make_directory(self, path: str, recursive: bool = True) -> None:
        """Create a directory for blobs.

        Raises:
            BlobStorageError: If the directory cannot be created.
        """

    @abstractmethod
    def public_url(self, path: str) -> str:
        """Public URL under which the blob at ``path`` is reachable."""

    @abstractmethod
    def path_from_public_url(self, url: str) -> str | None:
        """Blob path for a URL produced by ``public_url``, or None."""

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health.

        Returns:
            Health status with latency info.
        """
