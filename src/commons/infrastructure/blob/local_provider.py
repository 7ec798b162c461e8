"""Local filesystem implementation of blob storage."""

import asyncio
import errno
import shutil
import time
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from src.commons.infrastructure.blob.base import (
    BlobErrorKind,
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBase,
    BlobStorageError,
    HealthStatus,
    join_url,
    strip_url_prefix,
)

_ERRNO_KINDS = {
    errno.ENOSPC: BlobErrorKind.DISK_FULL,
    errno.EDQUOT: BlobErrorKind.DISK_FULL,
    errno.EACCES: BlobErrorKind.PERMISSION_DENIED,
    errno.EPERM: BlobErrorKind.PERMISSION_DENIED,
    errno.EROFS: BlobErrorKind.PERMISSION_DENIED,
    errno.ENOENT: BlobErrorKind.PATH_INVALID,
    errno.ENOTDIR: BlobErrorKind.PATH_INVALID,
    errno.EISDIR: BlobErrorKind.PATH_INVALID,
    errno.ENAMETOOLONG: BlobErrorKind.PATH_INVALID,
    errno.EINVAL: BlobErrorKind.PATH_INVALID,
}


def _storage_error(path: str, exc: OSError) -> BlobStorageError:
    kind = _ERRNO_KINDS.get(exc.errno or 0, BlobErrorKind.IO_ERROR)
    return BlobStorageError(path, kind, exc.strerror or str(exc))


class LocalBlobStorage(BlobStorageBase):
    """Stores blobs as plain files below a root directory.

    The root is meant to be publicly served (see ``serve_public`` in the
    blob storage settings), so ``public_url`` is the URL prefix joined
    with the relative path.
    """

    def __init__(self, root: Path, public_url_prefix: str = "/storage") -> None:
        """Initialize the store.

        Args:
            root: Directory holding all blobs. Created if missing.
            public_url_prefix: URL prefix under which ``root`` is served.
        """
        self._root = root
        self._prefix = public_url_prefix
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path)
        if not path or relative.is_absolute() or ".." in relative.parts:
            raise BlobStorageError(
                path, BlobErrorKind.PATH_INVALID, "path must be relative"
            )
        return self._root.joinpath(*relative.parts)

    async def put(self, path: str, data: BinaryIO | bytes) -> BlobMetadata:
        """Write a blob to disk, streaming file-like sources."""
        target = self._resolve(path)
        loop = asyncio.get_running_loop()

        def _write() -> int:
            try:
                with target.open("wb") as out:
                    if isinstance(data, bytes):
                        out.write(data)
                    else:
                        shutil.copyfileobj(data, out, length=1024 * 1024)
                return target.stat().st_size
            except OSError as e:
                raise _storage_error(path, e) from e

        size = await loop.run_in_executor(None, _write)
        return BlobMetadata(path=path, size_bytes=size, created_at=datetime.now(UTC))

    async def read(self, path: str) -> bytes:
        """Read a blob from disk."""
        target = self._resolve(path)
        loop = asyncio.get_running_loop()

        def _read() -> bytes:
            try:
                return target.read_bytes()
            except (FileNotFoundError, IsADirectoryError) as e:
                raise BlobNotFoundError(path) from e
            except OSError as e:
                raise _storage_error(path, e) from e

        return await loop.run_in_executor(None, _read)

    async def exists(self, path: str) -> bool:
        """Check whether a file or directory exists."""
        target = self._resolve(path)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, target.exists)

    async def delete(self, path: str) -> bool:
        """Delete a blob file."""
        target = self._resolve(path)
        loop = asyncio.get_running_loop()

        def _delete() -> bool:
            try:
                target.unlink()
                return True
            except FileNotFoundError:
                return False
            except OSError as e:
                raise _storage_error(path, e) from e

        return await loop.run_in_executor(None, _delete)

    async def make_directory(self, path: str, recursive: bool = True) -> None:
        """Create a directory below the root."""
        target = self._resolve(path)
        loop = asyncio.get_running_loop()

        def _mkdir() -> None:
            try:
                target.mkdir(parents=recursive, exist_ok=True)
            except OSError as e:
                raise _storage_error(path, e) from e

        await loop.run_in_executor(None, _mkdir)

    def public_url(self, path: str) -> str:
        return join_url(self._prefix, path)

    def path_from_public_url(self, url: str) -> str | None:
        return strip_url_prefix(self._prefix, url)

    async def health_check(self) -> HealthStatus:
        """Check that the root directory is present and writable."""
        start = time.perf_counter()
        loop = asyncio.get_running_loop()
        marker = self._root / ".health"

        def _write_marker() -> None:
            marker.write_bytes(b"ok")
            marker.unlink()

        try:
            await loop.run_in_executor(None, _write_marker)
            return HealthStatus(
                healthy=True,
                latency_ms=(time.perf_counter() - start) * 1000,
                message="Local storage is healthy",
                details={"root": str(self._root)},
            )
        except OSError as e:
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"Local storage health check failed: {e}",
                details={"root": str(self._root), "error": str(e)},
            )
