"""MinIO implementation of blob storage."""

import asyncio
import io
import time
from datetime import UTC, datetime
from typing import BinaryIO

from minio import Minio
from minio.error import S3Error

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

_MISSING_CODES = {"NoSuchKey", "NoSuchBucket"}
_S3_KINDS = {
    "AccessDenied": BlobErrorKind.PERMISSION_DENIED,
    "InvalidAccessKeyId": BlobErrorKind.PERMISSION_DENIED,
    "SignatureDoesNotMatch": BlobErrorKind.PERMISSION_DENIED,
    "InvalidObjectName": BlobErrorKind.PATH_INVALID,
    "KeyTooLongError": BlobErrorKind.PATH_INVALID,
    "XMinioStorageFull": BlobErrorKind.DISK_FULL,
    "QuotaExceeded": BlobErrorKind.DISK_FULL,
}


def _storage_error(path: str, exc: S3Error) -> BlobStorageError:
    kind = _S3_KINDS.get(exc.code or "", BlobErrorKind.IO_ERROR)
    return BlobStorageError(path, kind, exc.message or str(exc))


class MinioBlobStorage(BlobStorageBase):
    """MinIO implementation of blob storage.

    Works with both MinIO (local development) and AWS S3 (production).
    All blobs live in one bucket; object keys are the blob paths.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        secure: bool = False,
        region: str | None = None,
        public_base_url: str | None = None,
    ) -> None:
        """Initialize MinIO client.

        Args:
            endpoint: MinIO/S3 endpoint (e.g., "localhost:9000").
            access_key: Access key ID.
            secret_key: Secret access key.
            bucket: Bucket holding every blob.
            secure: Use HTTPS connection.
            region: AWS region (optional, for S3).
            public_base_url: URL prefix for public links. Defaults to
                the endpoint's bucket URL.
        """
        self._client = Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )
        self._endpoint = endpoint
        self._bucket = bucket
        scheme = "https" if secure else "http"
        self._public_base = public_base_url or f"{scheme}://{endpoint}/{bucket}"

    async def put(self, path: str, data: BinaryIO | bytes) -> BlobMetadata:
        """Upload a blob as a single object."""
        loop = asyncio.get_running_loop()

        if isinstance(data, bytes):
            data_io: BinaryIO = io.BytesIO(data)
            length = len(data)
        else:
            start = data.tell()
            data.seek(0, io.SEEK_END)
            length = data.tell() - start
            data.seek(start)
            data_io = data

        def _upload() -> None:
            try:
                self._client.put_object(
                    bucket_name=self._bucket,
                    object_name=path,
                    data=data_io,
                    length=length,
                )
            except S3Error as e:
                raise _storage_error(path, e) from e

        await loop.run_in_executor(None, _upload)
        return BlobMetadata(path=path, size_bytes=length, created_at=datetime.now(UTC))

    async def read(self, path: str) -> bytes:
        """Download a blob."""
        loop = asyncio.get_running_loop()

        def _download() -> bytes:
            try:
                response = self._client.get_object(self._bucket, path)
            except S3Error as e:
                if e.code in _MISSING_CODES:
                    raise BlobNotFoundError(path) from e
                raise _storage_error(path, e) from e
            try:
                data: bytes = response.read()
                return data
            finally:
                response.close()
                response.release_conn()

        return await loop.run_in_executor(None, _download)

    async def exists(self, path: str) -> bool:
        """Check if an object exists. Prefix-only "directories" never do."""
        loop = asyncio.get_running_loop()

        def _stat() -> bool:
            try:
                self._client.stat_object(self._bucket, path)
                return True
            except S3Error as e:
                if e.code in _MISSING_CODES:
                    return False
                raise _storage_error(path, e) from e

        return await loop.run_in_executor(None, _stat)

    async def delete(self, path: str) -> bool:
        """Delete an object."""
        if not await self.exists(path):
            return False

        loop = asyncio.get_running_loop()

        def _delete() -> None:
            try:
                self._client.remove_object(self._bucket, path)
            except S3Error as e:
                raise _storage_error(path, e) from e

        await loop.run_in_executor(None, _delete)
        return True

    async def make_directory(self, path: str, recursive: bool = True) -> None:
        """Object keys need no directories; only the bucket must exist."""
        loop = asyncio.get_running_loop()

        def _ensure_bucket() -> None:
            try:
                if not self._client.bucket_exists(self._bucket):
                    self._client.make_bucket(self._bucket)
            except S3Error as e:
                raise _storage_error(path, e) from e

        await loop.run_in_executor(None, _ensure_bucket)

    def public_url(self, path: str) -> str:
        return join_url(self._public_base, path)

    def path_from_public_url(self, url: str) -> str | None:
        return strip_url_prefix(self._public_base, url)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._client.bucket_exists, self._bucket)
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="MinIO is healthy",
                details={"endpoint": self._endpoint, "bucket": self._bucket},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"MinIO health check failed: {e}",
                details={"endpoint": self._endpoint, "error": str(e)},
            )
