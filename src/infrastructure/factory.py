"""Infrastructure factory for creating service instances from configuration."""

from pathlib import Path
from typing import Any, cast

from src.application.services.chunk_receiver import ChunkReceiver
from src.application.services.storage import VideoRecordStore
from src.commons.infrastructure.blob import (
    BlobStorageBase,
    LocalBlobStorage,
    MinioBlobStorage,
)
from src.commons.infrastructure.documentdb import DocumentDBBase, MongoDBDocumentDB
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings and
    keeps one instance of each for the lifetime of the process.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize factory with settings.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._instances: dict[str, Any] = {}
        self._logger = get_logger(__name__)

    def get_blob_storage(self) -> BlobStorageBase:
        """Get blob storage instance.

        Returns:
            Configured blob storage provider.

        Raises:
            ValueError: If provider is not supported.
        """
        if "blob_storage" not in self._instances:
            blob_settings = self._settings.blob_storage
            provider = blob_settings.provider

            if provider == "local":
                self._instances["blob_storage"] = LocalBlobStorage(
                    root=Path(blob_settings.root_path),
                    public_url_prefix=blob_settings.public_url_prefix,
                )
            elif provider == "minio":
                self._instances["blob_storage"] = MinioBlobStorage(
                    endpoint=blob_settings.endpoint,
                    access_key=blob_settings.access_key,
                    secret_key=blob_settings.secret_key,
                    bucket=blob_settings.bucket,
                    secure=blob_settings.use_ssl,
                    region=blob_settings.region,
                    public_base_url=blob_settings.public_base_url,
                )
            else:
                raise ValueError(f"Unsupported blob storage provider: {provider}")

        return cast("BlobStorageBase", self._instances["blob_storage"])

    def get_document_db(self) -> DocumentDBBase:
        """Get document database instance.

        Returns:
            Configured document database provider.
        """
        if "document_db" not in self._instances:
            doc_settings = self._settings.document_db
            # Build connection string from settings
            if doc_settings.username and doc_settings.password:
                connection_string = (
                    f"mongodb://{doc_settings.username}:{doc_settings.password}"
                    f"@{doc_settings.host}:{doc_settings.port}"
                    f"/?authSource={doc_settings.auth_source}"
                )
            else:
                connection_string = f"mongodb://{doc_settings.host}:{doc_settings.port}"
            self._instances["document_db"] = MongoDBDocumentDB(
                connection_string=connection_string,
                database_name=doc_settings.database,
            )
        return cast("DocumentDBBase", self._instances["document_db"])

    def get_record_store(self) -> VideoRecordStore:
        """Get the video record repository."""
        if "record_store" not in self._instances:
            self._instances["record_store"] = VideoRecordStore(
                document_db=self.get_document_db(),
                doc_settings=self._settings.document_db,
            )
        return cast("VideoRecordStore", self._instances["record_store"])

    def get_chunk_receiver(self) -> ChunkReceiver:
        """Get the chunk receiver.

        There is exactly one per process, since it owns the upload sessions.
        """
        if "chunk_receiver" not in self._instances:
            upload_settings = self._settings.upload
            self._instances["chunk_receiver"] = ChunkReceiver(
                work_dir=Path(upload_settings.work_dir),
                session_ttl_seconds=upload_settings.session_ttl_seconds,
                file_field=upload_settings.file_field,
                max_bytes=upload_settings.max_file_size_bytes,
            )
        return cast("ChunkReceiver", self._instances["chunk_receiver"])

    async def close_all(self) -> None:
        """Close all service connections."""
        receiver = self._instances.get("chunk_receiver")
        if receiver is not None:
            await receiver.stop_reaper()

        # Close services that have close methods
        for name, instance in self._instances.items():
            if not hasattr(instance, "close"):
                continue
            try:
                close_result = instance.close()
                if hasattr(close_result, "__await__"):
                    await close_result
            except Exception:
                self._logger.exception(
                    "Failed to close service", extra={"service": name}
                )

        self._instances.clear()


class _FactoryHolder:
    """Holder for the factory singleton to avoid global statements."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Get or create the infrastructure factory singleton.

    Args:
        settings: Settings to use. Required on first call.

    Returns:
        Infrastructure factory instance.

    Raises:
        ValueError: If settings not provided on first call.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Reset the factory singleton (for testing)."""
    _FactoryHolder.instance = None
