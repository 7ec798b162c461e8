"""FastAPI dependency injection for services and settings."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from src.application.services.validation import VideoValidator
from src.application.services.video_upload import VideoUploadService
from src.commons.settings.loader import get_settings as _load_settings
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)

logger = get_logger(__name__)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings loaded from config files and environment.
    """
    return _load_settings()


def get_infrastructure_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InfrastructureFactory:
    """Get infrastructure factory with all providers.

    Args:
        settings: Application settings.

    Returns:
        Configured infrastructure factory.
    """
    return get_factory(settings)


def get_video_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> VideoUploadService:
    """Get video upload service with all dependencies.

    Args:
        factory: Infrastructure factory.
        settings: Application settings.

    Returns:
        Configured video upload service.
    """
    return VideoUploadService(
        blob_storage=factory.get_blob_storage(),
        record_store=factory.get_record_store(),
        receiver=factory.get_chunk_receiver(),
        validator=VideoValidator(settings.upload),
        upload_settings=settings.upload,
    )


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
VideoServiceDep = Annotated[VideoUploadService, Depends(get_video_service)]


async def init_services(settings: Settings) -> None:
    """Initialize all infrastructure services on startup.

    Args:
        settings: Application settings.
    """
    # Initialize factory with settings
    factory = get_factory(settings)

    # Pre-initialize critical services to fail fast
    factory.get_blob_storage()
    await factory.get_record_store().ensure_schema()

    receiver = factory.get_chunk_receiver()
    receiver.start_reaper(settings.upload.reaper_interval_seconds)
    logger.info(
        "Services initialized",
        extra={
            "blob_provider": settings.blob_storage.provider,
            "reaper_interval_seconds": settings.upload.reaper_interval_seconds,
        },
    )


async def shutdown_services() -> None:
    """Shutdown all infrastructure services."""
    try:
        factory = get_factory()
    except ValueError:
        logger.debug("Factory was never initialized, nothing to close")
    else:
        await factory.close_all()
    finally:
        reset_factory()
        get_settings.cache_clear()
