"""Settings management module."""

from src.commons.settings.loader import SettingsLoader, get_settings, reset_settings
from src.commons.settings.models import (
    AppSettings,
    BlobStorageSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    ServerSettings,
    Settings,
    TelemetrySettings,
    UploadSettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    "ServerSettings",
    # Storage
    "BlobStorageSettings",
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    # Uploads
    "UploadSettings",
    # Telemetry
    "TelemetrySettings",
]
