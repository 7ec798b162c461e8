"""Pydantic settings models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "module-video-api"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/v1"
    docs_enabled: bool = True


class BlobStorageSettings(BaseModel):
    """Blob storage settings (local filesystem or MinIO/S3)."""

    provider: Literal["local", "minio"] = "local"
    root_path: str = "storage/app/public"
    public_url_prefix: str = "/storage"
    serve_public: bool = True

    # MinIO / S3 only
    endpoint: str = "localhost:9000"
    access_key: str = ""
    secret_key: str = ""
    use_ssl: bool = False
    region: str = "us-east-1"
    bucket: str = "videos"
    public_base_url: str | None = None


class DocumentCollectionSettings(BaseModel):
    """Document DB collection names."""

    videos: str = "videos"


class DocumentDBSettings(BaseModel):
    """Document database settings (MongoDB)."""

    provider: Literal["mongodb"] = "mongodb"
    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "module_videos"
    auth_source: str = "admin"
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )


class UploadSettings(BaseModel):
    """Chunked upload settings."""

    file_field: str = "url_video"
    work_dir: str = "storage/app/chunks"
    videos_dir: str = "videos"
    max_file_size_bytes: int = Field(default=2 * 1024**3, ge=1)  # 2 GiB
    allowed_extensions: list[str] = Field(
        default_factory=lambda: ["mp4", "mkv", "avi"]
    )
    session_ttl_seconds: int = Field(default=24 * 3600, ge=1)
    reaper_interval_seconds: int = Field(default=3600, ge=1)


class TelemetrySettings(BaseModel):
    """Logging settings."""

    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    blob_storage: BlobStorageSettings = Field(default_factory=BlobStorageSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VIDEO_API__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
