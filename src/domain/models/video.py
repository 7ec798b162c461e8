"""Video record domain model."""

from datetime import UTC, datetime
from typing import Self
from uuid import uuid4

from pydantic import BaseModel, Field


class VideoRecord(BaseModel):
    """Metadata for one uploaded module video.

    ``url_video`` is the public URL of the stored blob; the blob itself is
    owned by blob storage and addressed by the path behind that URL.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Internal UUID for this video record",
    )
    module_id: int = Field(description="Course module the video belongs to")
    title: str = Field(min_length=1, max_length=255, description="Video title")
    url_video: str = Field(description="Public URL of the stored video file")
    duration: int = Field(ge=0, description="Video duration in seconds")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When this record was created",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Last update timestamp",
    )

    def with_changes(
        self,
        *,
        title: str,
        module_id: int,
        duration: int,
        url_video: str | None = None,
    ) -> Self:
        """Create a new instance with overwritten metadata.

        Title, module and duration are always replaced; the URL only when
        a new one is given.

        Returns:
            A new VideoRecord with a fresh ``updated_at``.
        """
        updates: dict[str, object] = {
            "title": title,
            "module_id": module_id,
            "duration": duration,
            "updated_at": datetime.now(UTC),
        }
        if url_video is not None:
            updates["url_video"] = url_video
        return self.model_copy(update=updates)
