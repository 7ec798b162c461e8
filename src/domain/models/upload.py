"""Upload session domain model."""

from datetime import UTC, datetime, timedelta
from typing import Self

from pydantic import BaseModel, Field


class UploadSession(BaseModel):
    """Assembly state of one chunked upload.

    Parts are keyed by chunk index. Depending on the client protocol the
    index is a chunk number or a byte offset; either way it orders the
    parts for assembly.
    """

    upload_key: str = Field(description="Identity grouping the chunks of one file")
    file_name: str = Field(description="Original client file name")
    total_chunks: int | None = Field(
        default=None,
        ge=1,
        description="Number of chunks the client announced, if any",
    )
    total_bytes: int | None = Field(
        default=None,
        ge=0,
        description="Total file size the client announced, if any",
    )
    parts: dict[int, int] = Field(
        default_factory=dict,
        description="Received chunk index -> chunk size in bytes",
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    last_activity_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def received_chunks(self) -> list[int]:
        """Received chunk indices in assembly order."""
        return sorted(self.parts)

    @property
    def bytes_received(self) -> int:
        return sum(self.parts.values())

    @property
    def is_complete(self) -> bool:
        """Whether every part of the file has arrived."""
        if self.total_chunks is not None:
            return all(i in self.parts for i in range(self.total_chunks))
        if self.total_bytes is not None:
            return self.bytes_received >= self.total_bytes
        return False

    @property
    def percentage_done(self) -> int:
        """Upload progress in whole percent, 100 only once complete."""
        if self.is_complete:
            return 100
        if self.total_bytes:
            done, total = min(self.bytes_received, self.total_bytes), self.total_bytes
        elif self.total_chunks:
            done, total = len(self.parts), self.total_chunks
        else:
            return 0
        # Ceiling division in integers
        return min(-(-done * 100 // total), 99)

    def is_expired(self, ttl_seconds: int, now: datetime | None = None) -> bool:
        """Whether the session saw no chunk for longer than ``ttl_seconds``."""
        now = now or datetime.now(UTC)
        return now - self.last_activity_at > timedelta(seconds=ttl_seconds)

    def record_part(self, index: int, size: int) -> Self:
        """Create a new instance with chunk ``index`` stored.

        A chunk arriving again for the same index replaces the earlier one.
        """
        return self.model_copy(
            update={
                "parts": {**self.parts, index: size},
                "last_activity_at": datetime.now(UTC),
            }
        )
