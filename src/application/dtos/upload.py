"""DTOs for video upload operations."""

from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import BinaryIO

from pydantic import BaseModel, Field


class VideoForm(BaseModel):
    """Validated metadata fields of a create or update request."""

    title: str = Field(min_length=1, max_length=255, description="Video title")
    module_id: int = Field(description="Course module ID")
    duration: int = Field(ge=0, description="Video duration in seconds")


class UploadProgress(BaseModel):
    """Progress of an upload that is still missing chunks."""

    done: int = Field(ge=0, le=100, description="Percentage of the file received")


@dataclass
class IncomingFile:
    """One file part of a request, decoupled from the web framework."""

    filename: str
    stream: BinaryIO
    size: int
    content_type: str | None = None

    @property
    def extension(self) -> str:
        """Extension of the client file name, without the dot."""
        return PurePath(self.filename).suffix.lstrip(".")


@dataclass(frozen=True)
class ChunkInfo:
    """Where one chunk belongs inside its file.

    Attributes:
        index: Ordering key of the chunk (chunk number or byte offset).
        file_name: Client file name the chunk belongs to.
        total_chunks: Announced number of chunks, if the protocol sends it.
        total_bytes: Announced file size, if the protocol sends it.
        identifier: Client-side upload identifier, if the protocol has one.
        handler: Name of the protocol handler that parsed the request.
    """

    index: int
    file_name: str
    total_chunks: int | None = None
    total_bytes: int | None = None
    identifier: str | None = None
    handler: str = "single"


@dataclass(frozen=True)
class AssembledFile:
    """A fully received upload waiting on local disk to be stored."""

    path: Path
    original_name: str
    size_bytes: int

    @property
    def extension(self) -> str:
        return PurePath(self.original_name).suffix.lstrip(".")
