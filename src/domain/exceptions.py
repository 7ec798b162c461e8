"""Domain exceptions for the module video service."""


class DomainException(Exception):
    """Base exception for domain errors."""


class VideoNotFoundException(DomainException):
    """Raised when a requested video is not found."""

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id
        super().__init__(f"Video not found: {video_id}")


class VideoValidationException(DomainException):
    """Raised when submitted video data fails validation.

    ``errors`` maps each offending field to its messages.
    """

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        fields = ", ".join(sorted(errors))
        super().__init__(f"Validation failed for: {fields}")


class UploadMissingFileException(DomainException):
    """Raised when the expected file part is absent from an upload request."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"The request is missing a file in field '{field}'")


class InvalidChunkException(DomainException):
    """Raised when chunk metadata is malformed or inconsistent."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid chunk: {reason}")


class VideoStorageException(DomainException):
    """Raised when a video file could not be written to blob storage."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to save file {path}: {reason}")
