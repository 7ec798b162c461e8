"""Request validation for video create and update operations."""

from collections.abc import Mapping
from pathlib import PurePath
from typing import Any

from pydantic import ValidationError

from src.application.dtos.upload import IncomingFile, VideoForm
from src.commons.settings.models import UploadSettings
from src.domain.exceptions import VideoValidationException

FieldErrors = dict[str, list[str]]

_FORM_FIELDS = tuple(VideoForm.model_fields)


def _label(field: str) -> str:
    return field.replace("_", " ")


def size_limit_message(field: str, max_bytes: int) -> str:
    """Message for a file over the size limit."""
    return (
        f"The {_label(field)} may not be greater than "
        f"{max_bytes // 1024} kilobytes."
    )


def _message(field: str, error: Mapping[str, Any]) -> str:
    """Human-readable message for one pydantic error."""
    label = _label(field)
    ctx = error.get("ctx") or {}
    kind = error["type"]
    if kind in ("missing", "string_too_short"):
        return f"The {label} field is required."
    if kind == "string_too_long":
        return f"The {label} may not be greater than {ctx['max_length']} characters."
    if kind in ("int_parsing", "int_type", "int_from_float"):
        return f"The {label} must be an integer."
    if kind == "greater_than_equal":
        return f"The {label} must be at least {ctx['ge']}."
    return str(error["msg"])


class VideoValidator:
    """Validates video metadata and the accompanying file.

    All problems are collected before raising, so clients get every
    field error of a request at once.
    """

    def __init__(self, settings: UploadSettings) -> None:
        self._file_field = settings.file_field
        self._allowed = [ext.lower() for ext in settings.allowed_extensions]
        self._max_bytes = settings.max_file_size_bytes

    def validate(
        self,
        fields: Mapping[str, str],
        file: IncomingFile | None,
        *,
        file_required: bool,
    ) -> VideoForm:
        """Validate a create/update request.

        Args:
            fields: Submitted form fields.
            file: Submitted file part, if any.
            file_required: Whether the file must be present.

        Returns:
            The parsed metadata.

        Raises:
            VideoValidationException: With per-field messages.
        """
        errors: FieldErrors = {}

        # Blank inputs count as absent
        submitted = {
            name: str(fields[name]).strip()
            for name in _FORM_FIELDS
            if fields.get(name) is not None and str(fields[name]).strip() != ""
        }

        form: VideoForm | None = None
        try:
            form = VideoForm.model_validate(submitted)
        except ValidationError as e:
            for error in e.errors():
                field = str(error["loc"][0])
                errors.setdefault(field, []).append(_message(field, error))

        file_errors = self.file_errors(file, required=file_required)
        if file_errors:
            errors[self._file_field] = file_errors

        if errors or form is None:
            raise VideoValidationException(errors)
        return form

    def file_errors(self, file: IncomingFile | None, *, required: bool) -> list[str]:
        """Problems with the file part, empty when it is acceptable."""
        label = _label(self._file_field)
        if file is None or not file.filename:
            return [f"The {label} field is required."] if required else []

        return self._extension_errors(file.filename) + self._size_errors(file.size)

    def check_declared_size(self, total_bytes: int | None) -> None:
        """Reject an upload whose announced total size exceeds the limit.

        Raises:
            VideoValidationException: If the size is over the limit.
        """
        if total_bytes is None:
            return
        problems = self._size_errors(total_bytes)
        if problems:
            raise VideoValidationException({self._file_field: problems})

    def check_extension(self, file_name: str) -> None:
        """Reject a file name whose extension is not an allowed container.

        Chunked uploads may name the file in their own metadata, so the name
        the assembled file is stored under is checked separately from the
        file part.

        Raises:
            VideoValidationException: If the extension is not allowed.
        """
        problems = self._extension_errors(file_name)
        if problems:
            raise VideoValidationException({self._file_field: problems})

    def _extension_errors(self, file_name: str) -> list[str]:
        extension = PurePath(file_name).suffix.lstrip(".").lower()
        if extension not in self._allowed:
            return [
                f"The {_label(self._file_field)} must be a file of type: "
                f"{', '.join(self._allowed)}."
            ]
        return []

    def _size_errors(self, size: int) -> list[str]:
        if size > self._max_bytes:
            return [size_limit_message(self._file_field, self._max_bytes)]
        return []
