"""Unit tests for Application DTOs."""

import io
from pathlib import Path

import pytest
from pydantic import ValidationError

from src.application.dtos.upload import (
    AssembledFile,
    ChunkInfo,
    IncomingFile,
    UploadProgress,
    VideoForm,
)


class TestVideoForm:
    """Tests for VideoForm DTO."""

    def test_coerces_numeric_strings(self):
        """Test form strings are parsed into integers."""
        form = VideoForm.model_validate(
            {"title": "Intro", "module_id": "5", "duration": "120"}
        )
        assert form.module_id == 5
        assert form.duration == 120

    def test_empty_title_rejected(self):
        with pytest.raises(ValidationError):
            VideoForm(title="", module_id=1, duration=1)

    def test_title_length_limit(self):
        VideoForm(title="x" * 255, module_id=1, duration=1)
        with pytest.raises(ValidationError):
            VideoForm(title="x" * 256, module_id=1, duration=1)

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError):
            VideoForm(title="Intro", module_id=1, duration=-1)


class TestUploadProgress:
    """Tests for UploadProgress DTO."""

    def test_serializes_as_done(self):
        assert UploadProgress(done=40).model_dump() == {"done": 40}

    @pytest.mark.parametrize("done", [-1, 101])
    def test_bounds(self, done):
        with pytest.raises(ValidationError):
            UploadProgress(done=done)


class TestIncomingFile:
    """Tests for IncomingFile DTO."""

    @pytest.mark.parametrize(
        ("filename", "extension"),
        [
            ("intro.mp4", "mp4"),
            ("archive.tar.mkv", "mkv"),
            ("UPPER.AVI", "AVI"),
            ("noext", ""),
        ],
    )
    def test_extension(self, filename, extension):
        file = IncomingFile(filename=filename, stream=io.BytesIO(b""), size=0)
        assert file.extension == extension

    def test_content_type_optional(self):
        file = IncomingFile(filename="a.mp4", stream=io.BytesIO(b"a"), size=1)
        assert file.content_type is None


class TestChunkInfo:
    """Tests for ChunkInfo DTO."""

    def test_defaults_describe_single_upload(self):
        chunk = ChunkInfo(index=0, file_name="intro.mp4")
        assert chunk.total_chunks is None
        assert chunk.total_bytes is None
        assert chunk.identifier is None
        assert chunk.handler == "single"

    def test_is_frozen(self):
        chunk = ChunkInfo(index=0, file_name="intro.mp4")
        with pytest.raises(AttributeError):
            chunk.index = 1  # type: ignore[misc]


class TestAssembledFile:
    """Tests for AssembledFile DTO."""

    def test_extension_comes_from_original_name(self, tmp_path: Path):
        assembled = AssembledFile(
            path=tmp_path / "abc.assembled",
            original_name="intro.mp4",
            size_bytes=3,
        )
        assert assembled.extension == "mp4"
