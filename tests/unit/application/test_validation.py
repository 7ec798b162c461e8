"""Unit tests for video request validation."""

import io

import pytest

from src.application.dtos.upload import IncomingFile
from src.application.services.validation import VideoValidator
from src.commons.settings.models import UploadSettings
from src.domain.exceptions import VideoValidationException

VALID_FIELDS = {"title": "Intro", "module_id": "5", "duration": "120"}


def _file(name: str = "intro.mp4", size: int = 4) -> IncomingFile:
    return IncomingFile(filename=name, stream=io.BytesIO(b"x" * size), size=size)


@pytest.fixture
def validator():
    return VideoValidator(UploadSettings(max_file_size_bytes=1024 * 1024))


def _errors(validator, fields, file, *, file_required=True) -> dict[str, list[str]]:
    with pytest.raises(VideoValidationException) as exc_info:
        validator.validate(fields, file, file_required=file_required)
    return exc_info.value.errors


class TestVideoValidator:
    """Tests for VideoValidator.validate."""

    def test_valid_request(self, validator):
        form = validator.validate(VALID_FIELDS, _file(), file_required=True)

        assert form.title == "Intro"
        assert form.module_id == 5
        assert form.duration == 120

    def test_title_is_trimmed(self, validator):
        form = validator.validate(
            {**VALID_FIELDS, "title": "  Intro  "}, _file(), file_required=True
        )
        assert form.title == "Intro"

    def test_missing_everything_reports_every_field(self, validator):
        errors = _errors(validator, {}, None)

        assert errors == {
            "title": ["The title field is required."],
            "module_id": ["The module id field is required."],
            "duration": ["The duration field is required."],
            "url_video": ["The url video field is required."],
        }

    def test_blank_title_is_required_error(self, validator):
        errors = _errors(validator, {**VALID_FIELDS, "title": "   "}, _file())
        assert errors == {"title": ["The title field is required."]}

    def test_title_too_long(self, validator):
        errors = _errors(validator, {**VALID_FIELDS, "title": "x" * 256}, _file())
        assert errors == {
            "title": ["The title may not be greater than 255 characters."]
        }

    @pytest.mark.parametrize("value", ["abc", "1.5"])
    def test_module_id_must_be_integer(self, validator, value):
        errors = _errors(validator, {**VALID_FIELDS, "module_id": value}, _file())
        assert errors == {"module_id": ["The module id must be an integer."]}

    def test_negative_duration(self, validator):
        errors = _errors(validator, {**VALID_FIELDS, "duration": "-1"}, _file())
        assert errors == {"duration": ["The duration must be at least 0."]}

    def test_wrong_extension(self, validator):
        errors = _errors(validator, VALID_FIELDS, _file("intro.mov"))
        assert errors == {
            "url_video": ["The url video must be a file of type: mp4, mkv, avi."]
        }

    def test_extension_is_case_insensitive(self, validator):
        form = validator.validate(VALID_FIELDS, _file("INTRO.MKV"), file_required=True)
        assert form.title == "Intro"

    def test_file_too_large(self, validator):
        errors = _errors(validator, VALID_FIELDS, _file(size=1024 * 1024 + 1))
        assert errors == {
            "url_video": ["The url video may not be greater than 1024 kilobytes."]
        }

    def test_file_optional_for_update(self, validator):
        form = validator.validate(VALID_FIELDS, None, file_required=False)
        assert form.module_id == 5

    def test_optional_file_is_still_checked(self, validator):
        errors = _errors(validator, VALID_FIELDS, _file("a.txt"), file_required=False)
        assert "url_video" in errors

    def test_file_without_name_counts_as_missing(self, validator):
        errors = _errors(validator, VALID_FIELDS, _file(name=""))
        assert errors == {"url_video": ["The url video field is required."]}


class TestDeclaredSize:
    """Tests for VideoValidator.check_declared_size."""

    def test_unknown_size_passes(self, validator):
        validator.check_declared_size(None)

    def test_within_limit(self, validator):
        validator.check_declared_size(1024 * 1024)

    def test_over_limit(self, validator):
        with pytest.raises(VideoValidationException) as exc_info:
            validator.check_declared_size(1024 * 1024 + 1)
        assert "url_video" in exc_info.value.errors


class TestStoredFileName:
    """Tests for VideoValidator.check_extension."""

    @pytest.mark.parametrize("name", ["intro.mp4", "intro.MKV", "a.b.avi"])
    def test_allowed(self, validator, name):
        validator.check_extension(name)

    @pytest.mark.parametrize("name", ["payload.exe", "intro.mp4.exe", "noext"])
    def test_rejected(self, validator, name):
        with pytest.raises(VideoValidationException) as exc_info:
            validator.check_extension(name)
        assert exc_info.value.errors == {
            "url_video": ["The url video must be a file of type: mp4, mkv, avi."]
        }
