"""Unit tests for UploadSession model."""

from datetime import UTC, datetime, timedelta

import pytest

from src.domain.models.upload import UploadSession


class TestUploadSession:
    """Tests for chunk bookkeeping on UploadSession."""

    def test_empty_session(self):
        session = UploadSession(upload_key="k", file_name="a.mp4", total_chunks=3)
        assert session.received_chunks == []
        assert session.bytes_received == 0
        assert session.is_complete is False
        assert session.percentage_done == 0

    def test_record_part_returns_new_instance(self):
        session = UploadSession(upload_key="k", file_name="a.mp4", total_chunks=2)
        updated = session.record_part(0, 10)
        assert updated.parts == {0: 10}
        assert session.parts == {}

    def test_received_chunks_sorted_by_index(self):
        session = UploadSession(upload_key="k", file_name="a.mp4", total_chunks=3)
        session = session.record_part(2, 1).record_part(0, 1)
        assert session.received_chunks == [0, 2]

    def test_complete_when_all_indices_present(self):
        session = UploadSession(upload_key="k", file_name="a.mp4", total_chunks=3)
        for index in (2, 0, 1):
            assert session.is_complete is False
            session = session.record_part(index, 5)
        assert session.is_complete is True
        assert session.percentage_done == 100

    def test_duplicate_index_does_not_complete(self):
        session = UploadSession(upload_key="k", file_name="a.mp4", total_chunks=2)
        session = session.record_part(0, 5).record_part(0, 6)
        assert session.is_complete is False
        assert session.bytes_received == 6

    def test_complete_by_bytes_without_chunk_count(self):
        session = UploadSession(upload_key="k", file_name="a.mp4", total_bytes=10)
        session = session.record_part(0, 4)
        assert session.is_complete is False
        assert session.percentage_done == 40
        session = session.record_part(4, 6)
        assert session.is_complete is True

    def test_percentage_by_chunk_count(self):
        session = UploadSession(upload_key="k", file_name="a.mp4", total_chunks=3)
        session = session.record_part(0, 1)
        assert session.percentage_done == 34

    def test_percentage_never_100_while_incomplete(self):
        session = UploadSession(
            upload_key="k", file_name="a.mp4", total_chunks=2, total_bytes=100
        )
        session = session.record_part(1, 100)
        assert session.is_complete is False
        assert session.percentage_done == 99

    def test_unknown_totals_never_complete(self):
        session = UploadSession(upload_key="k", file_name="a.mp4")
        session = session.record_part(0, 100)
        assert session.is_complete is False
        assert session.percentage_done == 0

    def test_total_chunks_must_be_positive(self):
        with pytest.raises(ValueError):
            UploadSession(upload_key="k", file_name="a.mp4", total_chunks=0)

    def test_is_expired(self):
        session = UploadSession(upload_key="k", file_name="a.mp4", total_chunks=1)
        now = datetime.now(UTC)
        assert session.is_expired(60, now) is False
        assert session.is_expired(60, now + timedelta(seconds=61)) is True
