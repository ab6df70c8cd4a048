"""Unit tests for the UploadJob domain entity."""
import pytest

from src.domain.entities.upload_job import UploadJob
from src.domain.enums.upload_status import UploadStatus
from src.domain.events.domain_events import (
    UploadCompletedEvent,
    UploadFailedEvent,
    UploadProgressedEvent,
    UploadStartedEvent,
)
from src.domain.state_machine.upload_state_machine import InvalidUploadTransitionError


def _make_job(job_id: str = "img-1") -> UploadJob:
    return UploadJob(id=job_id, payload=b"\xff\xd8jpeg-bytes")


def _uploading_job() -> UploadJob:
    job = _make_job()
    job.start()
    job.collect_events()
    return job


class TestStart:
    def test_new_job_is_idle(self) -> None:
        job = _make_job()
        assert job.state == UploadStatus.IDLE
        assert job.attempt == 0

    def test_start_moves_to_uploading_at_zero(self) -> None:
        job = _make_job()
        assert job.start() is True
        assert job.state == UploadStatus.UPLOADING
        assert job.progress == 0.0
        assert job.attempt == 1

    def test_start_emits_started_event(self) -> None:
        job = _make_job()
        job.start()
        events = job.collect_events()
        assert len(events) == 1
        assert isinstance(events[0], UploadStartedEvent)
        assert events[0].job_id == "img-1"
        assert events[0].attempt == 1

    def test_start_while_uploading_is_noop(self) -> None:
        job = _uploading_job()
        assert job.start() is False
        assert job.attempt == 1
        assert job.collect_events() == []

    def test_start_after_uploaded_is_noop(self) -> None:
        job = _uploading_job()
        job.mark_uploaded("https://cdn.example.com/1.jpg")
        assert job.start() is False
        assert job.state == UploadStatus.UPLOADED


class TestProgress:
    def test_progress_increases(self) -> None:
        job = _uploading_job()
        assert job.report_progress(0.3) is True
        assert job.progress == 0.3
        events = job.collect_events()
        assert isinstance(events[0], UploadProgressedEvent)
        assert events[0].progress == 0.3

    def test_progress_never_regresses(self) -> None:
        job = _uploading_job()
        job.report_progress(0.5)
        assert job.report_progress(0.4) is False
        assert job.report_progress(0.5) is False
        assert job.progress == 0.5

    def test_progress_never_reaches_one(self) -> None:
        job = _uploading_job()
        assert job.report_progress(1.0) is False
        assert job.state == UploadStatus.UPLOADING
        assert job.progress == 0.0

    def test_progress_ignored_after_completion(self) -> None:
        job = _uploading_job()
        job.mark_failed("network error")
        job.collect_events()
        assert job.report_progress(0.2) is False
        assert job.collect_events() == []


class TestSettle:
    def test_mark_uploaded_records_url(self) -> None:
        job = _uploading_job()
        job.mark_uploaded("https://cdn.example.com/1.jpg")
        assert job.state == UploadStatus.UPLOADED
        assert job.url == "https://cdn.example.com/1.jpg"
        events = job.collect_events()
        assert isinstance(events[0], UploadCompletedEvent)

    def test_mark_failed_keeps_message_verbatim(self) -> None:
        job = _uploading_job()
        job.mark_failed("The Internet connection appears to be offline.")
        assert job.state == UploadStatus.FAILED
        assert job.error_message == "The Internet connection appears to be offline."
        events = job.collect_events()
        assert isinstance(events[0], UploadFailedEvent)

    def test_cannot_complete_idle_job(self) -> None:
        job = _make_job()
        with pytest.raises(InvalidUploadTransitionError):
            job.mark_uploaded("https://cdn.example.com/1.jpg")


class TestRetry:
    def test_retry_resets_failed_job(self) -> None:
        job = _uploading_job()
        job.report_progress(0.6)
        job.mark_failed("network error")
        assert job.retry() is True
        assert job.state == UploadStatus.UPLOADING
        assert job.progress == 0.0
        assert job.error_message is None
        assert job.attempt == 2

    def test_retry_is_noop_unless_failed(self) -> None:
        job = _make_job()
        assert job.retry() is False
        assert job.state == UploadStatus.IDLE

        job.start()
        assert job.retry() is False
        assert job.attempt == 1


class TestSnapshot:
    def test_snapshot_reflects_current_state(self) -> None:
        job = _uploading_job()
        job.report_progress(0.2)
        snapshot = job.to_snapshot()
        assert snapshot.job_id == "img-1"
        assert snapshot.status == UploadStatus.UPLOADING
        assert snapshot.progress == 0.2
        assert snapshot.attempt == 1

    def test_snapshot_is_detached(self) -> None:
        job = _uploading_job()
        snapshot = job.to_snapshot()
        job.mark_uploaded("https://cdn.example.com/1.jpg")
        assert snapshot.status == UploadStatus.UPLOADING
        assert snapshot.url is None
