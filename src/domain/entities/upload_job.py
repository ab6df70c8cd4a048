from dataclasses import dataclass, field
from datetime import datetime, timezone

from src.domain.enums.upload_status import UploadStatus
from src.domain.events.domain_events import (
    DomainEvent,
    UploadCompletedEvent,
    UploadFailedEvent,
    UploadProgressedEvent,
    UploadStartedEvent,
)
from src.domain.state_machine.upload_state_machine import UploadStateMachine

_state_machine = UploadStateMachine()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UploadJobSnapshot:
    """Immutable point-in-time view of one job, safe to hand to observers."""

    job_id: str
    status: UploadStatus
    progress: float
    url: str | None
    error_message: str | None
    attempt: int


@dataclass
class UploadJob:
    """
    One image selected for a pending listing and its upload attempt.

    The payload never changes after creation. `attempt` counts transport calls
    started for this job and doubles as the generation used to recognise stale
    progress ticks and late transport results.
    """

    id: str
    payload: bytes = field(repr=False)

    state: UploadStatus = UploadStatus.IDLE
    progress: float = 0.0
    url: str | None = None
    error_message: str | None = None
    attempt: int = 0

    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    # Pending domain events (collected and cleared by the aggregator)
    _events: list[DomainEvent] = field(default_factory=list, repr=False, compare=False)

    # -------------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------------

    def start(self) -> bool:
        """Begin a fresh attempt. No-op (returns False) while uploading or once uploaded."""
        if self.state in (UploadStatus.UPLOADING, UploadStatus.UPLOADED):
            return False

        _state_machine.validate_transition(self.state, UploadStatus.UPLOADING)

        self.state = UploadStatus.UPLOADING
        self.progress = 0.0
        self.url = None
        self.error_message = None
        self.attempt += 1
        self.updated_at = _utcnow()

        self._events.append(UploadStartedEvent(job_id=self.id, attempt=self.attempt))
        return True

    def retry(self) -> bool:
        """Restart a failed job. No-op (returns False) in any other state."""
        if self.state is not UploadStatus.FAILED:
            return False
        return self.start()

    def report_progress(self, progress: float) -> bool:
        """
        Record a progress estimate for the current attempt.

        Values that would regress, repeat, or reach 1.0 are ignored, as is any
        update outside UPLOADING.
        """
        if self.state is not UploadStatus.UPLOADING:
            return False
        if not self.progress < progress < 1.0:
            return False

        self.progress = progress
        self.updated_at = _utcnow()
        self._events.append(
            UploadProgressedEvent(job_id=self.id, attempt=self.attempt, progress=progress)
        )
        return True

    def mark_uploaded(self, url: str) -> None:
        _state_machine.validate_transition(self.state, UploadStatus.UPLOADED)

        self.state = UploadStatus.UPLOADED
        self.url = url
        self.error_message = None
        self.updated_at = _utcnow()
        self._events.append(UploadCompletedEvent(job_id=self.id, attempt=self.attempt, url=url))

    def mark_failed(self, message: str) -> None:
        _state_machine.validate_transition(self.state, UploadStatus.FAILED)

        self.state = UploadStatus.FAILED
        self.error_message = message
        self.updated_at = _utcnow()
        self._events.append(
            UploadFailedEvent(job_id=self.id, attempt=self.attempt, error_message=message)
        )

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def to_snapshot(self) -> UploadJobSnapshot:
        return UploadJobSnapshot(
            job_id=self.id,
            status=self.state,
            progress=self.progress,
            url=self.url,
            error_message=self.error_message,
            attempt=self.attempt,
        )

    # -------------------------------------------------------------------------
    # Event collection
    # -------------------------------------------------------------------------

    def collect_events(self) -> list[DomainEvent]:
        """Return pending events and clear the internal buffer."""
        events = list(self._events)
        self._events.clear()
        return events
