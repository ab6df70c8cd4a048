from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class UploadStartedEvent(DomainEvent):
    """Published when a job begins a transport attempt (first start or retry)."""

    job_id: str = ""
    attempt: int = 0


@dataclass(frozen=True)
class UploadProgressedEvent(DomainEvent):
    """Published for each accepted progress update of an in-flight attempt."""

    job_id: str = ""
    attempt: int = 0
    progress: float = 0.0


@dataclass(frozen=True)
class UploadCompletedEvent(DomainEvent):
    """Published when the transport returns the remote URL for a job."""

    job_id: str = ""
    attempt: int = 0
    url: str = ""


@dataclass(frozen=True)
class UploadFailedEvent(DomainEvent):
    """Published when the transport call for an attempt fails."""

    job_id: str = ""
    attempt: int = 0
    error_message: str = ""


@dataclass(frozen=True)
class UploadJobRemovedEvent(DomainEvent):
    """Published when the user discards an image from the pending listing."""

    job_id: str = ""
    url: str | None = None


@dataclass(frozen=True)
class UploadsResetEvent(DomainEvent):
    """Published when every job is dropped at once."""

    removed_job_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class ListingCreatedEvent(DomainEvent):
    """Published when the marketplace accepts a new listing."""

    listing_id: str = ""
    title: str = ""
    image_urls: tuple[str, ...] = ()
