"""
Upload aggregator for the images of a listing being composed.

Each image becomes an UploadJob that starts uploading as soon as it is added.
The aggregator drives every job through the UploadTransport concurrently,
keeps the ordered list of finished URLs, and exposes aggregate flags the
submission step uses to decide whether a listing can be created.
"""
import asyncio
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass
from functools import partial
from types import MappingProxyType

import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.upload_transport import TransportError, UploadTransport
from src.config import settings
from src.domain.entities.upload_job import UploadJob, UploadJobSnapshot
from src.domain.enums.upload_status import UploadStatus
from src.domain.events.domain_events import (
    DomainEvent,
    UploadJobRemovedEvent,
    UploadsResetEvent,
)
from src.infrastructure.messaging.noop_publisher import NoOpEventPublisher

logger = structlog.get_logger(__name__)


class DuplicateJobError(Exception):
    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Upload job {job_id!r} already exists.")


class UnknownJobError(Exception):
    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Upload job {job_id!r} not found.")


@dataclass(frozen=True)
class UploadAggregateSnapshot:
    """Consistent point-in-time view of every job and the aggregate flags."""

    jobs: Mapping[str, UploadJobSnapshot]
    completed_urls: tuple[str, ...]
    all_uploaded: bool
    any_failed: bool

    @property
    def is_empty(self) -> bool:
        return not self.jobs

    @property
    def failed_job_ids(self) -> tuple[str, ...]:
        return tuple(
            job_id for job_id, job in self.jobs.items() if job.status is UploadStatus.FAILED
        )

    @property
    def in_flight_count(self) -> int:
        return sum(1 for job in self.jobs.values() if job.status is UploadStatus.UPLOADING)


class UploadAggregator:
    """
    Owns the upload jobs of one listing-creation session.

    Mutations are serialised by a single asyncio.Lock. Progress ticks and
    transport results carry the attempt number they belong to and are dropped
    if the job was removed, retried, or already settled in the meantime.
    Events are queued in mutation order and handed to the EventPublisher by
    one drainer at a time.
    """

    def __init__(
        self,
        transport: UploadTransport,
        event_publisher: EventPublisher | None = None,
        *,
        progress_interval: float = settings.progress_interval,
        progress_step: float = settings.progress_step,
        progress_ceiling: float = settings.progress_ceiling,
        max_concurrent_uploads: int | None = settings.max_concurrent_uploads,
    ) -> None:
        if not 0.0 <= progress_ceiling < 1.0:
            raise ValueError("progress_ceiling must be in [0.0, 1.0)")
        if max_concurrent_uploads is not None and max_concurrent_uploads < 1:
            raise ValueError("max_concurrent_uploads must be at least 1")

        self._transport = transport
        self._event_publisher = event_publisher or NoOpEventPublisher()
        self._progress_interval = progress_interval
        self._progress_step = progress_step
        self._progress_ceiling = progress_ceiling
        self._semaphore = (
            asyncio.Semaphore(max_concurrent_uploads) if max_concurrent_uploads else None
        )

        self._jobs: dict[str, UploadJob] = {}
        self._completed_urls: list[str] = []
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._running: set[asyncio.Task[None]] = set()
        self._lock = asyncio.Lock()

        self._outbox: deque[DomainEvent] = deque()
        self._flushing = False

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def completed_urls(self) -> tuple[str, ...]:
        return tuple(self._completed_urls)

    @property
    def all_uploaded(self) -> bool:
        return bool(self._jobs) and all(
            job.state is UploadStatus.UPLOADED for job in self._jobs.values()
        )

    @property
    def any_failed(self) -> bool:
        return any(job.state is UploadStatus.FAILED for job in self._jobs.values())

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    def snapshot(self) -> UploadAggregateSnapshot:
        jobs = {job_id: job.to_snapshot() for job_id, job in self._jobs.items()}
        return UploadAggregateSnapshot(
            jobs=MappingProxyType(jobs),
            completed_urls=tuple(self._completed_urls),
            all_uploaded=self.all_uploaded,
            any_failed=self.any_failed,
        )

    def get_job(self, job_id: str) -> UploadJobSnapshot:
        job = self._jobs.get(job_id)
        if job is None:
            raise UnknownJobError(job_id)
        return job.to_snapshot()

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add_job(self, job_id: str, payload: bytes) -> UploadJobSnapshot:
        """Register an image and start uploading it right away."""
        async with self._lock:
            if job_id in self._jobs:
                raise DuplicateJobError(job_id)

            job = UploadJob(id=job_id, payload=bytes(payload))
            self._jobs[job_id] = job
            if job.start():
                self._spawn_attempt(job)
            snapshot = job.to_snapshot()

        logger.info("upload_job_added", job_id=job_id, size_bytes=len(job.payload))
        await self._deliver_events()
        return snapshot

    async def retry_job(self, job_id: str, payload: bytes | None = None) -> UploadJobSnapshot:
        """
        Start a new attempt for a failed job. Jobs in any other state are left alone.

        The payload stored when the job was added is the one re-uploaded; a
        different payload passed here is ignored.
        """
        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise UnknownJobError(job_id)

            if payload is not None and bytes(payload) != job.payload:
                logger.warning("retry_payload_ignored", job_id=job_id)

            if job.retry():
                self._spawn_attempt(job)
                logger.info("upload_retried", job_id=job_id, attempt=job.attempt)
            snapshot = job.to_snapshot()

        await self._deliver_events()
        return snapshot

    async def remove_job(self, job_id: str) -> None:
        """Drop a job and its URL. Removing an unknown id does nothing."""
        async with self._lock:
            job = self._jobs.pop(job_id, None)
            if job is None:
                return

            removed_url = self._discard_url(job)
            self._cancel_attempt(job, self._tasks.pop(job_id, None))
            self._outbox.append(UploadJobRemovedEvent(job_id=job_id, url=removed_url))

        logger.info("upload_job_removed", job_id=job_id, status=job.state.value)
        await self._deliver_events()

    async def remove_submitted(
        self, submitted: Mapping[str, UploadJobSnapshot]
    ) -> tuple[str, ...]:
        """
        Remove the jobs a listing was just created from.

        Only jobs that are still UPLOADED with the URL seen at submission time
        are removed. Images added, retried or replaced while the listing call
        was in flight stay in the aggregator.
        """
        removed: list[str] = []
        async with self._lock:
            for job_id, seen in submitted.items():
                job = self._jobs.get(job_id)
                if job is None or job.state is not UploadStatus.UPLOADED or job.url != seen.url:
                    continue
                del self._jobs[job_id]
                self._tasks.pop(job_id, None)
                removed_url = self._discard_url(job)
                self._outbox.append(UploadJobRemovedEvent(job_id=job_id, url=removed_url))
                removed.append(job_id)

        logger.info(
            "submitted_uploads_released",
            removed_count=len(removed),
            remaining_count=len(self._jobs),
        )
        await self._deliver_events()
        return tuple(removed)

    async def reset(self) -> None:
        """Drop every job and clear the completed URLs."""
        async with self._lock:
            removed_ids = tuple(self._jobs)
            for job_id, job in self._jobs.items():
                self._cancel_attempt(job, self._tasks.get(job_id))

            self._jobs.clear()
            self._tasks.clear()
            self._completed_urls.clear()
            if removed_ids:
                self._outbox.append(UploadsResetEvent(removed_job_ids=removed_ids))

        logger.info("uploads_reset", removed_count=len(removed_ids))
        await self._deliver_events()

    async def wait_for_uploads(self) -> UploadAggregateSnapshot:
        """Wait until no job has a transport call in flight, then return a snapshot."""
        while True:
            pending = [task for task in self._tasks.values() if not task.done()]
            if not pending:
                return self.snapshot()
            # asyncio.wait, unlike gather, does not cancel the uploads if we are cancelled
            await asyncio.wait(pending)

    async def aclose(self) -> None:
        """Reset and wait for every upload task, including cancelled ones, to finish."""
        await self.reset()
        if self._running:
            await asyncio.wait(set(self._running))

    # -------------------------------------------------------------------------
    # Attempt lifecycle
    # -------------------------------------------------------------------------

    def _spawn_attempt(self, job: UploadJob) -> None:
        self._outbox.extend(job.collect_events())
        task = asyncio.create_task(
            self._run_attempt(job, job.attempt), name=f"upload:{job.id}:{job.attempt}"
        )
        self._tasks[job.id] = task
        self._running.add(task)
        task.add_done_callback(partial(self._forget_task, job.id))

    def _forget_task(self, job_id: str, task: asyncio.Task[None]) -> None:
        self._running.discard(task)
        if self._tasks.get(job_id) is task:
            del self._tasks[job_id]
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "upload_task_crashed",
                job_id=job_id,
                error=repr(task.exception()),
            )

    def _cancel_attempt(self, job: UploadJob, task: asyncio.Task[None] | None) -> None:
        # Only an attempt still waiting on the transport is cancelled; once the
        # job has settled the task is just delivering events.
        if task is None or task.done() or job.state is not UploadStatus.UPLOADING:
            return
        if self._transport.supports_cancellation:
            task.cancel()
        else:
            logger.debug("upload_left_running", job_id=job.id, attempt=job.attempt)

    def _is_current(self, job: UploadJob, attempt: int) -> bool:
        return (
            self._jobs.get(job.id) is job
            and job.attempt == attempt
            and job.state is UploadStatus.UPLOADING
        )

    async def _run_attempt(self, job: UploadJob, attempt: int) -> None:
        url: str | None = None
        error: str | None = None
        try:
            if self._semaphore is None:
                url = await self._upload_with_progress(job, attempt)
            else:
                async with self._semaphore:
                    async with self._lock:
                        wanted = self._is_current(job, attempt)
                    if not wanted:
                        logger.debug("queued_upload_skipped", job_id=job.id, attempt=attempt)
                        return
                    url = await self._upload_with_progress(job, attempt)
        except TransportError as exc:
            error = str(exc) or type(exc).__name__
        except Exception as exc:
            logger.exception("upload_transport_crashed", job_id=job.id, attempt=attempt)
            error = str(exc) or type(exc).__name__
        else:
            if not url:
                error = "Upload finished without returning an image URL."

        await self._settle(job, attempt, url=url, error=error)

    async def _upload_with_progress(self, job: UploadJob, attempt: int) -> str:
        ticker = asyncio.create_task(
            self._tick_progress(job, attempt), name=f"upload-progress:{job.id}:{attempt}"
        )
        try:
            return await self._transport.upload(job.payload)
        finally:
            ticker.cancel()

    async def _tick_progress(self, job: UploadJob, attempt: int) -> None:
        progress = 0.0
        while progress < self._progress_ceiling:
            await asyncio.sleep(self._progress_interval)
            progress = min(self._progress_ceiling, progress + self._progress_step)

            async with self._lock:
                if not self._is_current(job, attempt):
                    return
                if job.report_progress(progress):
                    self._outbox.extend(job.collect_events())

            await self._deliver_events()

    async def _settle(
        self, job: UploadJob, attempt: int, *, url: str | None, error: str | None
    ) -> None:
        async with self._lock:
            if not self._is_current(job, attempt):
                logger.info(
                    "stale_upload_result_discarded",
                    job_id=job.id,
                    attempt=attempt,
                    succeeded=error is None,
                )
                return

            if error is None and url is not None:
                job.mark_uploaded(url)
                if url not in self._completed_urls:
                    self._completed_urls.append(url)
            else:
                job.mark_failed(error or "Upload failed.")
            self._outbox.extend(job.collect_events())

        if job.state is UploadStatus.UPLOADED:
            logger.info("upload_completed", job_id=job.id, attempt=attempt, url=url)
        else:
            logger.warning("upload_failed", job_id=job.id, attempt=attempt, error=error)
        await self._deliver_events()

    def _discard_url(self, job: UploadJob) -> str | None:
        if job.state is not UploadStatus.UPLOADED or job.url is None:
            return None
        still_referenced = any(
            other.state is UploadStatus.UPLOADED and other.url == job.url
            for other in self._jobs.values()
        )
        if not still_referenced and job.url in self._completed_urls:
            self._completed_urls.remove(job.url)
        return job.url

    # -------------------------------------------------------------------------
    # Event delivery
    # -------------------------------------------------------------------------

    async def _deliver_events(self) -> None:
        # Shielded so that cancelling the caller (e.g. a progress ticker) never
        # drops an event that was already taken off the queue.
        await asyncio.shield(self._drain_outbox())

    async def _drain_outbox(self) -> None:
        if self._flushing:
            return
        self._flushing = True
        try:
            while self._outbox:
                event = self._outbox.popleft()
                try:
                    await self._event_publisher.publish(event)
                except Exception:
                    logger.exception("event_delivery_failed", event_type=type(event).__name__)
        finally:
            self._flushing = False
