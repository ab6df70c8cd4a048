from dataclasses import dataclass

import structlog

from src.application.coordinators.upload_aggregator import UploadAggregator
from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_gateway import ListingGateway
from src.domain.entities.listing import Listing, ListingDraft
from src.domain.events.domain_events import ListingCreatedEvent

logger = structlog.get_logger(__name__)


class UploadsNotReadyError(Exception):
    """Raised when a listing is submitted before every image has uploaded."""

    def __init__(self, job_count: int, failed_job_ids: tuple[str, ...] = ()) -> None:
        self.job_count = job_count
        self.failed_job_ids = failed_job_ids
        if job_count == 0:
            message = "No images have been uploaded."
        elif failed_job_ids:
            message = f"{len(failed_job_ids)} image upload(s) failed; retry or remove them first."
        else:
            message = "Images are still uploading."
        super().__init__(message)


@dataclass
class SubmitListingInput:
    draft: ListingDraft


@dataclass
class SubmitListingOutput:
    listing: Listing
    image_urls: tuple[str, ...]


class SubmitListing:
    """
    Use case: Create a listing from the draft and the images already uploaded.

    Refuses to run until every job is UPLOADED. The completed URLs are sent in
    completion order exactly as read at submission time. If the listing call
    fails the uploads are left as they are so nothing has to be re-uploaded.
    On success only the jobs that went into the listing are removed; images
    picked while the call was in flight are kept.
    """

    def __init__(
        self,
        aggregator: UploadAggregator,
        listing_gateway: ListingGateway,
        event_publisher: EventPublisher,
    ) -> None:
        self._aggregator = aggregator
        self._listing_gateway = listing_gateway
        self._event_publisher = event_publisher

    async def execute(self, input_data: SubmitListingInput) -> SubmitListingOutput:
        input_data.draft.validate()

        snapshot = self._aggregator.snapshot()
        if snapshot.is_empty or not snapshot.all_uploaded:
            raise UploadsNotReadyError(len(snapshot.jobs), snapshot.failed_job_ids)

        image_urls = snapshot.completed_urls

        try:
            listing = await self._listing_gateway.create_listing(input_data.draft, image_urls)
        except Exception:
            logger.exception(
                "listing_submission_failed",
                title=input_data.draft.title,
                image_count=len(image_urls),
            )
            raise

        await self._aggregator.remove_submitted(snapshot.jobs)

        await self._event_publisher.publish(
            ListingCreatedEvent(
                listing_id=listing.id,
                title=listing.title,
                image_urls=image_urls,
            )
        )

        logger.info(
            "listing_submitted",
            listing_id=listing.id,
            image_count=len(image_urls),
        )

        return SubmitListingOutput(listing=listing, image_urls=image_urls)
