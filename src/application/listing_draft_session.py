import structlog

from src.application.coordinators.upload_aggregator import UploadAggregator
from src.application.use_cases.submit_listing import (
    SubmitListing,
    SubmitListingInput,
    SubmitListingOutput,
)
from src.domain.entities.listing import ListingDraft

logger = structlog.get_logger(__name__)


class ListingDraftSession:
    """
    One create-listing flow, from the first picked image to submission or dismissal.

    Owns exactly one UploadAggregator; collaborators receive it from here
    rather than from a shared global. Use as an async context manager so that
    leaving the screen cancels whatever is still uploading.
    """

    def __init__(self, aggregator: UploadAggregator, submit_listing: SubmitListing) -> None:
        self._aggregator = aggregator
        self._submit_listing = submit_listing
        self._closed = False

    @property
    def uploads(self) -> UploadAggregator:
        return self._aggregator

    @property
    def closed(self) -> bool:
        return self._closed

    async def submit(self, draft: ListingDraft) -> SubmitListingOutput:
        if self._closed:
            raise RuntimeError("Listing draft session is closed.")
        return await self._submit_listing.execute(SubmitListingInput(draft=draft))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._aggregator.aclose()
        logger.info("listing_draft_session_closed")

    async def __aenter__(self) -> "ListingDraftSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
