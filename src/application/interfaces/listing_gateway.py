from abc import ABC, abstractmethod
from collections.abc import Sequence

from src.domain.entities.listing import Listing, ListingDraft


class ListingGateway(ABC):
    """Port for creating a listing on the marketplace."""

    @abstractmethod
    async def create_listing(self, draft: ListingDraft, image_urls: Sequence[str]) -> Listing:
        """Create the listing with images in the given order and return it as stored."""
        ...
