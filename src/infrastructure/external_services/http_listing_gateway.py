from collections.abc import Sequence

import structlog

from src.application.interfaces.listing_gateway import ListingGateway
from src.domain.entities.listing import Listing, ListingDraft
from src.domain.enums.post_offering import PostOffering
from src.infrastructure.external_services.marketplace_client import MarketplaceClient
from src.infrastructure.external_services.schemas import CreatePostRequest, PostResponse

logger = structlog.get_logger(__name__)


def _post_to_listing(post: PostResponse, draft: ListingDraft) -> Listing:
    try:
        offering = PostOffering(post.offering)
    except ValueError:
        logger.warning(
            "unknown_post_offering",
            listing_id=post.id,
            offering=post.offering,
            fallback=draft.offering.value,
        )
        offering = draft.offering

    return Listing(
        id=post.id,
        title=post.title,
        description=post.description,
        category_id=post.category_id,
        offering=offering,
        status=post.status,
        price=post.price,
        image_urls=list(post.image_urls),
        created_at=post.created_at,
        updated_at=post.updated_at,
    )


class HttpListingGateway(ListingGateway):
    """Creates listings through the marketplace API's posts endpoint."""

    def __init__(self, client: MarketplaceClient) -> None:
        self._client = client

    async def create_listing(self, draft: ListingDraft, image_urls: Sequence[str]) -> Listing:
        logger.info("creating_listing", title=draft.title, image_count=len(image_urls))
        post = await self._client.create_post(
            CreatePostRequest(
                title=draft.title,
                description=draft.description,
                category_id=draft.category_id,
                offering=draft.offering,
                image_urls=list(image_urls),
                price=draft.effective_price,
            )
        )
        return _post_to_listing(post, draft)
