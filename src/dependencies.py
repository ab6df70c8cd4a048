"""
Dependency wiring.

Each factory returns a fully-constructed object with its collaborators
injected. Anything passed in explicitly wins over the HTTP defaults, which is
how tests substitute fakes.
"""
from src.application.coordinators.upload_aggregator import UploadAggregator
from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_gateway import ListingGateway
from src.application.interfaces.upload_transport import UploadTransport
from src.application.listing_draft_session import ListingDraftSession
from src.application.use_cases.submit_listing import SubmitListing
from src.config import settings
from src.infrastructure.external_services.http_listing_gateway import HttpListingGateway
from src.infrastructure.external_services.http_upload_transport import HttpUploadTransport
from src.infrastructure.external_services.marketplace_client import MarketplaceClient
from src.infrastructure.messaging.noop_publisher import NoOpEventPublisher


# ---- Low-level dependencies ------------------------------------------------

def get_marketplace_client() -> MarketplaceClient:
    return MarketplaceClient()


def get_upload_transport(client: MarketplaceClient | None = None) -> UploadTransport:
    return HttpUploadTransport(client or get_marketplace_client())


def get_listing_gateway(client: MarketplaceClient | None = None) -> ListingGateway:
    return HttpListingGateway(client or get_marketplace_client())


def get_event_publisher() -> EventPublisher:
    return NoOpEventPublisher()


# ---- Session ---------------------------------------------------------------

def create_draft_session(
    *,
    transport: UploadTransport | None = None,
    listing_gateway: ListingGateway | None = None,
    event_publisher: EventPublisher | None = None,
    max_concurrent_uploads: int | None = settings.max_concurrent_uploads,
) -> ListingDraftSession:
    """Build a fresh session with its own aggregator for one create-listing flow."""
    client = None
    if transport is None or listing_gateway is None:
        client = get_marketplace_client()

    publisher = event_publisher or get_event_publisher()
    aggregator = UploadAggregator(
        transport or get_upload_transport(client),
        publisher,
        max_concurrent_uploads=max_concurrent_uploads,
    )
    submit_listing = SubmitListing(
        aggregator,
        listing_gateway or get_listing_gateway(client),
        publisher,
    )
    return ListingDraftSession(aggregator, submit_listing)
