import structlog

from src.application.interfaces.upload_transport import TransportError, UploadTransport
from src.infrastructure.external_services.marketplace_client import (
    ApiClientError,
    MarketplaceClient,
)

logger = structlog.get_logger(__name__)


class HttpUploadTransport(UploadTransport):
    """Uploads images through the marketplace API's image endpoint."""

    supports_cancellation = True

    def __init__(self, client: MarketplaceClient) -> None:
        self._client = client

    async def upload(self, payload: bytes) -> str:
        try:
            return await self._client.upload_image(payload)
        except ApiClientError as exc:
            logger.warning(
                "image_upload_rejected", status_code=exc.status_code, error=str(exc)
            )
            raise TransportError(str(exc)) from exc
