"""HTTP client for the marketplace REST API."""

import httpx
import structlog
from pydantic import ValidationError

from src.config import settings
from src.infrastructure.external_services.schemas import (
    CreatePostRequest,
    ErrorResponse,
    ImageUploadResponse,
    PostResponse,
)

logger = structlog.get_logger(__name__)


class ApiClientError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ApiConnectionError(ApiClientError):
    pass


class InvalidResponseError(ApiClientError):
    pass


class BadRequestError(ApiClientError):
    pass


class UnauthorizedError(ApiClientError):
    pass


class PermissionDeniedError(ApiClientError):
    pass


class NotFoundError(ApiClientError):
    pass


class ConflictError(ApiClientError):
    pass


class ServerError(ApiClientError):
    pass


_STATUS_ERRORS: dict[int, type[ApiClientError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: PermissionDeniedError,
    404: NotFoundError,
    409: ConflictError,
}


def _error_message(response: httpx.Response) -> str | None:
    try:
        return ErrorResponse.model_validate(response.json()).message
    except (ValueError, ValidationError):
        return None


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return

    status_code = response.status_code
    message = _error_message(response)
    error_cls = _STATUS_ERRORS.get(status_code, ServerError)
    logger.error(
        "marketplace_request_failed",
        url=str(response.request.url),
        status_code=status_code,
        message=message,
    )
    raise error_cls(
        message or f"Marketplace API returned {status_code}.",
        status_code=status_code,
    )


class MarketplaceClient:
    """Thin HTTP wrapper around the marketplace endpoints used when creating a listing."""

    def __init__(
        self,
        base_url: str = settings.api_base_url,
        api_token: str | None = settings.api_token,
        request_timeout: float = settings.request_timeout,
        upload_timeout: float = settings.upload_timeout,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._request_timeout = request_timeout
        self._upload_timeout = upload_timeout
        self._transport = transport

    def _headers(self, **extra: str) -> dict[str, str]:
        headers = dict(extra)
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"
        return headers

    async def _send(
        self, method: str, path: str, *, timeout: float, **kwargs: object
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            try:
                response = await client.request(method, url, **kwargs)  # type: ignore[arg-type]
            except httpx.RequestError as exc:
                logger.error("marketplace_connection_failed", url=url, error=str(exc))
                raise ApiConnectionError(f"Failed to reach marketplace API: {exc}") from exc

        _raise_for_status(response)
        return response

    async def upload_image(self, payload: bytes) -> str:
        """
        POST /images/upload (raw JPEG body) → {"url": "..."}
        """
        response = await self._send(
            "POST",
            "/images/upload",
            timeout=self._upload_timeout,
            content=payload,
            headers=self._headers(**{"Content-Type": "image/jpeg", "Cache-Control": "no-cache"}),
        )
        try:
            url = ImageUploadResponse.model_validate(response.json()).url
        except (ValueError, ValidationError) as exc:
            raise InvalidResponseError(
                f"Unexpected image upload response: {response.text}",
                status_code=response.status_code,
            ) from exc

        logger.info("image_uploaded", url=url, size_bytes=len(payload))
        return url

    async def create_post(self, request: CreatePostRequest) -> PostResponse:
        """
        POST /posts → created post
        """
        response = await self._send(
            "POST",
            "/posts",
            timeout=self._request_timeout,
            json=request.model_dump(mode="json"),
            headers=self._headers(),
        )
        try:
            post = PostResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise InvalidResponseError(
                f"Unexpected create post response: {response.text}",
                status_code=response.status_code,
            ) from exc

        logger.info("post_created", post_id=post.id, image_count=len(post.image_urls))
        return post
