from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, field_serializer

from src.domain.enums.post_offering import PostOffering


class ErrorResponse(BaseModel):
    message: str


class ImageUploadResponse(BaseModel):
    url: str


class CreatePostRequest(BaseModel):
    title: str
    description: str
    category_id: str
    offering: PostOffering
    image_urls: list[str]
    price: Decimal

    @field_serializer("price", when_used="json")
    def _price_as_number(self, price: Decimal) -> float:
        # The posts endpoint expects a JSON number, not pydantic's decimal string
        return float(price)


class PostResponse(BaseModel):
    id: str
    title: str
    description: str
    category_id: str
    # Kept as text so an offering this client does not know yet never fails
    # the response of a listing that was already created
    offering: str
    status: str
    price: Decimal | None = None
    image_urls: list[str] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None
