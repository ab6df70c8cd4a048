from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.domain.enums.post_offering import PostOffering


class ListingValidationError(Exception):
    """Raised when a draft cannot be submitted as entered."""

    def __init__(self, field_name: str, message: str) -> None:
        self.field_name = field_name
        super().__init__(f"{field_name}: {message}")


@dataclass(frozen=True)
class ListingDraft:
    """What the user typed on the create-listing screen, minus the images."""

    title: str
    description: str
    category_id: str
    offering: PostOffering
    price: Decimal | None = None

    def validate(self) -> None:
        if not self.title.strip():
            raise ListingValidationError("title", "must not be blank")
        if not self.category_id.strip():
            raise ListingValidationError("category_id", "must not be blank")
        if self.price is not None and self.price < 0:
            raise ListingValidationError("price", "must not be negative")
        if self.offering.requires_price and self.price is None:
            raise ListingValidationError(
                "price", f"is required when offering is {self.offering.value}"
            )

    @property
    def effective_price(self) -> Decimal:
        """Price sent to the marketplace; items given away are listed at zero."""
        if self.offering is PostOffering.GIVING_AWAY or self.price is None:
            return Decimal("0")
        return self.price


@dataclass
class Listing:
    """A listing as stored by the marketplace, with its server-assigned id."""

    id: str
    title: str
    description: str
    category_id: str
    offering: PostOffering
    status: str
    price: Decimal | None = None
    image_urls: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
