from enum import Enum


class PostOffering(str, Enum):
    """How the item in a listing is offered."""

    GIVING_AWAY = "GIVING_AWAY"
    SOLD_AT_PRICE = "SOLD_AT_PRICE"

    @property
    def requires_price(self) -> bool:
        return self is PostOffering.SOLD_AT_PRICE
