from abc import ABC, abstractmethod
from collections.abc import Iterable

from src.domain.events.domain_events import DomainEvent


class EventPublisher(ABC):
    """
    Port through which upload and listing events leave the application layer.

    The aggregator hands events over from a single drainer, one at a time and
    in the order its mutations happened. Implementations log observer
    failures instead of raising them.
    """

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        ...

    async def publish_many(self, events: Iterable[DomainEvent]) -> None:
        """Publish in iteration order; an error stops the remaining events."""
        for event in events:
            await self.publish(event)
