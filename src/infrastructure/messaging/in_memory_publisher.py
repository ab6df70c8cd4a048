"""
In-process event publisher.

Fans every event out to the callbacks subscribed for its type (or any of its
base types) and keeps the delivered events in order, so a screen can redraw
from them and tests can assert on them.
"""
import inspect
from collections.abc import Awaitable, Callable

import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.domain.events.domain_events import DomainEvent

logger = structlog.get_logger(__name__)

EventHandler = Callable[[DomainEvent], Awaitable[None] | None]


class InMemoryEventPublisher(EventPublisher):
    """Delivers events to local subscribers. A failing subscriber is logged and skipped."""

    def __init__(self) -> None:
        self._handlers: list[tuple[type[DomainEvent], EventHandler]] = []
        self.published: list[DomainEvent] = []

    def subscribe(
        self, handler: EventHandler, event_type: type[DomainEvent] = DomainEvent
    ) -> Callable[[], None]:
        """Register a handler and return a callable that unregisters it."""
        entry = (event_type, handler)
        self._handlers.append(entry)

        def unsubscribe() -> None:
            if entry in self._handlers:
                self._handlers.remove(entry)

        return unsubscribe

    async def publish(self, event: DomainEvent) -> None:
        self.published.append(event)
        for event_type, handler in list(self._handlers):
            if not isinstance(event, event_type):
                continue
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "event_handler_failed",
                    event_type=type(event).__name__,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                )

    def events_of(self, event_type: type[DomainEvent]) -> list[DomainEvent]:
        return [event for event in self.published if isinstance(event, event_type)]

    def clear(self) -> None:
        self.published.clear()
