import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.domain.events.domain_events import DomainEvent, UploadProgressedEvent

logger = structlog.get_logger(__name__)


class NoOpEventPublisher(EventPublisher):
    """
    Default publisher for a draft session nobody observes.

    Events are dropped. Progress ticks are only counted because a batch of
    large images would otherwise flood the debug log.
    """

    def __init__(self) -> None:
        self.discarded_count = 0

    async def publish(self, event: DomainEvent) -> None:
        self.discarded_count += 1
        if isinstance(event, UploadProgressedEvent):
            return
        logger.debug(
            "event_discarded",
            event_type=type(event).__name__,
            job_id=getattr(event, "job_id", None),
        )
