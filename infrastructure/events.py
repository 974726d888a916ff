"""
Event Bus

Routes booking events to the subscribers registered for their type
(e.g. the notification collaborator listening to ``booking.confirmed``).
The transition that produced an event is already committed, so a failing
subscriber is logged and never undoes it.
"""
from typing import Callable, Dict, List
import logging

from domain.events import BookingEvent, EventPublisher

logger = logging.getLogger(__name__)

Handler = Callable[[BookingEvent], None]

WILDCARD = "*"


class EventBus(EventPublisher):

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {}

    def subscribe(self, event_type: str, handler: Handler) -> None:
        """Register handler for event_type, or for every event with "*" """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("Registered handler for %s", event_type)

    def publish(self, event: BookingEvent) -> None:
        handlers = self._handlers.get(event.event_type, []) + self._handlers.get(WILDCARD, [])
        if not handlers:
            logger.debug("No handlers registered for %s", event.event_type)
            return

        logger.info("Publishing %s for booking %s", event.event_type, event.booking_id)
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                # Other handlers still run
                logger.exception(
                    "Error in handler %s for %s",
                    getattr(handler, "__qualname__", repr(handler)), event.event_type,
                )

