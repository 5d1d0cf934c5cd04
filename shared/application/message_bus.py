"""
Message Bus

Subscribers are wired in ``AppConfig.ready()``; the unit of work calls
``publish_events`` after commit.
"""

from collections import defaultdict
from typing import Callable, DefaultDict, Iterable, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """In-process fan-out of domain events. A failing subscriber does not stop the rest."""

    def __init__(self):
        self._subscribers: DefaultDict[Type[DomainEvent], List[EventHandler]] = defaultdict(list)

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        subscribers = self._subscribers[event_type]
        # ready() may run more than once in one process
        if handler not in subscribers:
            subscribers.append(handler)

    def publish_events(self, events: Iterable[DomainEvent]):
        for event in events:
            for handler in list(self._subscribers.get(type(event), ())):
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        f"Handler {handler.__name__} failed for {event.event_type} {event.event_id}"
                    )


message_bus = MessageBus()
