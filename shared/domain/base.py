"""
Base Domain Classes

- Entity: has an identity; equality is by id
- ValueObject: frozen, compared field by field
- Aggregate: an entity that records domain events for the unit of work
- DomainEvent: something that happened to an aggregate
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Entity(ABC):
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)

    def __eq__(self, other):
        return isinstance(other, self.__class__) and self.id == other.id

    def __hash__(self):
        return hash(self.id)


@dataclass(frozen=True)
class ValueObject(ABC):
    """Immutable, no identity."""


@dataclass(eq=False)
class Aggregate(Entity):
    """
    Aggregate root

    Events stay buffered here until the unit of work collects them with
    ``pull_events``; nothing is published from inside the aggregate.
    """
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False)

    def add_event(self, event: 'DomainEvent'):
        self._events.append(event)

    def pull_events(self) -> List['DomainEvent']:
        events, self._events = self._events, []
        return events


@dataclass
class DomainEvent:
    """
    Envelope shared by every domain event

    Subclasses declare their payload with ``kw_only=True`` so that
    required payload fields can follow these defaulted ones.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=utcnow)
    aggregate_id: UUID | None = None

    @property
    def event_type(self) -> str:
        return type(self).__name__
