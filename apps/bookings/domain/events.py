"""
Booking Domain Events

Published by the unit of work after the booking transaction commits.
"""

from dataclasses import dataclass, field
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import DateRange, Money


# ===== Booking Events =====

@dataclass(kw_only=True)
class BookingCreated(DomainEvent):
    """
    Event: a booking was validated and stored

    Triggers:
    - Guest notification task
    """
    booking_id: UUID
    booking_code: str
    guest_id: int
    dates: DateRange
    total_price: Money


@dataclass(kw_only=True)
class BookingCancelled(DomainEvent):
    """
    Event: a booking was cancelled

    Its line items stop consuming capacity from this point on.
    """
    booking_id: UUID
    reason: str = ''
    old_status: str = ''


@dataclass(kw_only=True)
class BookingCompleted(DomainEvent):
    """Event: the stay is over (or an admin closed the booking)"""
    booking_id: UUID
    guest_id: int


# ===== Inventory Events =====

@dataclass(kw_only=True)
class InventoryAllocated(DomainEvent):
    """Event: units of a resource are now held for the given dates"""
    booking_id: UUID
    resource_type: str
    resource_id: UUID
    quantity: int
    dates: DateRange = field(repr=False)
