"""
Reservation Domain Entities

- ResourceType: what is being sold, and which day-coverage rule applies
- BookingStatus: lifecycle states of a booking
- InventoryRecord: the sellable unit pool of one catalog resource
- ReservationLineItem: units of one resource held over a date interval
- Reservation: aggregate root for a guest's booking and its line items
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List
from uuid import UUID, uuid4

from shared.domain.base import Aggregate
from shared.domain.value_objects import DateRange, Money


class ResourceType(Enum):
    """
    Bookable resource kinds

    Rooms are sold per night: a stay [check_in, check_out) occupies every
    day up to, but not including, check-out. Meals and activities occupy
    both endpoints of their interval (usually a single day).
    """
    ROOM = 'room'
    MEAL = 'meal'
    ACTIVITY = 'activity'

    @property
    def exclusive_end(self) -> bool:
        return self is ResourceType.ROOM

    def covers(self, start_date: date, end_date: date, day: date) -> bool:
        if self.exclusive_end:
            return start_date <= day < end_date
        return start_date <= day <= end_date

    def occupied_days(self, dates: DateRange) -> List[date]:
        """Days a line item of this type over ``dates`` would hold"""
        return dates.days(inclusive_end=not self.exclusive_end)


class BookingStatus(Enum):
    """
    Booking lifecycle

    State transitions:
    - CONFIRMED -> CANCELLED (guest or admin cancelled)
    - CONFIRMED -> COMPLETED (stay finished, or admin closed it)
    """
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'


ALLOWED_TRANSITIONS = {
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED, BookingStatus.COMPLETED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
}


@dataclass(frozen=True)
class InventoryRecord:
    """Total units of one resource sellable on any single day"""
    id: UUID
    resource_type: ResourceType
    total_inventory: int

    def __post_init__(self):
        if self.total_inventory < 0:
            raise ValueError(f"Inventory of {self.resource_type.value} {self.id} cannot be negative")


@dataclass(frozen=True)
class ReservationLineItem:
    """
    Units of a resource held for every day the interval covers

    Dates must already be resolved by the storage layer; the engine never
    falls back to the parent booking's dates.
    """
    resource_type: ResourceType
    resource_id: UUID
    quantity: int
    start_date: date
    end_date: date
    booking_status: BookingStatus = BookingStatus.CONFIRMED
    booking_id: UUID | None = None
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self):
        if not isinstance(self.start_date, date) or not isinstance(self.end_date, date):
            raise ValueError("Line item dates must be resolved before entering the engine")
        if self.quantity < 1:
            raise ValueError("Line item quantity must be at least 1")
        if self.end_date < self.start_date:
            raise ValueError(
                f"Line item ends ({self.end_date}) before it starts ({self.start_date})"
            )

    @property
    def dates(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    def covers(self, day: date) -> bool:
        return self.resource_type.covers(self.start_date, self.end_date, day)


@dataclass(eq=False, kw_only=True)
class Reservation(Aggregate):
    """
    Reservation Aggregate Root

    A guest's booking: the stay period, its line items and the frozen
    total. Line items are immutable once placed; cancelling the booking
    releases their capacity through the status filter, nothing is deleted.
    """
    booking_code: str
    guest_id: int
    stay: DateRange
    line_items: List[ReservationLineItem] = field(default_factory=list)
    total_price: Money = field(default_factory=Money.zero)
    status: BookingStatus = BookingStatus.CONFIRMED
    cancellation_reason: str = ''
    cancelled_at: datetime | None = None
    unit_prices: Dict[UUID, Money] = field(default_factory=dict, repr=False)

    def place(self):
        """
        Emit creation events for a freshly validated reservation

        Events: BookingCreated, InventoryAllocated (one per line item)
        """
        from apps.bookings.domain.events import BookingCreated, InventoryAllocated

        self.add_event(BookingCreated(
            aggregate_id=self.id,
            booking_id=self.id,
            booking_code=self.booking_code,
            guest_id=self.guest_id,
            dates=self.stay,
            total_price=self.total_price,
        ))
        for item in self.line_items:
            self.add_event(InventoryAllocated(
                aggregate_id=self.id,
                booking_id=self.id,
                resource_type=item.resource_type.value,
                resource_id=item.resource_id,
                quantity=item.quantity,
                dates=item.dates,
            ))

    def transition_to(self, new_status: BookingStatus, reason: str = ''):
        if new_status not in ALLOWED_TRANSITIONS[self.status]:
            from apps.bookings.domain.exceptions import InvalidBookingRequest

            raise InvalidBookingRequest(
                f"Cannot move booking {self.booking_code} from "
                f"{self.status.value} to {new_status.value}"
            )
        if new_status is BookingStatus.CANCELLED:
            self.cancel(reason)
        else:
            self.complete()

    def cancel(self, reason: str = ''):
        """
        Cancel booking (CONFIRMED -> CANCELLED)

        Events: BookingCancelled
        """
        from apps.bookings.domain.events import BookingCancelled
        from apps.bookings.domain.exceptions import InvalidBookingRequest

        if self.status is not BookingStatus.CONFIRMED:
            raise InvalidBookingRequest(
                f"Booking {self.booking_code} cannot be cancelled. "
                f"Current status: {self.status.value}"
            )

        old_status = self.status
        self.status = BookingStatus.CANCELLED
        self.cancellation_reason = reason
        self.cancelled_at = datetime.now(timezone.utc)

        self.add_event(BookingCancelled(
            aggregate_id=self.id,
            booking_id=self.id,
            reason=reason,
            old_status=old_status.value,
        ))

    def complete(self):
        """
        Complete booking (CONFIRMED -> COMPLETED)

        Events: BookingCompleted
        """
        from apps.bookings.domain.events import BookingCompleted
        from apps.bookings.domain.exceptions import InvalidBookingRequest

        if self.status is not BookingStatus.CONFIRMED:
            raise InvalidBookingRequest(
                f"Cannot complete booking from status {self.status.value}. "
                f"Booking must be CONFIRMED."
            )

        self.status = BookingStatus.COMPLETED

        self.add_event(BookingCompleted(
            aggregate_id=self.id,
            booking_id=self.id,
            guest_id=self.guest_id,
        ))

    @property
    def nights(self) -> int:
        return self.stay.nights

    def __str__(self):
        return f"Reservation {self.booking_code} ({self.status.value})"

    def __repr__(self):
        return (
            f"Reservation(id={self.id}, booking_code={self.booking_code}, "
            f"status={self.status.value}, stay={self.stay})"
        )
