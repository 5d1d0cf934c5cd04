"""
Availability Engine

This is the CRITICAL piece that prevents overbooking.

Every resource has a fixed pool of units per day. A line item holds
``quantity`` units on each day its interval covers, with the coverage
rule set by the resource type (rooms exclude the check-out day, meals
and activities include both ends). The sellable quantity for a range is
limited by its worst day: the bottleneck.

Everything here is a pure function over typed records. Fetching,
locking and transactions belong to the repositories and the command
handlers.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, FrozenSet, Iterable, Iterator, List, Sequence, Tuple
from uuid import UUID

from shared.domain.value_objects import DateRange
from apps.bookings.domain.entities import (
    BookingStatus,
    InventoryRecord,
    ReservationLineItem,
    ResourceType,
)
from apps.bookings.domain.exceptions import InvalidBookingRequest


@dataclass(frozen=True)
class CapacityPolicy:
    """
    Which line items consume capacity

    Only confirmed bookings block by default. With
    ``completed_blocks_future`` enabled, a completed booking whose line
    item has not ended yet keeps blocking its remaining days.
    """
    blocking_statuses: FrozenSet[BookingStatus] = field(
        default_factory=lambda: frozenset({BookingStatus.CONFIRMED})
    )
    completed_blocks_future: bool = False

    def consumes_capacity(self, item: ReservationLineItem, today: date) -> bool:
        if item.booking_status in self.blocking_statuses:
            return True
        return (
            self.completed_blocks_future
            and item.booking_status is BookingStatus.COMPLETED
            and item.end_date >= today
        )


DEFAULT_POLICY = CapacityPolicy()


@dataclass(frozen=True)
class AvailabilitySnapshot:
    resource_id: UUID
    total_inventory: int
    booked_count: int
    remaining_count: int


@dataclass(frozen=True)
class AvailabilityCheck:
    """Outcome of a strict per-day check for one requested line item"""
    valid: bool
    message: str | None = None
    bottleneck_day: date | None = None
    remaining: int | None = None


class CapacityLedger:
    """
    Per-day booked quantities for the days of one query

    Maps resource id -> {day -> units booked}. Only the days passed at
    construction are tracked; a line item contributes to a day only if
    it covers that day under its own type's rule.
    """

    def __init__(self, days: Iterable[date]):
        self.days: Tuple[date, ...] = tuple(days)
        self._booked: Dict[UUID, Dict[date, int]] = {}

    @classmethod
    def build(cls, days: Iterable[date], line_items: Iterable[ReservationLineItem]) -> 'CapacityLedger':
        ledger = cls(days)
        for item in line_items:
            ledger.record(item)
        return ledger

    def record(self, item: ReservationLineItem):
        for day in self.days:
            if item.covers(day):
                per_day = self._booked.setdefault(item.resource_id, {})
                per_day[day] = per_day.get(day, 0) + item.quantity

    def booked_on(self, resource_id: UUID, day: date) -> int:
        return self._booked.get(resource_id, {}).get(day, 0)

    def peak_booked(self, resource_id: UUID) -> int:
        """Largest single-day booked count over the ledger days"""
        return max((self.booked_on(resource_id, day) for day in self.days), default=0)

    def remaining_by_day(self, resource_id: UUID, total_inventory: int) -> Iterator[Tuple[date, int]]:
        """Unclamped remaining units per day; negative means over-allocation"""
        for day in self.days:
            yield day, total_inventory - self.booked_on(resource_id, day)

    def min_remaining(self, resource_id: UUID, total_inventory: int) -> int:
        remaining = [left for _, left in self.remaining_by_day(resource_id, total_inventory)]
        if not remaining:
            return total_inventory
        return max(0, min(remaining))


def query_days(dates: DateRange) -> List[date]:
    """Browsing windows always include both endpoints"""
    return dates.days(inclusive_end=True)


def active_line_items(
    line_items: Iterable[ReservationLineItem],
    policy: CapacityPolicy = DEFAULT_POLICY,
    today: date | None = None,
) -> List[ReservationLineItem]:
    today = today or date.today()
    return [item for item in line_items if policy.consumes_capacity(item, today)]


def list_availability(
    resource_type: ResourceType,
    dates: DateRange,
    inventory_records: Iterable[InventoryRecord],
    line_items: Iterable[ReservationLineItem],
    *,
    policy: CapacityPolicy = DEFAULT_POLICY,
    today: date | None = None,
) -> List[AvailabilitySnapshot]:
    """
    Booked and remaining counts for every resource of a type

    ``booked_count`` is the busiest single day of the window, not a sum
    across days. An inverted window has no days and reports full
    availability.
    """
    items = [
        item for item in active_line_items(line_items, policy, today)
        if item.resource_type is resource_type
    ]
    ledger = CapacityLedger.build(query_days(dates), items)

    snapshots = []
    for record in inventory_records:
        booked = ledger.peak_booked(record.id)
        snapshots.append(AvailabilitySnapshot(
            resource_id=record.id,
            total_inventory=record.total_inventory,
            booked_count=booked,
            remaining_count=max(0, record.total_inventory - booked),
        ))
    return snapshots


def min_remaining_over_range(
    resource_id: UUID,
    total_inventory: int,
    dates: DateRange,
    line_items: Iterable[ReservationLineItem],
    *,
    resource_type: ResourceType,
    policy: CapacityPolicy = DEFAULT_POLICY,
    today: date | None = None,
) -> int:
    """
    Bottleneck quantity still sellable for one resource over a request

    The request is expanded into the days a new line item of this type
    would occupy; items of other resources are ignored. Always within
    ``0..total_inventory``.
    """
    items = [
        item for item in active_line_items(line_items, policy, today)
        if item.resource_id == resource_id
    ]
    ledger = CapacityLedger.build(resource_type.occupied_days(dates), items)
    return ledger.min_remaining(resource_id, total_inventory)


def validate_booking_request(
    resource_type: ResourceType,
    resource_id: UUID,
    total_inventory: int,
    requested_quantity: int,
    dates: DateRange,
    line_items: Sequence[ReservationLineItem],
    *,
    policy: CapacityPolicy = DEFAULT_POLICY,
    today: date | None = None,
) -> AvailabilityCheck:
    """
    Strict per-day check for one line item about to be booked

    Stops at the first day that cannot take ``requested_quantity`` and
    reports it; later days are not inspected.

    Raises:
        InvalidBookingRequest: if the requested quantity is not positive
    """
    if requested_quantity < 1:
        raise InvalidBookingRequest(
            f"Quantity must be a positive number, got {requested_quantity}"
        )

    items = [
        item for item in active_line_items(line_items, policy, today)
        if item.resource_id == resource_id
    ]

    for day in resource_type.occupied_days(dates):
        booked = sum(item.quantity for item in items if item.covers(day))
        remaining = total_inventory - booked
        if requested_quantity > remaining:
            available = max(0, remaining)
            return AvailabilityCheck(
                valid=False,
                message=f"Only {available} units available on {day.isoformat()}",
                bottleneck_day=day,
                remaining=available,
            )

    return AvailabilityCheck(valid=True)
