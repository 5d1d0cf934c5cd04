"""Availability service: repositories + engine + capacity policy."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Sequence
from uuid import UUID

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.value_objects import DateRange
from apps.bookings.domain import inventory as engine
from apps.bookings.domain.entities import BookingStatus, ReservationLineItem, ResourceType
from apps.bookings.domain.exceptions import (
    InsufficientCapacity,
    InvalidBookingRequest,
    StorageUnavailable,
)
from apps.bookings.domain.inventory import (
    AvailabilityCheck,
    AvailabilitySnapshot,
    CapacityPolicy,
)
from apps.bookings.repositories import DjangoInventoryRepository

logger = logging.getLogger(__name__)


def capacity_policy_from_settings() -> CapacityPolicy:
    """Build the capacity policy from ``settings.HOTEL_AVAILABILITY``."""

    config = getattr(settings, "HOTEL_AVAILABILITY", {}) or {}
    statuses = config.get("BLOCKING_STATUSES", [BookingStatus.CONFIRMED.value])
    blocking = frozenset(BookingStatus(status) for status in statuses)
    if BookingStatus.CANCELLED in blocking:
        raise ValueError("Cancelled bookings can never hold capacity")
    return CapacityPolicy(
        blocking_statuses=blocking,
        completed_blocks_future=bool(config.get("COMPLETED_BLOCKS_FUTURE", False)),
    )


class AvailabilityService:
    """
    Availability queries against live data.

    Browsing calls (``list_availability``, ``remaining_for``) degrade to
    an empty result when storage fails. Validation calls propagate every
    error, since they gate a write.
    """

    def __init__(
        self,
        inventory_repo: DjangoInventoryRepository | None = None,
        policy: CapacityPolicy | None = None,
    ):
        self.inventory_repo = inventory_repo or DjangoInventoryRepository()
        self.policy = policy or capacity_policy_from_settings()

    @staticmethod
    def today() -> date:
        return timezone.localdate()

    def list_availability(self, resource_type: ResourceType, dates: DateRange) -> List[AvailabilitySnapshot]:
        today = self.today()
        try:
            records = self.inventory_repo.list_inventory(resource_type)
            items = self.inventory_repo.fetch_line_items(
                resource_type, dates, policy=self.policy, today=today,
            )
        except StorageUnavailable as exc:
            logger.error(f"Availability listing for {resource_type.value} failed: {exc}")
            return []

        return engine.list_availability(
            resource_type, dates, records, items, policy=self.policy, today=today,
        )

    def remaining_for(self, resource_type: ResourceType, resource_id: UUID, dates: DateRange) -> int:
        """Bottleneck quantity for one resource; 0 if it is unknown or storage fails."""
        today = self.today()
        try:
            record = self.inventory_repo.get_inventory(resource_type, resource_id)
            if record is None:
                return 0
            items = self.inventory_repo.fetch_line_items(
                resource_type, dates, policy=self.policy, today=today, resource_id=resource_id,
            )
        except StorageUnavailable as exc:
            logger.error(f"Remaining count for {resource_type.value} {resource_id} failed: {exc}")
            return 0

        return engine.min_remaining_over_range(
            resource_id,
            record.total_inventory,
            dates,
            items,
            resource_type=resource_type,
            policy=self.policy,
            today=today,
        )

    def validate_booking_request(
        self,
        resource_type: ResourceType,
        resource_id: UUID,
        requested_quantity: int,
        dates: DateRange,
        *,
        lock: bool = False,
        pending: Iterable[ReservationLineItem] = (),
    ) -> AvailabilityCheck:
        """
        Strict check of one line item against live reservations.

        ``pending`` holds items already accepted for the booking being
        built, so two lines for the same resource add up.

        Raises:
            InvalidBookingRequest: unknown resource, inverted dates or a zero-night room
            StorageUnavailable: storage could not be read
        """
        if dates.is_inverted:
            raise InvalidBookingRequest(
                f"End date {dates.end_date} is before start date {dates.start_date}"
            )
        if resource_type is ResourceType.ROOM and dates.end_date == dates.start_date:
            raise InvalidBookingRequest("A room must be booked for at least one night")

        today = self.today()
        record = self.inventory_repo.get_inventory(resource_type, resource_id, lock=lock)
        if record is None:
            raise InvalidBookingRequest(f"Unknown {resource_type.value}: {resource_id}")

        items: Sequence[ReservationLineItem] = self.inventory_repo.fetch_line_items(
            resource_type,
            dates,
            policy=self.policy,
            today=today,
            resource_id=resource_id,
            lock=lock,
        )
        items = list(items) + [item for item in pending if item.resource_id == resource_id]

        check = engine.validate_booking_request(
            resource_type,
            resource_id,
            record.total_inventory,
            requested_quantity,
            dates,
            items,
            policy=self.policy,
            today=today,
        )
        if not check.valid:
            logger.warning(
                f"Rejected {requested_quantity} x {resource_type.value} {resource_id} "
                f"for {dates}: {check.message}"
            )
        return check

    def ensure_bookable(
        self,
        resource_type: ResourceType,
        resource_id: UUID,
        requested_quantity: int,
        dates: DateRange,
        *,
        lock: bool = False,
        pending: Iterable[ReservationLineItem] = (),
    ) -> None:
        """Like ``validate_booking_request`` but raises on a shortfall."""
        check = self.validate_booking_request(
            resource_type, resource_id, requested_quantity, dates, lock=lock, pending=pending,
        )
        if not check.valid:
            raise InsufficientCapacity(
                resource_type.value,
                resource_id,
                check.bottleneck_day,
                check.remaining,
                requested_quantity,
                message=check.message,
            )

    def occupancy_rate(self, day: date | None = None) -> float:
        """Share of room units booked on ``day`` (today by default), 0..1."""
        day = day or self.today()
        snapshots = self.list_availability(ResourceType.ROOM, DateRange(day, day))
        total = sum(snapshot.total_inventory for snapshot in snapshots)
        if total == 0:
            return 0.0
        booked = sum(min(snapshot.booked_count, snapshot.total_inventory) for snapshot in snapshots)
        return booked / total
