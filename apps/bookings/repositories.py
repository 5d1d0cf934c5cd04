"""
Storage collaborator for the availability engine.

Repositories read catalog and booking rows and hand the engine typed
records. Two rules live here and nowhere else:

- legacy booking items without their own dates inherit the booking's
  check-in/check-out (coalesced in SQL, at read time);
- database failures surface as ``StorageUnavailable``.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from django.db import DatabaseError, transaction  # type: ignore
from django.db.models import F, Q  # type: ignore
from django.db.models.functions import Coalesce  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from apps.bookings.domain.entities import (
    BookingStatus,
    InventoryRecord,
    Reservation,
    ReservationLineItem,
    ResourceType,
)
from apps.bookings.domain.exceptions import StorageUnavailable
from apps.bookings.domain.inventory import CapacityPolicy, DEFAULT_POLICY
from apps.catalog.models import get_resource_model
from shared.domain.value_objects import DateRange, Money

logger = logging.getLogger(__name__)


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def _status_filter(policy: CapacityPolicy, today: date) -> Q:
    """ORM rendition of ``CapacityPolicy.consumes_capacity``."""

    condition = Q(booking__status__in=[status.value for status in policy.blocking_statuses])
    if policy.completed_blocks_future:
        condition |= Q(
            booking__status=BookingStatus.COMPLETED.value,
            effective_end__gte=today,
        )
    return condition


def covering_day_filter(resource_type: ResourceType, day: date) -> Q:
    """Items (annotated with effective dates) that hold units on ``day``."""

    if resource_type.exclusive_end:
        return Q(effective_start__lte=day, effective_end__gt=day)
    return Q(effective_start__lte=day, effective_end__gte=day)


class DjangoInventoryRepository:
    """Reads unit pools from the catalog and held units from booking items."""

    def list_inventory(self, resource_type: ResourceType) -> List[InventoryRecord]:
        model = get_resource_model(resource_type.value)
        try:
            rows = list(model.objects.values_list("id", "total_inventory"))
        except DatabaseError as exc:
            raise StorageUnavailable(f"Could not load {resource_type.value} inventory") from exc
        return [
            InventoryRecord(id=pk, resource_type=resource_type, total_inventory=total)
            for pk, total in rows
        ]

    def get_inventory(
        self,
        resource_type: ResourceType,
        resource_id: UUID,
        *,
        lock: bool = False,
    ) -> Optional[InventoryRecord]:
        """
        Single unit pool, or None if the resource does not exist

        With ``lock=True`` inside a transaction the catalog row stays
        locked until commit, which serialises concurrent bookings of the
        same resource.
        """
        model = get_resource_model(resource_type.value)
        queryset = model.objects.filter(pk=resource_id)
        if lock:
            queryset = _lock_queryset_if_possible(queryset)
        try:
            row = queryset.values_list("id", "total_inventory").first()
        except DatabaseError as exc:
            raise StorageUnavailable(
                f"Could not load {resource_type.value} {resource_id}"
            ) from exc
        if row is None:
            return None
        return InventoryRecord(id=row[0], resource_type=resource_type, total_inventory=row[1])

    def _items_queryset(self, resource_type: ResourceType):
        from apps.bookings.models import BookingItem

        return (
            BookingItem.objects.filter(resource_type=resource_type.value)
            .annotate(
                effective_start=Coalesce("start_date", F("booking__check_in")),
                effective_end=Coalesce("end_date", F("booking__check_out")),
            )
        )

    def fetch_line_items(
        self,
        resource_type: ResourceType,
        dates: DateRange,
        *,
        policy: CapacityPolicy = DEFAULT_POLICY,
        today: date | None = None,
        resource_id: UUID | None = None,
        lock: bool = False,
    ) -> List[ReservationLineItem]:
        """
        Active line items of a type whose interval touches ``dates``

        The overlap test is a closed-interval prefilter; the engine applies
        the exact per-type coverage rule afterwards.
        """
        if dates.is_inverted:
            return []

        today = today or date.today()
        queryset = (
            self._items_queryset(resource_type)
            .filter(effective_start__lte=dates.end_date, effective_end__gte=dates.start_date)
            .filter(_status_filter(policy, today))
        )
        if resource_id is not None:
            queryset = queryset.filter(resource_id=resource_id)
        if lock:
            queryset = _lock_queryset_if_possible(queryset)

        try:
            rows = list(queryset.values(
                "id",
                "booking_id",
                "resource_id",
                "quantity",
                "effective_start",
                "effective_end",
                "booking__status",
            ))
        except DatabaseError as exc:
            raise StorageUnavailable(
                f"Could not load {resource_type.value} reservations"
            ) from exc

        return [self._to_line_item(resource_type, row) for row in rows]

    def line_items_on_day(
        self,
        resource_type: ResourceType,
        day: date,
        *,
        resource_id: UUID | None = None,
        policy: CapacityPolicy = DEFAULT_POLICY,
        today: date | None = None,
    ):
        """Booking items holding units on ``day``, with booking and guest loaded."""
        queryset = (
            self._items_queryset(resource_type)
            .filter(covering_day_filter(resource_type, day))
            .filter(_status_filter(policy, today or date.today()))
            .select_related("booking", "booking__guest")
            .order_by("booking__check_in", "booking__booking_code")
        )
        if resource_id is not None:
            queryset = queryset.filter(resource_id=resource_id)
        try:
            return list(queryset)
        except DatabaseError as exc:
            raise StorageUnavailable(
                f"Could not load {resource_type.value} reservations for {day}"
            ) from exc

    @staticmethod
    def _to_line_item(resource_type: ResourceType, row: dict) -> ReservationLineItem:
        return ReservationLineItem(
            id=row["id"],
            booking_id=row["booking_id"],
            resource_type=resource_type,
            resource_id=row["resource_id"],
            quantity=row["quantity"],
            start_date=row["effective_start"],
            end_date=row["effective_end"],
            booking_status=BookingStatus(row["booking__status"]),
        )


class DjangoBookingRepository:
    """Maps the Reservation aggregate onto Booking and BookingItem rows."""

    def get_by_id(self, booking_id: UUID, *, lock: bool = False) -> Optional[Reservation]:
        from apps.bookings.models import Booking

        queryset = Booking.objects.filter(pk=booking_id)
        if lock:
            queryset = _lock_queryset_if_possible(queryset)
        try:
            booking = queryset.first()
            if booking is None:
                return None
            items = list(booking.items.all())
        except DatabaseError as exc:
            raise StorageUnavailable(f"Could not load booking {booking_id}") from exc

        return self._to_domain(booking, items)

    def save(self, reservation: Reservation):
        """
        Insert a new reservation or persist the state of an existing one

        Line items are written only on insert; afterwards a booking changes
        status, never its items.
        """
        from apps.bookings.models import Booking, BookingItem

        booking, created = Booking.objects.update_or_create(
            id=reservation.id,
            defaults={
                "guest_id": reservation.guest_id,
                "booking_code": reservation.booking_code,
                "check_in": reservation.stay.start_date,
                "check_out": reservation.stay.end_date,
                "status": reservation.status.value,
                "total_price": reservation.total_price.quantize(),
                "currency": reservation.total_price.currency,
                "cancellation_reason": reservation.cancellation_reason,
                "cancelled_at": reservation.cancelled_at,
            },
        )
        if created:
            prices = reservation.unit_prices
            BookingItem.objects.bulk_create([
                BookingItem(
                    id=item.id,
                    booking=booking,
                    resource_type=item.resource_type.value,
                    resource_id=item.resource_id,
                    price=prices.get(item.id, Money.zero()).quantize(),
                    quantity=item.quantity,
                    start_date=item.start_date,
                    end_date=item.end_date,
                )
                for item in reservation.line_items
            ])
        logger.debug(f"Saved booking {booking.booking_code} (created={created})")
        return booking

    @staticmethod
    def _to_domain(booking, items) -> Reservation:
        status = BookingStatus(booking.status)
        line_items = [
            ReservationLineItem(
                id=item.id,
                booking_id=booking.id,
                resource_type=ResourceType(item.resource_type),
                resource_id=item.resource_id,
                quantity=item.quantity,
                start_date=item.start_date or booking.check_in,
                end_date=item.end_date or booking.check_out,
                booking_status=status,
            )
            for item in items
        ]
        reservation = Reservation(
            id=booking.id,
            created_at=booking.created_at,
            booking_code=booking.booking_code,
            guest_id=booking.guest_id,
            stay=DateRange(booking.check_in, booking.check_out),
            line_items=line_items,
            total_price=Money(booking.total_price, booking.currency),
            status=status,
            cancellation_reason=booking.cancellation_reason,
            cancelled_at=booking.cancelled_at,
        )
        reservation.unit_prices = {
            item.id: Money(item.price, booking.currency) for item in items
        }
        return reservation
