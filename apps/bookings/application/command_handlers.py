"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- CreateBookingCommand: Validate line items against live capacity and store a booking
- CancelBookingCommand: Guest cancels their own booking
- UpdateBookingStatusCommand: Admin moves a booking to cancelled or completed
- CompleteFinishedBookingsCommand: Close confirmed bookings whose stay is over
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional
from uuid import UUID
import logging

from django.db import IntegrityError, OperationalError
from django.utils import timezone

from shared.application.admin import AdminContext
from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import DateRange, Money
from apps.bookings.domain.entities import (
    BookingStatus,
    Reservation,
    ReservationLineItem,
    ResourceType,
)
from apps.bookings.domain.exceptions import AvailabilityChanged, InvalidBookingRequest
from apps.bookings.domain.pricing import booking_total, line_total
from apps.bookings.repositories import DjangoBookingRepository, DjangoInventoryRepository
from apps.bookings.services import AvailabilityService

logger = logging.getLogger(__name__)


class BookingNotFound(LookupError):
    """No booking with that id is visible to the caller"""


# ===== Commands =====

@dataclass
class LineItemRequest:
    """One requested resource; missing dates default to the stay"""
    resource_type: ResourceType
    resource_id: UUID
    quantity: int = 1
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    This is the primary entry point for creating bookings.
    The total price is always computed here, never taken from the client.
    """
    guest_id: int
    check_in: date
    check_out: date
    items: List[LineItemRequest] = field(default_factory=list)
    currency: Optional[str] = None


@dataclass
class CancelBookingCommand:
    """Command for a guest to cancel their own booking"""
    booking_id: UUID
    guest_id: int
    reason: str = ''


@dataclass
class UpdateBookingStatusCommand:
    """Admin-only status transition"""
    booking_id: UUID
    new_status: BookingStatus
    admin: AdminContext
    reason: str = ''


@dataclass
class CompleteFinishedBookingsCommand:
    """Complete every confirmed booking that checked out before ``as_of``"""
    as_of: Optional[date] = None


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command

    This implements the critical business logic for creating bookings
    without overbooking any resource on any day.

    Strategy:
    1. Validate the stay and the items (cheap, no locks)
    2. Start database transaction (atomic)
    3. For each line item, lock the catalog row (SELECT FOR UPDATE)
    4. Re-validate every day of the item against live reservations,
       counting items already accepted for this booking
    5. Price the lines from the catalog and build the Reservation
    6. Save (within transaction), publish events after commit

    Lock or constraint failures during the write surface as
    AvailabilityChanged, which the caller may retry.
    """

    def __init__(self, booking_repo=None, inventory_repo=None, availability=None):
        self.booking_repo = booking_repo or DjangoBookingRepository()
        self.inventory_repo = inventory_repo or DjangoInventoryRepository()
        self.availability = availability or AvailabilityService(self.inventory_repo)

    def handle(self, command: CreateBookingCommand) -> Reservation:
        """
        Handle booking creation

        Returns: Created Reservation aggregate

        Raises:
            InvalidBookingRequest: bad stay dates, empty or malformed items
            InsufficientCapacity: some day of some item would be oversold
            AvailabilityChanged: concurrent write conflict, safe to retry
            StorageUnavailable: inventory could not be read
        """
        logger.info(
            f"Creating booking for guest {command.guest_id}, "
            f"dates {command.check_in} - {command.check_out}, {len(command.items)} item(s)"
        )

        stay = self._validate_stay(command)
        requested = [self._resolve_dates(item, stay) for item in command.items]
        # Catalog rows are locked in (type, id) order
        requested.sort(key=lambda pair: (pair[0].resource_type.value, str(pair[0].resource_id)))
        currency = command.currency or _default_currency()

        try:
            with DjangoUnitOfWork() as uow:
                accepted: List[ReservationLineItem] = []
                lines: List[Money] = []
                unit_prices = {}

                for item, dates in requested:
                    self.availability.ensure_bookable(
                        item.resource_type,
                        item.resource_id,
                        item.quantity,
                        dates,
                        lock=True,
                        pending=accepted,
                    )
                    line_item = ReservationLineItem(
                        resource_type=item.resource_type,
                        resource_id=item.resource_id,
                        quantity=item.quantity,
                        start_date=dates.start_date,
                        end_date=dates.end_date,
                    )
                    accepted.append(line_item)

                    unit_price = Money(self._unit_price(item), currency)
                    unit_prices[line_item.id] = unit_price
                    lines.append(line_total(item.resource_type, unit_price, item.quantity, dates))

                reservation = Reservation(
                    booking_code=_generate_booking_code(),
                    guest_id=command.guest_id,
                    stay=stay,
                    line_items=accepted,
                    total_price=booking_total(lines, currency),
                    unit_prices=unit_prices,
                )
                reservation.place()

                uow.collect_events(reservation)
                self.booking_repo.save(reservation)
        except (OperationalError, IntegrityError) as exc:
            logger.warning(f"Booking for guest {command.guest_id} hit a concurrent change: {exc}")
            raise AvailabilityChanged() from exc

        logger.info(
            f"Booking created successfully: {reservation.booking_code} "
            f"(ID: {reservation.id}, total {reservation.total_price})"
        )

        return reservation

    def _validate_stay(self, command: CreateBookingCommand) -> DateRange:
        if command.check_out <= command.check_in:
            raise InvalidBookingRequest("Check-out date must be after check-in date")

        if command.check_in < timezone.localdate():
            raise InvalidBookingRequest("Check-in date cannot be in the past")

        if not command.items:
            raise InvalidBookingRequest("A booking needs at least one item")

        return DateRange(command.check_in, command.check_out)

    @staticmethod
    def _resolve_dates(item: LineItemRequest, stay: DateRange):
        if item.quantity < 1:
            raise InvalidBookingRequest(
                f"Quantity must be a positive number, got {item.quantity}"
            )
        dates = DateRange(item.start_date or stay.start_date, item.end_date or stay.end_date)
        if dates.is_inverted:
            raise InvalidBookingRequest(
                f"{item.resource_type.value.capitalize()} ends before it starts ({dates})"
            )
        if dates.start_date < timezone.localdate():
            raise InvalidBookingRequest(
                f"{item.resource_type.value.capitalize()} cannot start in the past ({dates})"
            )
        if dates.start_date < stay.start_date or dates.end_date > stay.end_date:
            raise InvalidBookingRequest(
                f"{item.resource_type.value.capitalize()} dates {dates} fall outside the stay {stay}"
            )
        if item.resource_type is ResourceType.ROOM and dates.end_date == dates.start_date:
            raise InvalidBookingRequest("A room must be booked for at least one night")
        return item, dates

    @staticmethod
    def _unit_price(item: LineItemRequest):
        from apps.catalog.models import get_resource_model

        model = get_resource_model(item.resource_type.value)
        resource = model.objects.get(pk=item.resource_id)
        return resource.unit_price


class CancelBookingHandler:
    """Handler for a guest cancelling their own booking"""

    def __init__(self, booking_repo=None):
        self.booking_repo = booking_repo or DjangoBookingRepository()

    def handle(self, command: CancelBookingCommand) -> Reservation:
        """Cancel booking; its items stop holding capacity"""
        logger.info(f"Cancelling booking {command.booking_id}, reason: {command.reason!r}")

        with DjangoUnitOfWork() as uow:
            reservation = self.booking_repo.get_by_id(command.booking_id, lock=True)
            if reservation is None or reservation.guest_id != command.guest_id:
                raise BookingNotFound(f"Booking {command.booking_id} not found")

            reservation.cancel(command.reason)

            uow.collect_events(reservation)
            self.booking_repo.save(reservation)
            # Event: BookingCancelled

        logger.info(f"Booking {reservation.booking_code} cancelled successfully")
        return reservation


class UpdateBookingStatusHandler:
    """Handler for admin status changes"""

    def __init__(self, booking_repo=None):
        self.booking_repo = booking_repo or DjangoBookingRepository()

    def handle(self, command: UpdateBookingStatusCommand) -> Reservation:
        if not isinstance(command.admin, AdminContext):
            raise TypeError("UpdateBookingStatusCommand requires an AdminContext")

        logger.info(
            f"Admin {command.admin.username or command.admin.user_id} moving booking "
            f"{command.booking_id} to {command.new_status.value}"
        )

        with DjangoUnitOfWork() as uow:
            reservation = self.booking_repo.get_by_id(command.booking_id, lock=True)
            if reservation is None:
                raise BookingNotFound(f"Booking {command.booking_id} not found")

            reservation.transition_to(command.new_status, command.reason)

            uow.collect_events(reservation)
            self.booking_repo.save(reservation)

        logger.info(f"Booking {reservation.booking_code} is now {reservation.status.value}")
        return reservation


class CompleteFinishedBookingsHandler:
    """Handler for closing bookings whose check-out date has passed"""

    def __init__(self, booking_repo=None):
        self.booking_repo = booking_repo or DjangoBookingRepository()

    def handle(self, command: CompleteFinishedBookingsCommand) -> int:
        from apps.bookings.models import Booking

        as_of = command.as_of or timezone.localdate()
        booking_ids = list(
            Booking.objects.filter(
                status=BookingStatus.CONFIRMED.value,
                check_out__lt=as_of,
            ).values_list("id", flat=True)
        )

        completed = 0
        for booking_id in booking_ids:
            with DjangoUnitOfWork() as uow:
                reservation = self.booking_repo.get_by_id(booking_id, lock=True)
                # Skip bookings cancelled since the id list was read
                if reservation is None or reservation.status is not BookingStatus.CONFIRMED:
                    continue
                reservation.complete()
                uow.collect_events(reservation)
                self.booking_repo.save(reservation)
                completed += 1

        if completed:
            logger.info(f"Completed {completed} finished booking(s) as of {as_of}")
        return completed


def _generate_booking_code() -> str:
    from apps.bookings.models import Booking

    return Booking.generate_booking_code()


def _default_currency() -> str:
    from django.conf import settings

    return getattr(settings, "HOTEL_CURRENCY", "USD")
