"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .application.command_handlers import (
    CompleteFinishedBookingsCommand,
    CompleteFinishedBookingsHandler,
)
from .models import Booking

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.complete_finished_bookings")
def complete_finished_bookings() -> dict[str, int]:
    """
    Close bookings whose stay is over.

    Confirmed bookings with a check-out date before today move to
    COMPLETED through the Reservation aggregate, so BookingCompleted
    events are published as usual.

    Runs every hour.

    Returns:
        dict: {"completed": number of bookings completed}
    """
    completed = CompleteFinishedBookingsHandler().handle(CompleteFinishedBookingsCommand())
    return {"completed": completed}


# ============================================================================
# NOTIFICATION TASKS
# ============================================================================

@shared_task(name="bookings.notify_booking_created")
def notify_booking_created(booking_id: str) -> bool:
    """Tell the guest their booking is confirmed."""
    try:
        booking = Booking.objects.select_related("guest").get(id=booking_id)
    except Booking.DoesNotExist:
        logger.error(f"Booking {booking_id} not found for confirmation notification")
        return False

    logger.info(
        f"[NOTIFICATION] Booking confirmed: {booking.booking_code} "
        f"for guest {booking.guest.email or booking.guest.get_username()}, "
        f"{booking.check_in:%Y-%m-%d} - {booking.check_out:%Y-%m-%d}, "
        f"total {booking.total_price} {booking.currency}"
    )
    return True


@shared_task(name="bookings.notify_booking_cancelled")
def notify_booking_cancelled(booking_id: str) -> bool:
    """Tell the guest their booking was cancelled."""
    try:
        booking = Booking.objects.select_related("guest").get(id=booking_id)
    except Booking.DoesNotExist:
        logger.error(f"Booking {booking_id} not found for cancellation notification")
        return False

    logger.info(
        f"[NOTIFICATION] Booking cancelled: {booking.booking_code} "
        f"for guest {booking.guest.email or booking.guest.get_username()}"
    )
    return True
