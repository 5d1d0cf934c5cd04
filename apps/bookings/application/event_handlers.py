"""
Booking Event Handlers

Subscribed to the message bus in ``BookingsConfig.ready()``. They run
after the booking transaction has committed.
"""

import logging

from shared.application.message_bus import MessageBus
from apps.bookings.domain.events import (
    BookingCancelled,
    BookingCompleted,
    BookingCreated,
    InventoryAllocated,
)

logger = logging.getLogger(__name__)


def send_booking_created_notification(event: BookingCreated):
    from apps.bookings.tasks import notify_booking_created

    notify_booking_created.delay(str(event.booking_id))


def send_booking_cancelled_notification(event: BookingCancelled):
    from apps.bookings.tasks import notify_booking_cancelled

    notify_booking_cancelled.delay(str(event.booking_id))


def log_inventory_allocated(event: InventoryAllocated):
    logger.info(
        f"Allocated {event.quantity} x {event.resource_type} {event.resource_id} "
        f"for {event.dates} (booking {event.booking_id})"
    )


def log_booking_completed(event: BookingCompleted):
    logger.info(f"Booking {event.booking_id} of guest {event.guest_id} completed")


def register_handlers(bus: MessageBus):
    bus.register_event_handler(BookingCreated, send_booking_created_notification)
    bus.register_event_handler(BookingCancelled, send_booking_cancelled_notification)
    bus.register_event_handler(InventoryAllocated, log_inventory_allocated)
    bus.register_event_handler(BookingCompleted, log_booking_completed)
