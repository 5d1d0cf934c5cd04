"""Booking persistence models for the hotel reservation platform."""

from __future__ import annotations

import secrets
import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore


class Booking(models.Model):
    """A guest's booking; capacity is held by its items."""

    class Status(models.TextChoices):
        CONFIRMED = "confirmed", "Confirmed"
        CANCELLED = "cancelled", "Cancelled"
        COMPLETED = "completed", "Completed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    guest = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    booking_code = models.CharField(max_length=12, unique=True, editable=False)
    check_in = models.DateField()
    check_out = models.DateField()
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.CONFIRMED,
    )
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="USD")
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gte=models.F("check_in")),
                name="booking_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["check_in", "check_out"]),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_code}"

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.booking_code:
            self.booking_code = self.generate_booking_code()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_booking_code() -> str:
        return secrets.token_hex(4).upper()


class BookingItem(models.Model):
    """
    One resource line of a booking.

    ``start_date``/``end_date`` are empty on bookings created before items
    carried their own dates; readers fall back to the booking's stay.
    """

    class ResourceType(models.TextChoices):
        ROOM = "room", "Room"
        MEAL = "meal", "Meal"
        ACTIVITY = "activity", "Activity"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="items",
    )
    resource_type = models.CharField(max_length=10, choices=ResourceType.choices)
    resource_id = models.UUIDField()
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Unit price at the time of booking.",
    )
    quantity = models.PositiveIntegerField(default=1)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="booking_item_positive_quantity",
            ),
        ]
        indexes = [
            models.Index(fields=["resource_type", "resource_id"]),
            models.Index(fields=["resource_type", "start_date", "end_date"]),
        ]

    def __str__(self) -> str:
        return f"{self.resource_type} {self.resource_id} x{self.quantity}"
