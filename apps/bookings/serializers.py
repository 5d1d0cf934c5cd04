"""Serializers for the booking domain."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from rest_framework import serializers  # type: ignore

from shared.domain.value_objects import DateRange
from .application.command_handlers import CreateBookingCommand, LineItemRequest
from .domain.entities import BookingStatus, ResourceType
from .models import Booking, BookingItem

RESOURCE_TYPE_CHOICES = [resource_type.value for resource_type in ResourceType]

DEFAULT_MAX_WINDOW_DAYS = 366


def max_window_days() -> int:
    config = getattr(settings, "HOTEL_AVAILABILITY", {}) or {}
    return int(config.get("MAX_WINDOW_DAYS", DEFAULT_MAX_WINDOW_DAYS))


class DateWindowSerializer(serializers.Serializer):
    """Query window for browsing; an inverted window is allowed and yields no days."""

    start = serializers.DateField()
    end = serializers.DateField()

    def validate(self, attrs):  # type: ignore
        limit = max_window_days()
        if (attrs["end"] - attrs["start"]).days + 1 > limit:
            raise serializers.ValidationError(f"Date window cannot exceed {limit} days.")
        return attrs

    def to_date_range(self) -> DateRange:
        return DateRange(self.validated_data["start"], self.validated_data["end"])


class AvailabilityQuerySerializer(DateWindowSerializer):
    type = serializers.ChoiceField(choices=RESOURCE_TYPE_CHOICES)

    def resource_type(self) -> ResourceType:
        return ResourceType(self.validated_data["type"])


class AvailabilitySnapshotSerializer(serializers.Serializer):
    resource_id = serializers.UUIDField()
    total_inventory = serializers.IntegerField()
    booked_count = serializers.IntegerField()
    remaining_count = serializers.IntegerField()


class ValidateItemSerializer(serializers.Serializer):
    """Check one line item before it is added to a booking."""

    type = serializers.ChoiceField(choices=RESOURCE_TYPE_CHOICES)
    resource_id = serializers.UUIDField()
    quantity = serializers.IntegerField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()

    def validate_quantity(self, value: int) -> int:
        if value < 1:
            raise serializers.ValidationError("Quantity must be at least 1.")
        return value

    def validate(self, attrs):  # type: ignore
        if attrs["end_date"] < attrs["start_date"]:
            raise serializers.ValidationError("End date cannot be before start date.")
        limit = max_window_days()
        if (attrs["end_date"] - attrs["start_date"]).days + 1 > limit:
            raise serializers.ValidationError(f"Date window cannot exceed {limit} days.")
        return attrs


class BookingItemRequestSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=RESOURCE_TYPE_CHOICES)
    resource_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)


class BookingCreateSerializer(serializers.Serializer):
    """Guest booking request; the total price is computed server-side."""

    check_in = serializers.DateField()
    check_out = serializers.DateField()
    items = BookingItemRequestSerializer(many=True, allow_empty=False)

    def validate(self, attrs):  # type: ignore
        if attrs["check_out"] <= attrs["check_in"]:
            raise serializers.ValidationError("Check-out date must be after check-in date.")
        return attrs

    def to_command(self, guest_id: int) -> CreateBookingCommand:
        data = self.validated_data
        return CreateBookingCommand(
            guest_id=guest_id,
            check_in=data["check_in"],
            check_out=data["check_out"],
            items=[
                LineItemRequest(
                    resource_type=ResourceType(item["type"]),
                    resource_id=item["resource_id"],
                    quantity=item["quantity"],
                    start_date=item.get("start_date"),
                    end_date=item.get("end_date"),
                )
                for item in data["items"]
            ],
        )


class BookingItemSerializer(serializers.ModelSerializer):
    start_date = serializers.SerializerMethodField()
    end_date = serializers.SerializerMethodField()

    class Meta:
        model = BookingItem
        fields = [
            "id",
            "resource_type",
            "resource_id",
            "price",
            "quantity",
            "start_date",
            "end_date",
        ]
        read_only_fields = fields

    # Items stored without dates span the whole stay
    def get_start_date(self, obj: BookingItem):
        return (obj.start_date or obj.booking.check_in).isoformat()

    def get_end_date(self, obj: BookingItem):
        return (obj.end_date or obj.booking.check_out).isoformat()


class BookingSerializer(serializers.ModelSerializer):
    """Booking detail with its items."""

    guest_id = serializers.ReadOnlyField(source="guest.id")
    items = BookingItemSerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_code",
            "guest_id",
            "check_in",
            "check_out",
            "status",
            "total_price",
            "currency",
            "cancelled_at",
            "cancellation_reason",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AdminBookingSerializer(BookingSerializer):
    guest_username = serializers.ReadOnlyField(source="guest.username")
    guest_email = serializers.ReadOnlyField(source="guest.email")

    class Meta(BookingSerializer.Meta):
        fields = BookingSerializer.Meta.fields + ["guest_username", "guest_email"]
        read_only_fields = fields


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value],
    )
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)
