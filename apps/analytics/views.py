"""API views for the admin console.

Same-day inventory, the guests behind a resource's bookings, the daily
manifest and headline statistics. Every view requires staff access;
the counts come from the availability engine or from ORM filters that
apply the same day-coverage rule.
"""

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model  # type: ignore
from django.db import models  # type: ignore
from rest_framework import serializers  # type: ignore
from rest_framework.exceptions import NotFound  # type: ignore
from rest_framework.permissions import IsAuthenticated  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.domain.entities import ResourceType
from apps.bookings.domain.exceptions import StorageUnavailable
from apps.bookings.models import Booking
from apps.bookings.serializers import RESOURCE_TYPE_CHOICES
from apps.bookings.services import AvailabilityService
from apps.bookings.views import IsHotelAdmin, error_response
from apps.catalog.models import get_resource_model
from shared.domain.value_objects import DateRange


class DayQuerySerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=RESOURCE_TYPE_CHOICES)
    date = serializers.DateField()


class SingleDaySerializer(serializers.Serializer):
    date = serializers.DateField()


def _guest_rows(items, *, with_resource: bool = False):
    rows = []
    for item in items:
        booking = item.booking
        row = {
            "booking_id": str(booking.id),
            "booking_code": booking.booking_code,
            "guest_name": booking.guest.get_full_name() or booking.guest.get_username(),
            "guest_email": booking.guest.email,
            "status": booking.status,
            "quantity": item.quantity,
            "check_in": booking.check_in.isoformat(),
            "check_out": booking.check_out.isoformat(),
            "start_date": item.effective_start.isoformat(),
            "end_date": item.effective_end.isoformat(),
        }
        if with_resource:
            row["resource_id"] = str(item.resource_id)
        rows.append(row)
    return rows


class DailyInventoryStatusView(APIView):
    """Booked and remaining units of every resource of a type on one day."""

    permission_classes = [IsAuthenticated, IsHotelAdmin]

    def get(self, request, format=None):  # type: ignore
        query = DayQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        resource_type = ResourceType(query.validated_data["type"])
        day = query.validated_data["date"]

        snapshots = AvailabilityService().list_availability(resource_type, DateRange(day, day))
        model = get_resource_model(resource_type.value)
        names = dict(model.objects.values_list("id", "name"))

        return Response(
            [
                {
                    "id": str(snapshot.resource_id),
                    "name": names.get(snapshot.resource_id, "Unknown Resource"),
                    "total_inventory": snapshot.total_inventory,
                    "booked_count": snapshot.booked_count,
                    "remaining_count": snapshot.remaining_count,
                }
                for snapshot in sorted(
                    snapshots, key=lambda s: names.get(s.resource_id, "")
                )
            ]
        )


class ResourceBookingsView(APIView):
    """Guests whose bookings hold units of one resource on a day."""

    permission_classes = [IsAuthenticated, IsHotelAdmin]

    def get(self, request, resource_type, resource_id, format=None):  # type: ignore
        try:
            kind = ResourceType(resource_type)
        except ValueError:
            raise NotFound(f"Unknown resource type: {resource_type}") from None
        query = SingleDaySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        service = AvailabilityService()
        try:
            items = service.inventory_repo.line_items_on_day(
                kind,
                query.validated_data["date"],
                resource_id=resource_id,
                policy=service.policy,
                today=service.today(),
            )
        except StorageUnavailable as exc:
            return error_response(exc)
        return Response(_guest_rows(items))


class DailyManifestView(APIView):
    """Every guest holding a resource of a type on a day, grouped by resource."""

    permission_classes = [IsAuthenticated, IsHotelAdmin]

    def get(self, request, format=None):  # type: ignore
        query = DayQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        resource_type = ResourceType(query.validated_data["type"])

        service = AvailabilityService()
        try:
            items = service.inventory_repo.line_items_on_day(
                resource_type,
                query.validated_data["date"],
                policy=service.policy,
                today=service.today(),
            )
        except StorageUnavailable as exc:
            return error_response(exc)

        names = dict(get_resource_model(resource_type.value).objects.values_list("id", "name"))
        rows = _guest_rows(items, with_resource=True)
        for row, item in zip(rows, items):
            row["resource_name"] = names.get(item.resource_id, "Unknown Resource")
        rows.sort(key=lambda row: (row["resource_name"], row["guest_name"]))
        return Response(rows)


class AdminStatsView(APIView):
    """Revenue, active bookings, guest count and today's room occupancy."""

    permission_classes = [IsAuthenticated, IsHotelAdmin]

    def get(self, request, format=None):  # type: ignore
        confirmed = Booking.objects.filter(status=Booking.Status.CONFIRMED)
        total_revenue = confirmed.aggregate(total=models.Sum("total_price")).get("total") or Decimal("0")
        occupancy = AvailabilityService().occupancy_rate()

        return Response(
            {
                "total_revenue": total_revenue,
                "active_bookings": confirmed.count(),
                "guest_count": get_user_model().objects.count(),
                "occupancy_rate": round(occupancy, 4),
            }
        )
