"""API views for the booking domain."""

from __future__ import annotations

import structlog  # type: ignore

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.exceptions import NotFound  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from shared.application.admin import AdminAccessRequired, AdminContext
from shared.domain.value_objects import DateRange
from .application.command_handlers import (
    BookingNotFound,
    CancelBookingCommand,
    CancelBookingHandler,
    CreateBookingHandler,
    UpdateBookingStatusCommand,
    UpdateBookingStatusHandler,
)
from .domain.entities import BookingStatus, ResourceType
from .domain.exceptions import (
    AvailabilityChanged,
    AvailabilityError,
    InsufficientCapacity,
    InvalidBookingRequest,
    StorageUnavailable,
)
from .filters import AdminBookingFilterSet
from .models import Booking
from .serializers import (
    AdminBookingSerializer,
    AvailabilityQuerySerializer,
    AvailabilitySnapshotSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    BookingStatusSerializer,
    CancelBookingSerializer,
    DateWindowSerializer,
    ValidateItemSerializer,
)
from .services import AvailabilityService

logger = structlog.get_logger(__name__)


def error_response(exc: Exception) -> Response:
    """Map booking-domain errors onto HTTP responses."""

    if isinstance(exc, InsufficientCapacity):
        return Response(
            {
                "non_field_errors": [str(exc)],
                "bottleneck_day": exc.day.isoformat() if exc.day else None,
                "remaining": exc.remaining,
            },
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, InvalidBookingRequest):
        return Response({"non_field_errors": [str(exc)]}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, AvailabilityChanged):
        return Response(
            {"detail": str(exc), "retryable": True},
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, StorageUnavailable):
        logger.error("availability.storage_unavailable", error=str(exc))
        return Response(
            {"detail": "Availability data is temporarily unavailable."},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    if isinstance(exc, AdminAccessRequired):
        return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
    if isinstance(exc, BookingNotFound):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    raise exc


def _resource_type_or_404(value: str) -> ResourceType:
    try:
        return ResourceType(value)
    except ValueError:
        raise NotFound(f"Unknown resource type: {value}") from None


class IsHotelAdmin(permissions.BasePermission):
    """Staff and superusers run the admin console."""

    message = "Unauthorized: Admin access required."

    def has_permission(self, request, view):  # type: ignore
        try:
            AdminContext.from_user(request.user)
        except AdminAccessRequired:
            return False
        return True


class AvailabilityView(APIView):
    """Booked and remaining units for every resource of a type."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, format=None):  # type: ignore
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        snapshots = AvailabilityService().list_availability(
            query.resource_type(), query.to_date_range()
        )
        return Response(AvailabilitySnapshotSerializer(snapshots, many=True).data)


class ResourceRemainingView(APIView):
    """Bottleneck quantity for one resource over a requested range."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, resource_type, resource_id, format=None):  # type: ignore
        kind = _resource_type_or_404(resource_type)
        window = DateWindowSerializer(data=request.query_params)
        window.is_valid(raise_exception=True)
        dates = window.to_date_range()
        remaining = AvailabilityService().remaining_for(kind, resource_id, dates)
        return Response(
            {
                "resource_type": kind.value,
                "resource_id": str(resource_id),
                "start": dates.start_date.isoformat(),
                "end": dates.end_date.isoformat(),
                "remaining": remaining,
            }
        )


class ValidateItemView(APIView):
    """Strict per-day check for one line item before it goes into the cart."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, format=None):  # type: ignore
        serializer = ValidateItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            check = AvailabilityService().validate_booking_request(
                ResourceType(data["type"]),
                data["resource_id"],
                data["quantity"],
                DateRange(data["start_date"], data["end_date"]),
            )
        except AvailabilityError as exc:
            return error_response(exc)
        return Response(
            {
                "valid": check.valid,
                "message": check.message,
                "bottleneck_day": check.bottleneck_day.isoformat() if check.bottleneck_day else None,
                "remaining": check.remaining,
            }
        )


class BookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Guest bookings: create, list own, view, cancel."""

    queryset = Booking.objects.select_related("guest").prefetch_related("items")
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):  # type: ignore
        return super().get_queryset().filter(guest=self.request.user)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            reservation = CreateBookingHandler().handle(serializer.to_command(request.user.pk))
        except AvailabilityError as exc:
            return error_response(exc)

        booking = self.get_queryset().get(pk=reservation.id)
        read_serializer = BookingSerializer(booking, context=self.get_serializer_context())
        return Response(read_serializer.data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            CancelBookingHandler().handle(
                CancelBookingCommand(
                    booking_id=booking.pk,
                    guest_id=request.user.pk,
                    reason=serializer.validated_data["reason"],
                )
            )
        except (AvailabilityError, BookingNotFound) as exc:
            return error_response(exc)

        booking.refresh_from_db()
        return Response({"status": booking.status}, status=status.HTTP_200_OK)


class AdminBookingViewSet(viewsets.ReadOnlyModelViewSet):
    """Admin oversight of every booking, with status transitions."""

    queryset = Booking.objects.select_related("guest").prefetch_related("items")
    serializer_class = AdminBookingSerializer
    permission_classes = [permissions.IsAuthenticated, IsHotelAdmin]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = AdminBookingFilterSet
    ordering_fields = ["created_at", "check_in", "total_price"]

    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        serializer = BookingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            UpdateBookingStatusHandler().handle(
                UpdateBookingStatusCommand(
                    booking_id=booking.pk,
                    new_status=BookingStatus(serializer.validated_data["status"]),
                    admin=AdminContext.from_user(request.user),
                    reason=serializer.validated_data["reason"],
                )
            )
        except (AvailabilityError, AdminAccessRequired, BookingNotFound) as exc:
            return error_response(exc)

        booking.refresh_from_db()
        return Response(AdminBookingSerializer(booking).data)
