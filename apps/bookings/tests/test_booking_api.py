"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.domain.exceptions import AvailabilityChanged, StorageUnavailable
from apps.bookings.models import Booking, BookingItem
from apps.catalog.models import MealOption, RoomType

User = get_user_model()


class BookingAPITestCase(APITestCase):

    def setUp(self) -> None:
        self.guest = User.objects.create_user(
            username="guest", email="guest@example.com", password="GuestPass123"
        )
        self.other = User.objects.create_user(
            username="other", email="other@example.com", password="OtherPass123"
        )
        self.room = RoomType.objects.create(
            name="Garden View", price_per_night=Decimal("100.00"), total_inventory=2
        )
        self.meal = MealOption.objects.create(
            name="Dinner", price=Decimal("20.00"), total_inventory=10
        )
        self.today = timezone.localdate()
        self.check_in = self.today + timedelta(days=1)
        self.check_out = self.today + timedelta(days=3)
        self.list_url = reverse("booking-list")

    def _payload(self, room_quantity: int = 1, meals: int = 0) -> dict:
        items = [{"type": "room", "resource_id": str(self.room.id), "quantity": room_quantity}]
        if meals:
            items.append({"type": "meal", "resource_id": str(self.meal.id), "quantity": meals})
        return {
            "check_in": str(self.check_in),
            "check_out": str(self.check_out),
            "items": items,
        }

    def _existing_booking(self, guest, quantity: int = 1) -> Booking:
        booking = Booking.objects.create(
            guest=guest,
            check_in=self.check_in,
            check_out=self.check_out,
            total_price=Decimal("200.00"),
        )
        BookingItem.objects.create(
            booking=booking,
            resource_type=BookingItem.ResourceType.ROOM,
            resource_id=self.room.id,
            price=Decimal("100.00"),
            quantity=quantity,
            start_date=self.check_in,
            end_date=self.check_out,
        )
        return booking


class BookingAPITests(BookingAPITestCase):
    """Covers booking creation, overbooking and cancellation."""

    def setUp(self) -> None:
        super().setUp()
        self.client.force_authenticate(self.guest)

    def test_guest_can_create_booking(self) -> None:
        response = self.client.post(self.list_url, self._payload(meals=1), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], Booking.Status.CONFIRMED)
        self.assertEqual(response.data["total_price"], "220.00")
        self.assertEqual(len(response.data["items"]), 2)
        self.assertEqual(Booking.objects.get().guest, self.guest)

    def test_client_total_is_ignored(self) -> None:
        payload = self._payload()
        payload["total_price"] = "1.00"

        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["total_price"], "200.00")

    def test_overbooking_is_rejected(self) -> None:
        self._existing_booking(self.other, quantity=2)

        response = self.client.post(self.list_url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("non_field_errors", response.data)
        self.assertEqual(response.data["bottleneck_day"], str(self.check_in))
        self.assertEqual(response.data["remaining"], 0)
        self.assertEqual(Booking.objects.count(), 1)

    def test_check_out_must_follow_check_in(self) -> None:
        payload = self._payload()
        payload["check_out"] = payload["check_in"]

        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_empty_items_are_rejected(self) -> None:
        payload = self._payload()
        payload["items"] = []

        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("items", response.data)

    def test_write_conflict_returns_409(self) -> None:
        with mock.patch(
            "apps.bookings.views.CreateBookingHandler.handle", side_effect=AvailabilityChanged()
        ):
            response = self.client.post(self.list_url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(response.data["retryable"])

    def test_list_shows_only_own_bookings(self) -> None:
        own = self._existing_booking(self.guest)
        self._existing_booking(self.other)

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        results = response.data["results"] if isinstance(response.data, dict) else response.data
        self.assertEqual([row["id"] for row in results], [str(own.id)])

    def test_guest_can_cancel_booking(self) -> None:
        booking = self._existing_booking(self.guest)
        url = reverse("booking-cancel", kwargs={"pk": booking.pk})

        response = self.client.post(url, {"reason": "Plans changed"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.CANCELLED)
        self.assertEqual(booking.cancellation_reason, "Plans changed")

    def test_cannot_cancel_someone_elses_booking(self) -> None:
        booking = self._existing_booking(self.other)
        url = reverse("booking-cancel", kwargs={"pk": booking.pk})

        response = self.client.post(url, {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.CONFIRMED)

    def test_cancelled_booking_cannot_be_cancelled_again(self) -> None:
        booking = self._existing_booking(self.guest)
        url = reverse("booking-cancel", kwargs={"pk": booking.pk})
        self.client.post(url, {}, format="json")

        response = self.client.post(url, {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AvailabilityAPITests(BookingAPITestCase):

    def test_availability_list_is_public(self) -> None:
        self._existing_booking(self.other)

        response = self.client.get(
            reverse("availability-list"),
            {"type": "room", "start": str(self.check_in), "end": str(self.check_out)},
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        [row] = response.data
        self.assertEqual(row["resource_id"], str(self.room.id))
        self.assertEqual(row["booked_count"], 1)
        self.assertEqual(row["remaining_count"], 1)

    def test_unknown_type_is_rejected(self) -> None:
        response = self.client.get(
            reverse("availability-list"),
            {"type": "spa", "start": str(self.check_in), "end": str(self.check_out)},
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_remaining_for_resource(self) -> None:
        self._existing_booking(self.other)
        url = reverse(
            "availability-remaining",
            kwargs={"resource_type": "room", "resource_id": self.room.id},
        )

        response = self.client.get(url, {"start": str(self.check_in), "end": str(self.check_out)})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["remaining"], 1)

    def test_remaining_with_unknown_type_is_404(self) -> None:
        url = reverse(
            "availability-remaining",
            kwargs={"resource_type": "spa", "resource_id": self.room.id},
        )

        response = self.client.get(url, {"start": str(self.check_in), "end": str(self.check_out)})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_validate_requires_authentication(self) -> None:
        response = self.client.post(reverse("availability-validate"), {}, format="json")

        self.assertIn(
            response.status_code,
            (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN),
        )

    def test_validate_reports_bottleneck(self) -> None:
        self._existing_booking(self.other, quantity=2)
        self.client.force_authenticate(self.guest)

        response = self.client.post(
            reverse("availability-validate"),
            {
                "type": "room",
                "resource_id": str(self.room.id),
                "quantity": 1,
                "start_date": str(self.today),
                "end_date": str(self.check_out),
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["valid"])
        self.assertEqual(response.data["bottleneck_day"], str(self.check_in))
        self.assertEqual(response.data["remaining"], 0)

    def test_validate_rejects_zero_night_room(self) -> None:
        self._existing_booking(self.other, quantity=2)
        self.client.force_authenticate(self.guest)

        response = self.client.post(
            reverse("availability-validate"),
            {
                "type": "room",
                "resource_id": str(self.room.id),
                "quantity": 50,
                "start_date": str(self.check_in),
                "end_date": str(self.check_in),
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("non_field_errors", response.data)

    def test_oversized_windows_are_rejected(self) -> None:
        start = str(self.today)
        end = str(self.today + timedelta(days=366))
        remaining_url = reverse(
            "availability-remaining",
            kwargs={"resource_type": "room", "resource_id": self.room.id},
        )

        listing = self.client.get(reverse("availability-list"), {"type": "room", "start": start, "end": end})
        remaining = self.client.get(remaining_url, {"start": start, "end": end})

        self.assertEqual(listing.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(remaining.status_code, status.HTTP_400_BAD_REQUEST)

    def test_year_long_window_is_accepted(self) -> None:
        response = self.client.get(
            reverse("availability-list"),
            {"type": "room", "start": str(self.today), "end": str(self.today + timedelta(days=365))},
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_validate_storage_failure_returns_503(self) -> None:
        self.client.force_authenticate(self.guest)

        with mock.patch(
            "apps.bookings.views.AvailabilityService.validate_booking_request",
            side_effect=StorageUnavailable("down"),
        ):
            response = self.client.post(
                reverse("availability-validate"),
                {
                    "type": "room",
                    "resource_id": str(self.room.id),
                    "quantity": 1,
                    "start_date": str(self.check_in),
                    "end_date": str(self.check_out),
                },
                format="json",
            )

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)


class AdminBookingAPITests(BookingAPITestCase):

    def setUp(self) -> None:
        super().setUp()
        self.staff = User.objects.create_user(
            username="manager", email="manager@example.com", password="StaffPass123", is_staff=True
        )

    def test_non_staff_cannot_list_all_bookings(self) -> None:
        self.client.force_authenticate(self.guest)

        response = self.client.get(reverse("admin-booking-list"))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_filters_by_status(self) -> None:
        confirmed = self._existing_booking(self.guest)
        cancelled = self._existing_booking(self.other)
        cancelled.status = Booking.Status.CANCELLED
        cancelled.save(update_fields=["status"])
        self.client.force_authenticate(self.staff)

        response = self.client.get(reverse("admin-booking-list"), {"status": "confirmed"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        results = response.data["results"] if isinstance(response.data, dict) else response.data
        self.assertEqual([row["id"] for row in results], [str(confirmed.id)])
        self.assertEqual(results[0]["guest_username"], "guest")

    def test_staff_completes_booking(self) -> None:
        booking = self._existing_booking(self.guest)
        self.client.force_authenticate(self.staff)

        response = self.client.post(
            reverse("admin-booking-set-status", kwargs={"pk": booking.pk}),
            {"status": "completed"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], Booking.Status.COMPLETED)

    def test_status_cannot_return_to_confirmed(self) -> None:
        booking = self._existing_booking(self.guest)
        self.client.force_authenticate(self.staff)

        response = self.client.post(
            reverse("admin-booking-set-status", kwargs={"pk": booking.pk}),
            {"status": "confirmed"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
