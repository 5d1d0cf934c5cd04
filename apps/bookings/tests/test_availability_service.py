"""Tests for the availability service and its ORM repository."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest import mock
from uuid import uuid4

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.utils import timezone

from apps.bookings.domain.entities import BookingStatus, ReservationLineItem, ResourceType
from apps.bookings.domain.exceptions import (
    InsufficientCapacity,
    InvalidBookingRequest,
    StorageUnavailable,
)
from apps.bookings.domain.inventory import CapacityPolicy
from apps.bookings.models import Booking, BookingItem
from apps.bookings.repositories import DjangoInventoryRepository
from apps.bookings.services import AvailabilityService, capacity_policy_from_settings
from apps.catalog.models import MealOption, RoomType
from shared.domain.value_objects import DateRange


class AvailabilityServiceTestCase(TestCase):

    def setUp(self) -> None:
        self.guest = get_user_model().objects.create_user(
            username="guest", email="guest@example.com", password="GuestPass123"
        )
        self.room = RoomType.objects.create(
            name="Deluxe", price_per_night=Decimal("100.00"), total_inventory=3
        )
        self.meal = MealOption.objects.create(
            name="Breakfast", price=Decimal("20.00"), total_inventory=10
        )
        self.today = timezone.localdate()
        self.service = AvailabilityService()

    def day(self, offset: int):
        return self.today + timedelta(days=offset)

    def book(self, resource, quantity, check_in, check_out, *, status=Booking.Status.CONFIRMED,
             start=None, end=None) -> Booking:
        booking = Booking.objects.create(
            guest=self.guest,
            check_in=check_in,
            check_out=check_out,
            status=status,
            total_price=Decimal("0.00"),
        )
        BookingItem.objects.create(
            booking=booking,
            resource_type=resource.resource_type,
            resource_id=resource.id,
            price=resource.unit_price,
            quantity=quantity,
            start_date=start,
            end_date=end,
        )
        return booking


class ListAvailabilityServiceTests(AvailabilityServiceTestCase):

    def test_snapshots_for_every_resource_of_type(self) -> None:
        second = RoomType.objects.create(name="Suite", price_per_night=Decimal("250.00"), total_inventory=1)
        self.book(self.room, 2, self.day(1), self.day(3), start=self.day(1), end=self.day(3))

        snapshots = self.service.list_availability(ResourceType.ROOM, DateRange(self.day(1), self.day(2)))
        by_id = {snapshot.resource_id: snapshot for snapshot in snapshots}

        self.assertEqual(by_id[self.room.id].booked_count, 2)
        self.assertEqual(by_id[self.room.id].remaining_count, 1)
        self.assertEqual(by_id[second.id].booked_count, 0)
        self.assertEqual(by_id[second.id].remaining_count, 1)

    def test_legacy_items_without_dates_use_booking_stay(self) -> None:
        self.book(self.room, 1, self.day(5), self.day(8))

        inside = self.service.list_availability(ResourceType.ROOM, DateRange(self.day(7), self.day(7)))
        checkout = self.service.list_availability(ResourceType.ROOM, DateRange(self.day(8), self.day(9)))

        self.assertEqual(inside[0].booked_count, 1)
        self.assertEqual(checkout[0].booked_count, 0)

    def test_cancelled_bookings_release_capacity(self) -> None:
        self.book(self.room, 3, self.day(1), self.day(2), status=Booking.Status.CANCELLED)

        snapshots = self.service.list_availability(ResourceType.ROOM, DateRange(self.day(1), self.day(1)))

        self.assertEqual(snapshots[0].remaining_count, 3)

    def test_storage_failure_degrades_to_empty_list(self) -> None:
        with mock.patch.object(RoomType, "objects") as objects:
            objects.values_list.side_effect = DatabaseError("connection lost")
            snapshots = self.service.list_availability(
                ResourceType.ROOM, DateRange(self.day(1), self.day(2))
            )

        self.assertEqual(snapshots, [])


class RemainingForTests(AvailabilityServiceTestCase):

    def test_bottleneck_over_stay(self) -> None:
        self.book(self.room, 1, self.day(1), self.day(4), start=self.day(1), end=self.day(4))
        self.book(self.room, 1, self.day(2), self.day(3), start=self.day(2), end=self.day(3))

        remaining = self.service.remaining_for(ResourceType.ROOM, self.room.id, DateRange(self.day(1), self.day(4)))

        self.assertEqual(remaining, 1)

    def test_unknown_resource_reports_zero(self) -> None:
        remaining = self.service.remaining_for(ResourceType.MEAL, uuid4(), DateRange(self.day(1), self.day(1)))

        self.assertEqual(remaining, 0)

    def test_storage_failure_reports_zero(self) -> None:
        repo = mock.Mock(spec=DjangoInventoryRepository)
        repo.get_inventory.side_effect = StorageUnavailable("down")
        service = AvailabilityService(inventory_repo=repo, policy=CapacityPolicy())

        remaining = service.remaining_for(ResourceType.ROOM, self.room.id, DateRange(self.day(1), self.day(2)))

        self.assertEqual(remaining, 0)

    def test_completed_future_bookings_count_when_enabled(self) -> None:
        self.book(self.meal, 4, self.day(1), self.day(2), status=Booking.Status.COMPLETED,
                  start=self.day(2), end=self.day(2))
        dates = DateRange(self.day(2), self.day(2))

        default = self.service.remaining_for(ResourceType.MEAL, self.meal.id, dates)
        strict = AvailabilityService(policy=CapacityPolicy(completed_blocks_future=True)).remaining_for(
            ResourceType.MEAL, self.meal.id, dates
        )

        self.assertEqual(default, 10)
        self.assertEqual(strict, 6)


class ValidateBookingRequestServiceTests(AvailabilityServiceTestCase):

    def test_rejects_oversold_day(self) -> None:
        self.book(self.meal, 9, self.day(1), self.day(3), start=self.day(2), end=self.day(2))

        check = self.service.validate_booking_request(
            ResourceType.MEAL, self.meal.id, 2, DateRange(self.day(1), self.day(3))
        )

        self.assertFalse(check.valid)
        self.assertEqual(check.bottleneck_day, self.day(2))
        self.assertEqual(check.remaining, 1)

    def test_pending_items_of_same_booking_add_up(self) -> None:
        pending = [
            ReservationLineItem(
                resource_type=ResourceType.ROOM,
                resource_id=self.room.id,
                quantity=2,
                start_date=self.day(1),
                end_date=self.day(3),
            )
        ]

        check = self.service.validate_booking_request(
            ResourceType.ROOM, self.room.id, 2, DateRange(self.day(2), self.day(4)), pending=pending
        )

        self.assertFalse(check.valid)
        self.assertEqual(check.bottleneck_day, self.day(2))

    def test_zero_night_room_is_invalid_request(self) -> None:
        self.book(self.room, 3, self.day(1), self.day(2), start=self.day(1), end=self.day(2))

        with self.assertRaises(InvalidBookingRequest):
            self.service.validate_booking_request(
                ResourceType.ROOM, self.room.id, 50, DateRange(self.day(1), self.day(1))
            )

    def test_unknown_resource_is_invalid_request(self) -> None:
        with self.assertRaises(InvalidBookingRequest):
            self.service.validate_booking_request(
                ResourceType.ACTIVITY, uuid4(), 1, DateRange(self.day(1), self.day(1))
            )

    def test_storage_failure_propagates(self) -> None:
        repo = mock.Mock(spec=DjangoInventoryRepository)
        repo.get_inventory.side_effect = StorageUnavailable("down")
        service = AvailabilityService(inventory_repo=repo, policy=CapacityPolicy())

        with self.assertRaises(StorageUnavailable):
            service.validate_booking_request(
                ResourceType.ROOM, self.room.id, 1, DateRange(self.day(1), self.day(2))
            )

    def test_ensure_bookable_raises_insufficient_capacity(self) -> None:
        self.book(self.room, 3, self.day(1), self.day(2), start=self.day(1), end=self.day(2))

        with self.assertRaises(InsufficientCapacity) as ctx:
            self.service.ensure_bookable(ResourceType.ROOM, self.room.id, 1, DateRange(self.day(1), self.day(2)))

        self.assertEqual(ctx.exception.day, self.day(1))
        self.assertEqual(ctx.exception.remaining, 0)
        self.assertEqual(ctx.exception.requested, 1)


class RepositoryTests(AvailabilityServiceTestCase):

    def test_line_items_on_day_apply_room_coverage(self) -> None:
        booking = self.book(self.room, 1, self.day(1), self.day(3), start=self.day(1), end=self.day(3))
        repo = DjangoInventoryRepository()

        during = repo.line_items_on_day(ResourceType.ROOM, self.day(2), resource_id=self.room.id)
        checkout = repo.line_items_on_day(ResourceType.ROOM, self.day(3), resource_id=self.room.id)

        self.assertEqual([item.booking_id for item in during], [booking.id])
        self.assertEqual(checkout, [])

    def test_line_items_on_day_include_meal_end_date(self) -> None:
        self.book(self.meal, 2, self.day(1), self.day(3), start=self.day(3), end=self.day(3))

        items = DjangoInventoryRepository().line_items_on_day(ResourceType.MEAL, self.day(3))

        self.assertEqual(len(items), 1)

    def test_fetch_returns_resolved_line_items(self) -> None:
        booking = self.book(self.room, 2, self.day(4), self.day(6))

        [item] = DjangoInventoryRepository().fetch_line_items(
            ResourceType.ROOM, DateRange(self.day(1), self.day(10)), today=self.today
        )

        self.assertEqual(item.booking_id, booking.id)
        self.assertEqual(item.start_date, self.day(4))
        self.assertEqual(item.end_date, self.day(6))
        self.assertEqual(item.booking_status, BookingStatus.CONFIRMED)

    def test_fetch_with_inverted_range_is_empty(self) -> None:
        self.book(self.room, 2, self.day(4), self.day(6))

        items = DjangoInventoryRepository().fetch_line_items(
            ResourceType.ROOM, DateRange(self.day(6), self.day(4))
        )

        self.assertEqual(items, [])


class OccupancyRateTests(AvailabilityServiceTestCase):

    def test_rate_is_booked_over_total_rooms_today(self) -> None:
        RoomType.objects.create(name="Single", price_per_night=Decimal("60.00"), total_inventory=1)
        self.book(self.room, 2, self.today, self.day(2), start=self.today, end=self.day(2))

        self.assertAlmostEqual(self.service.occupancy_rate(), 0.5)

    def test_rate_is_zero_without_inventory(self) -> None:
        RoomType.objects.all().delete()

        self.assertEqual(self.service.occupancy_rate(), 0.0)


class CapacityPolicySettingsTests(TestCase):

    @override_settings(HOTEL_AVAILABILITY={"BLOCKING_STATUSES": ["confirmed"], "COMPLETED_BLOCKS_FUTURE": True})
    def test_policy_read_from_settings(self) -> None:
        policy = capacity_policy_from_settings()

        self.assertEqual(policy.blocking_statuses, frozenset({BookingStatus.CONFIRMED}))
        self.assertTrue(policy.completed_blocks_future)

    @override_settings(HOTEL_AVAILABILITY={"BLOCKING_STATUSES": ["confirmed", "cancelled"]})
    def test_cancelled_can_never_block(self) -> None:
        with self.assertRaises(ValueError):
            capacity_policy_from_settings()
