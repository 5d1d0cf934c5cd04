"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, BookingItem


class BookingItemInline(admin.TabularInline):
    model = BookingItem
    extra = 0
    fields = ("resource_type", "resource_id", "price", "quantity", "start_date", "end_date")
    readonly_fields = fields
    can_delete = False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "guest",
        "status",
        "check_in",
        "check_out",
        "total_price",
        "currency",
        "created_at",
    )
    list_filter = ("status", "check_in", "check_out")
    search_fields = ("booking_code", "guest__username", "guest__email")
    readonly_fields = (
        "booking_code",
        "total_price",
        "currency",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
    inlines = [BookingItemInline]
