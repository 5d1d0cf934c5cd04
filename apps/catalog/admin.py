"""Admin registrations for the catalog; this is where inventory is edited."""

from __future__ import annotations

from django.contrib import admin

from .models import Activity, MealOption, RoomType


@admin.register(RoomType)
class RoomTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "price_per_night", "capacity", "total_inventory", "updated_at")
    search_fields = ("name",)
    readonly_fields = ("created_at", "updated_at")


@admin.register(MealOption)
class MealOptionAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "total_inventory", "updated_at")
    search_fields = ("name",)
    readonly_fields = ("created_at", "updated_at")


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "start_time", "end_time", "total_inventory")
    search_fields = ("name",)
    readonly_fields = ("created_at", "updated_at")
