"""Catalog models: the sellable resources and their unit pools."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models  # type: ignore


class CatalogResource(models.Model):
    """Common fields of every bookable resource."""

    resource_type: str = ""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    total_inventory = models.PositiveIntegerField(
        default=0,
        help_text="Units sellable on any single day.",
    )
    image_url = models.URLField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    @property
    def unit_price(self) -> Decimal:
        raise NotImplementedError


class RoomType(CatalogResource):
    """One unit is one room of this type for one night."""

    resource_type = "room"

    price_per_night = models.DecimalField(max_digits=10, decimal_places=2)
    capacity = models.PositiveSmallIntegerField(default=2, help_text="Guests per room.")

    class Meta(CatalogResource.Meta):
        verbose_name = "Room type"
        verbose_name_plural = "Room types"

    @property
    def unit_price(self) -> Decimal:
        return self.price_per_night


class MealOption(CatalogResource):
    resource_type = "meal"

    price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta(CatalogResource.Meta):
        verbose_name = "Meal option"
        verbose_name_plural = "Meal options"

    @property
    def unit_price(self) -> Decimal:
        return self.price


class Activity(CatalogResource):
    resource_type = "activity"

    price = models.DecimalField(max_digits=10, decimal_places=2)
    duration = models.CharField(max_length=50, blank=True)
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)

    class Meta(CatalogResource.Meta):
        verbose_name = "Activity"
        verbose_name_plural = "Activities"

    @property
    def unit_price(self) -> Decimal:
        return self.price


RESOURCE_MODELS: dict[str, type[CatalogResource]] = {
    RoomType.resource_type: RoomType,
    MealOption.resource_type: MealOption,
    Activity.resource_type: Activity,
}


def get_resource_model(resource_type: str) -> type[CatalogResource]:
    try:
        return RESOURCE_MODELS[resource_type]
    except KeyError:
        raise ValueError(f"Unknown resource type: {resource_type}") from None
