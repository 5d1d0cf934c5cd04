"""FilterSet definitions for the admin booking list."""

from __future__ import annotations

import django_filters  # type: ignore
from django.db.models import Q  # type: ignore

from .models import Booking, BookingItem


class AdminBookingFilterSet(django_filters.FilterSet):
    """Filters used by the admin oversight screen."""

    status = django_filters.ChoiceFilter(field_name="status", choices=Booking.Status.choices)
    resource_type = django_filters.ChoiceFilter(
        field_name="items__resource_type",
        choices=BookingItem.ResourceType.choices,
        distinct=True,
    )
    resource_id = django_filters.UUIDFilter(field_name="items__resource_id", distinct=True)
    check_in_from = django_filters.DateFilter(field_name="check_in", lookup_expr="gte")
    check_out_to = django_filters.DateFilter(field_name="check_out", lookup_expr="lte")
    price_min = django_filters.NumberFilter(field_name="total_price", lookup_expr="gte")
    price_max = django_filters.NumberFilter(field_name="total_price", lookup_expr="lte")
    guest = django_filters.CharFilter(method="filter_guest")
    booking_code = django_filters.CharFilter(field_name="booking_code", lookup_expr="iexact")

    class Meta:
        model = Booking
        fields = ["status", "booking_code"]

    def filter_guest(self, queryset, name, value):  # type: ignore
        if not value:
            return queryset
        return queryset.filter(Q(guest__username__icontains=value) | Q(guest__email__icontains=value))
