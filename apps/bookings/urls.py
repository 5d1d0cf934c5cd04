"""URL routing for availability and bookings."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import (
    AdminBookingViewSet,
    AvailabilityView,
    BookingViewSet,
    ResourceRemainingView,
    ValidateItemView,
)

router = DefaultRouter()
router.register(r"bookings", BookingViewSet, basename="booking")
router.register(r"admin/bookings", AdminBookingViewSet, basename="admin-booking")

urlpatterns = [
    path("availability/", AvailabilityView.as_view(), name="availability-list"),
    path("availability/validate/", ValidateItemView.as_view(), name="availability-validate"),
    path(
        "availability/<str:resource_type>/<uuid:resource_id>/",
        ResourceRemainingView.as_view(),
        name="availability-remaining",
    ),
    path("", include(router.urls)),
]
