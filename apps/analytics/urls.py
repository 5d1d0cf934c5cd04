"""URL routing for admin console analytics."""

from django.urls import path  # type: ignore

from .views import (
    AdminStatsView,
    DailyInventoryStatusView,
    DailyManifestView,
    ResourceBookingsView,
)


urlpatterns = [
    # Do not prefix with 'analytics/' here; the namespace is defined in config.urls
    path('inventory/', DailyInventoryStatusView.as_view(), name='analytics-inventory'),
    path(
        'inventory/<str:resource_type>/<uuid:resource_id>/bookings/',
        ResourceBookingsView.as_view(),
        name='analytics-resource-bookings',
    ),
    path('manifest/', DailyManifestView.as_view(), name='analytics-manifest'),
    path('stats/', AdminStatsView.as_view(), name='analytics-stats'),
]
