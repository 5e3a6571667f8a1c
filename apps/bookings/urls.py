"""URL routing for the booking domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import ReservationLockViewSet, ReservationViewSet

router = DefaultRouter()
# Registered first so "locks/" is not captured as a reservation id.
router.register(r"locks", ReservationLockViewSet, basename="reservation-lock")
router.register(r"", ReservationViewSet, basename="reservation")

urlpatterns = [
    path("", include(router.urls)),
]
