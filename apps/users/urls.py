"""URL routing for partner onboarding."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import PartnerProfileViewSet

router = DefaultRouter()
router.register(r"", PartnerProfileViewSet, basename="partner")

urlpatterns = [
    path("", include(router.urls)),
]
