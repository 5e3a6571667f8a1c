"""URL routing for the lofts domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import BlockedPeriodViewSet, LoftViewSet, PricingRuleViewSet

router = DefaultRouter()
router.register(r"", LoftViewSet, basename="loft")

pricing_rule_list = PricingRuleViewSet.as_view({"get": "list", "post": "create"})
pricing_rule_detail = PricingRuleViewSet.as_view(
    {"patch": "partial_update", "put": "update", "delete": "destroy", "get": "retrieve"}
)

blocked_period_list = BlockedPeriodViewSet.as_view({"get": "list", "post": "create"})
blocked_period_detail = BlockedPeriodViewSet.as_view(
    {"patch": "partial_update", "put": "update", "delete": "destroy", "get": "retrieve"}
)

urlpatterns = [
    path("", include(router.urls)),
    path("<int:loft_id>/pricing-rules/", pricing_rule_list, name="loft-pricing-rule-list"),
    path("<int:loft_id>/pricing-rules/<int:pk>/", pricing_rule_detail, name="loft-pricing-rule-detail"),
    path("<int:loft_id>/blocked-periods/", blocked_period_list, name="loft-blocked-period-list"),
    path("<int:loft_id>/blocked-periods/<int:pk>/", blocked_period_detail, name="loft-blocked-period-detail"),
]
