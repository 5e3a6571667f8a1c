"""Loft API views."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, serializers, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.domain.availability import AvailabilityLookupError, UNKNOWN_AVAILABILITY_MESSAGE
from apps.bookings.services import availability_calendar, check_loft_availability
from apps.lofts.domain.pricing import PricingRequest, PricingValidationError
from apps.lofts.domain.pricing_rules import build_rule
from apps.users.permissions import is_platform_staff

from .filters import LoftFilterSet
from .models import BlockedPeriod, Loft, PricingRule
from .permissions import IsLoftManagerOrReadOnly, manages_loft
from .serializers import (
    AvailabilityResultSerializer,
    BlockedPeriodSerializer,
    CalendarDaySerializer,
    CalendarQuerySerializer,
    LoftSerializer,
    LoftStatusSerializer,
    PricingBreakdownSerializer,
    PricingRequestSerializer,
    PricingRuleSerializer,
    StayQuerySerializer,
)
from .services import pricing_calculator, quote_stay

logger = logging.getLogger(__name__)


class PricingCalculateView(APIView):
    """Stateless pricing calculator over an explicit rate, fees and rules."""

    permission_classes = [permissions.AllowAny]
    serializer_class = PricingRequestSerializer

    def post(self, request):  # type: ignore
        serializer = PricingRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            breakdown = pricing_calculator().calculate(
                PricingRequest(
                    nightly_rate=data.get("nightly_rate"),
                    check_in=data["check_in"],
                    check_out=data["check_out"],
                    cleaning_fee=data.get("cleaning_fee"),
                    tax_rate=data.get("tax_rate"),
                    pricing_rules=tuple(build_rule(rule) for rule in data.get("pricing_rules", [])),
                    booked_on=data.get("booked_on"),
                    currency=data.get("currency") or settings.LOFTS_DEFAULT_CURRENCY,
                )
            )
        except PricingValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(PricingBreakdownSerializer(breakdown).data)


class LoftViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """Lofts are listed publicly and never deleted; status changes instead."""

    queryset = Loft.objects.select_related("owner", "owner__user").all()
    serializer_class = LoftSerializer
    permission_classes = [IsLoftManagerOrReadOnly]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = LoftFilterSet
    ordering_fields = ["price_per_night", "created_at", "max_guests", "name"]

    def perform_create(self, serializer):  # type: ignore
        user = self.request.user
        if is_platform_staff(user):
            loft = serializer.save()
        else:
            loft = serializer.save(owner=user.partner_profile)
        logger.info(f"Loft {loft.id} created by user {user.id}")

    def perform_update(self, serializer):  # type: ignore
        if is_platform_staff(self.request.user):
            serializer.save()
        else:
            serializer.save(owner=serializer.instance.owner)

    @action(detail=True, methods=["post"], url_path="status", url_name="status")
    def change_status(self, request, pk=None):  # type: ignore
        loft: Loft = self.get_object()
        payload = LoftStatusSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        loft.set_status(payload.validated_data["status"])
        logger.info(f"Loft {loft.id} status changed to {loft.status} by user {request.user.id}")
        return Response(self.get_serializer(loft).data)

    @action(detail=True, methods=["get"])
    def availability(self, request, pk=None):  # type: ignore
        loft: Loft = self.get_object()
        query = StayQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = check_loft_availability(loft.pk, query.validated_data["dates"])
        return Response(AvailabilityResultSerializer(result).data)

    @action(detail=True, methods=["get"])
    def quote(self, request, pk=None):  # type: ignore
        loft: Loft = self.get_object()
        query = StayQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            breakdown = quote_stay(loft, query.validated_data["dates"])
        except PricingValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(PricingBreakdownSerializer(breakdown).data)

    @action(detail=True, methods=["get"])
    def calendar(self, request, pk=None):  # type: ignore
        loft: Loft = self.get_object()
        query = CalendarQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            days = availability_calendar(loft, query.validated_data["start"], query.validated_data["end"])
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except AvailabilityLookupError:
            logger.error(f"Calendar lookup failed for loft {loft.id}", exc_info=True)
            return Response(
                {"detail": UNKNOWN_AVAILABILITY_MESSAGE},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return Response({"loft_id": loft.id, "dates": CalendarDaySerializer(days, many=True).data})


class LoftChildMixin:
    """Resolves the parent loft from the URL and checks it is managed by the user."""

    loft_lookup_url_kwarg = "loft_id"
    permission_classes = [permissions.IsAuthenticated]

    def initial(self, request, *args, **kwargs):  # type: ignore
        super().initial(request, *args, **kwargs)
        loft_id = kwargs.get(self.loft_lookup_url_kwarg)
        self.loft_object = get_object_or_404(Loft, pk=loft_id)
        if not manages_loft(request.user, self.loft_object):
            self.permission_denied(request, message="You do not manage this loft.")

    def get_loft(self) -> Loft:
        return self.loft_object


class PricingRuleViewSet(LoftChildMixin, viewsets.ModelViewSet):
    """Pricing rules of one loft."""

    serializer_class = PricingRuleSerializer
    queryset = PricingRule.objects.select_related("loft").all()

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset().filter(loft=self.get_loft())
        if self.request.query_params.get("active") == "true":
            qs = qs.filter(is_active=True)
        return qs.order_by("priority", "id")

    def perform_create(self, serializer):  # type: ignore
        serializer.save(loft=self.get_loft())


class BlockedPeriodViewSet(LoftChildMixin, viewsets.ModelViewSet):
    """Owner blocks and maintenance windows of one loft."""

    serializer_class = BlockedPeriodSerializer
    queryset = BlockedPeriod.objects.select_related("loft", "created_by").all()

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset().filter(loft=self.get_loft())
        start = self.request.query_params.get("start")
        end = self.request.query_params.get("end")
        if start:
            qs = qs.filter(end_date__gt=start)
        if end:
            qs = qs.filter(start_date__lte=end)
        return qs.order_by("start_date")

    def _validate_overlap(self, start_date, end_date, exclude_id: int | None = None) -> None:
        qs = BlockedPeriod.objects.filter(
            loft=self.get_loft(),
            start_date__lt=end_date,
            end_date__gt=start_date,
        )
        if exclude_id is not None:
            qs = qs.exclude(id=exclude_id)
        if qs.exists():
            raise serializers.ValidationError(
                "The selected dates overlap an existing blocked period."
            )

    def perform_create(self, serializer):  # type: ignore
        self._validate_overlap(serializer.validated_data["start_date"], serializer.validated_data["end_date"])
        serializer.save(loft=self.get_loft(), created_by=self.request.user)

    def perform_update(self, serializer):  # type: ignore
        instance: BlockedPeriod = serializer.instance
        start_date = serializer.validated_data.get("start_date", instance.start_date)
        end_date = serializer.validated_data.get("end_date", instance.end_date)
        self._validate_overlap(start_date, end_date, exclude_id=instance.id)
        serializer.save()
