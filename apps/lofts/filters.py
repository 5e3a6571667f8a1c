"""FilterSet definitions for loft listing."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Loft


class LoftFilterSet(django_filters.FilterSet):
    """Common loft filters used by the listing endpoint."""

    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    address = django_filters.CharFilter(field_name="address", lookup_expr="icontains")
    price_min = django_filters.NumberFilter(field_name="price_per_night", lookup_expr="gte")
    price_max = django_filters.NumberFilter(field_name="price_per_night", lookup_expr="lte")
    guests = django_filters.NumberFilter(field_name="max_guests", lookup_expr="gte")
    bedrooms_min = django_filters.NumberFilter(field_name="bedrooms", lookup_expr="gte")
    # CSV of amenity names, requires all of them
    amenities = django_filters.CharFilter(method="filter_amenities")

    class Meta:
        model = Loft
        fields = ["status", "owner"]

    def filter_amenities(self, queryset, name, value):  # type: ignore
        wanted = [item.strip() for item in str(value).split(",") if item.strip()]
        if not wanted:
            return queryset
        # JSON containment is not portable across backends; filter in Python.
        ids = [loft.id for loft in queryset.only("id", "amenities") if set(wanted) <= set(loft.amenities or [])]
        return queryset.filter(id__in=ids)
