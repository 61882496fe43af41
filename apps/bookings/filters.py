"""FilterSet definitions for booking listings."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Booking


class BookingFilterSet(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name="status", lookup_expr="exact")
    payment_status = django_filters.CharFilter(field_name="payment_status", lookup_expr="exact")
    schedule = django_filters.NumberFilter(field_name="schedule_id", lookup_expr="exact")
    member = django_filters.NumberFilter(field_name="member_id", lookup_expr="exact")
    date_from = django_filters.DateFilter(field_name="schedule__date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="schedule__date", lookup_expr="lte")

    class Meta:
        model = Booking
        fields = ["status", "payment_status", "schedule", "member"]
