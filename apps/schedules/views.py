"""API views for schedule instances."""

from __future__ import annotations

import django_filters  # type: ignore
from rest_framework import viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.application import coordinator
from apps.tenants.mixins import TenantScopedViewMixin

from .models import ScheduleInstance
from .serializers import AvailabilitySerializer, ScheduleInstanceSerializer


class ScheduleFilterSet(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="date", lookup_expr="lte")

    class Meta:
        model = ScheduleInstance
        fields = ["location_id", "product_id", "status"]


class ScheduleViewSet(TenantScopedViewMixin, viewsets.ReadOnlyModelViewSet):
    """Read-only: catalog operations own schedules and their capacity."""

    queryset = ScheduleInstance.objects.all()
    serializer_class = ScheduleInstanceSerializer
    filterset_class = ScheduleFilterSet
    resource_name = "schedule"

    @action(detail=True, methods=["get"])
    def availability(self, request, pk=None):  # type: ignore
        schedule = self.get_object()
        availability = coordinator.schedule_availability(self.tenant_id, schedule.pk)
        return Response(AvailabilitySerializer(availability).data)
