"""API views for the booking domain."""

from __future__ import annotations

from rest_framework import mixins, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.tenants.mixins import TenantScopedViewMixin

from .application import coordinator
from .filters import BookingFilterSet
from .models import Booking
from .serializers import BookingCancelSerializer, BookingCreateSerializer, BookingSerializer


class BookingViewSet(
    TenantScopedViewMixin,
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Bookings of the acting tenant.

    There is no update or delete: every change goes through a coordinator
    action so the state machine and capacity rules always apply.
    """

    queryset = Booking.objects.select_related("schedule").all()
    serializer_class = BookingSerializer
    filterset_class = BookingFilterSet
    resource_name = "booking"

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        if self.action == "cancel":
            return BookingCancelSerializer
        return BookingSerializer

    def _respond(self, booking: Booking, code: int = status.HTTP_200_OK) -> Response:
        data = BookingSerializer(booking, context=self.get_serializer_context()).data
        return Response(data, status=code)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = coordinator.create_booking(
            tenant_id=self.tenant_id,
            schedule_id=data["schedule"],
            member_id=data["member"],
            participant_count=data["participant_count"],
            notes=data["notes"],
            created_by=self.acting_user_id,
        )
        return self._respond(booking, status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        booking = coordinator.confirm_booking(self.tenant_id, booking.pk, confirmed_by=self.acting_user_id)
        return self._respond(booking)

    @action(detail=True, methods=["post"], url_path="check-in")
    def check_in(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        booking = coordinator.check_in(self.tenant_id, booking.pk, staff_id=self.acting_user_id)
        return self._respond(booking)

    @action(detail=True, methods=["post"], url_path="check-out")
    def check_out(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        booking = coordinator.check_out(self.tenant_id, booking.pk, staff_id=self.acting_user_id)
        return self._respond(booking)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = coordinator.cancel_booking(
            self.tenant_id,
            booking.pk,
            reason=serializer.validated_data["reason"],
            cancelled_by=self.acting_user_id,
        )
        return self._respond(booking)

    @action(detail=True, methods=["post"], url_path="no-show")
    def no_show(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        booking = coordinator.mark_no_show(self.tenant_id, booking.pk, marked_by=self.acting_user_id)
        return self._respond(booking)
