"""API views for the payment ledger."""

from __future__ import annotations

from rest_framework import mixins, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.application import coordinator
from apps.tenants.mixins import TenantScopedViewMixin

from .models import Payment
from .serializers import PaymentCreateSerializer, PaymentSerializer, RefundSerializer

IDEMPOTENCY_HEADER = "Idempotency-Key"


class PaymentViewSet(
    TenantScopedViewMixin,
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Payments of the acting tenant. Ledger rows are never edited or deleted."""

    queryset = Payment.objects.select_related("booking").all()
    serializer_class = PaymentSerializer
    filterset_fields = ["booking", "kind", "status", "method"]
    resource_name = "payment"

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return PaymentCreateSerializer
        if self.action == "refund":
            return RefundSerializer
        return PaymentSerializer

    def _respond(self, payment: Payment, code: int) -> Response:
        data = PaymentSerializer(payment, context=self.get_serializer_context()).data
        return Response(data, status=code)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        payment = coordinator.record_payment(
            tenant_id=self.tenant_id,
            booking_id=data["booking"],
            amount=data["amount"],
            kind=data["kind"],
            method=data["method"],
            notes=data["notes"],
            idempotency_key=request.headers.get(IDEMPOTENCY_HEADER) or None,
            processed_by=self.acting_user_id,
        )
        return self._respond(payment, status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def refund(self, request, pk=None):  # type: ignore
        payment = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        refund = coordinator.refund_payment(
            self.tenant_id,
            payment.pk,
            amount=serializer.validated_data["amount"],
            reason=serializer.validated_data["reason"],
            processed_by=self.acting_user_id,
        )
        return self._respond(refund, status.HTTP_201_CREATED)
