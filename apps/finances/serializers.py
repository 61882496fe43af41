"""Serializers for the payment ledger."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from .domain.ledger import PaymentKind, PaymentMethod
from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    booking_id = serializers.ReadOnlyField()
    original_payment_id = serializers.ReadOnlyField()
    refundable_amount = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = [
            "id",
            "payment_number",
            "booking_id",
            "amount",
            "currency",
            "kind",
            "method",
            "status",
            "original_payment_id",
            "failure_reason",
            "idempotency_key",
            "transaction_id",
            "provider",
            "notes",
            "processed_by",
            "refundable_amount",
            "succeeded_at",
            "failed_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_refundable_amount(self, obj: Payment) -> str:
        return str(obj.get_refundable_amount())


class PaymentCreateSerializer(serializers.Serializer):
    """Input of RecordPayment."""

    booking = serializers.IntegerField(min_value=1)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    kind = serializers.ChoiceField(
        choices=[PaymentKind.PAYMENT.value, PaymentKind.DEPOSIT.value],
        default=PaymentKind.PAYMENT.value,
    )
    method = serializers.ChoiceField(choices=[method.value for method in PaymentMethod])
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class RefundSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)
