"""Payment ledger models for SlotBook."""

from __future__ import annotations

import secrets
import string
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.tenants.models import TenantOwnedModel
from shared.domain.base import Aggregate
from shared.domain.exceptions import BusinessRuleViolation

from .domain.ledger import LedgerEntry, PaymentKind, PaymentMethod, PaymentState, refundable_amount

PAYMENT_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


class Payment(Aggregate, TenantOwnedModel):
    """
    One monetary movement against a booking.

    Append-mostly: once ``succeeded`` a row never changes again; a refund is
    a new row of kind ``refund`` pointing at the payment it gives back.
    """

    Kind = PaymentKind
    State = PaymentState
    Method = PaymentMethod

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    payment_number = models.CharField(max_length=14, unique=True, editable=False)
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    currency = models.CharField(max_length=3, default="USD")
    kind = models.CharField(max_length=20, choices=PaymentKind.choices(), default=PaymentKind.PAYMENT.value)
    method = models.CharField(max_length=20, choices=PaymentMethod.choices(), default=PaymentMethod.CASH.value)
    status = models.CharField(max_length=20, choices=PaymentState.choices(), default=PaymentState.PENDING.value)
    original_payment = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="refunds",
    )
    failure_reason = models.CharField(max_length=255, blank=True)
    idempotency_key = models.CharField(max_length=100, null=True, blank=True)
    transaction_id = models.CharField(max_length=100, blank=True)
    provider = models.CharField(max_length=50, blank=True, help_text=_("Gateway that processed the attempt."))
    notes = models.TextField(blank=True)
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    succeeded_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "payments"
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(condition=models.Q(amount__gt=0), name="payment_amount_positive"),
            models.CheckConstraint(
                condition=(
                    models.Q(kind=PaymentKind.REFUND.value, original_payment__isnull=False)
                    | (~models.Q(kind=PaymentKind.REFUND.value) & models.Q(original_payment__isnull=True))
                ),
                name="payment_refund_has_original",
            ),
            models.UniqueConstraint(
                fields=["tenant", "idempotency_key"],
                condition=models.Q(idempotency_key__isnull=False),
                name="payment_unique_idempotency_key",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant", "status"], name="payments_tenant_status_idx"),
            models.Index(fields=["booking", "status"], name="payments_booking_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Payment {self.payment_number} {self.amount} {self.currency} ({self.status})"

    @staticmethod
    def generate_payment_number() -> str:
        return "PAY-" + "".join(secrets.choice(PAYMENT_NUMBER_ALPHABET) for _ in range(10))

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.payment_number:
            self.payment_number = self.generate_payment_number()
        super().save(*args, **kwargs)

    @property
    def is_refund(self) -> bool:
        return self.kind == PaymentKind.REFUND.value

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentState.PENDING.value

    @property
    def is_succeeded(self) -> bool:
        return self.status == PaymentState.SUCCEEDED.value

    def _require_pending(self) -> None:
        if not self.is_pending:
            raise BusinessRuleViolation(f"Payment {self.payment_number} is already {self.status}.")

    def mark_succeeded(self, reference: str = "", provider: str = "") -> None:
        """Settle a pending attempt. The booking projection is refreshed by the ledger."""
        self._require_pending()
        self.status = PaymentState.SUCCEEDED.value
        self.succeeded_at = timezone.now()
        self.transaction_id = reference or self.transaction_id
        self.provider = provider or self.provider
        self.save(update_fields=["status", "succeeded_at", "transaction_id", "provider", "updated_at"])

    def mark_failed(self, reason: str = "", provider: str = "") -> None:
        self._require_pending()
        self.status = PaymentState.FAILED.value
        self.failed_at = timezone.now()
        self.failure_reason = (reason or "")[:255]
        self.provider = provider or self.provider
        self.save(update_fields=["status", "failed_at", "failure_reason", "provider", "updated_at"])

    def get_refundable_amount(self) -> Decimal:
        entries = [
            LedgerEntry(kind=kind, status=status, amount=amount)
            for kind, status, amount in self.refunds.values_list("kind", "status", "amount")
        ]
        return refundable_amount(self.amount, self.kind, self.status, entries)

    def can_be_refunded(self) -> bool:
        return self.get_refundable_amount() > 0
