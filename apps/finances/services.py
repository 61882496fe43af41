"""Payment ledger service."""

from __future__ import annotations

from decimal import Decimal
from typing import Callable

import structlog
from django.db import IntegrityError, transaction  # type: ignore

from apps.bookings.domain.state_machine import BookingStatus
from shared.domain.exceptions import RefundExceedsPayment, ValidationError
from shared.domain.value_objects import Money

from .domain.events import PaymentFailed, PaymentRefunded, PaymentSucceeded
from .domain.ledger import PaymentKind, PaymentMethod, Projection
from .gateways import GatewayResult, PaymentGateway, get_gateway
from .models import Payment

logger = structlog.get_logger(__name__)

# Bookings in these states take no new money; refunds are still allowed.
CLOSED_FOR_PAYMENT = frozenset({BookingStatus.CANCELLED.value})


class PaymentLedger:
    """
    Appends payments and refunds to a booking's ledger and keeps the
    booking's cached projection in step with it.

    Callers hold the booking row lock inside their unit of work, which
    serializes concurrent ledger writers for one booking.
    """

    def __init__(self, gateway: PaymentGateway | None = None):
        self._gateway = gateway

    @property
    def gateway(self) -> PaymentGateway:
        if self._gateway is None:
            self._gateway = get_gateway()
        return self._gateway

    def as_money(self, booking, amount) -> Money:
        try:
            money = Money(amount, booking.currency)
        except (TypeError, ValueError) as exc:
            raise ValidationError(str(exc), field="amount") from exc
        if money.is_zero:
            raise ValidationError("amount must be greater than zero.", field="amount")
        return money

    def record_payment(
        self,
        booking,
        amount,
        kind: PaymentKind,
        method: PaymentMethod,
        notes: str = "",
        idempotency_key: str | None = None,
        processed_by: int | None = None,
    ) -> Payment:
        kind = PaymentKind(kind)
        method = PaymentMethod(method)
        if kind == PaymentKind.REFUND:
            raise ValidationError("Refunds are recorded against a payment.", field="kind")
        money = self.as_money(booking, amount)

        if idempotency_key:
            existing = self._replay(booking, money, kind, method, idempotency_key)
            if existing is not None:
                return existing

        if booking.status in CLOSED_FOR_PAYMENT:
            raise ValidationError(
                f"Booking {booking.booking_number} is {booking.status} and cannot take payments.",
                field="booking_id",
            )

        try:
            # Savepoint: the booking lock does not cover a key reused on another booking.
            with transaction.atomic():
                payment = Payment.objects.create(
                    tenant_id=booking.tenant_id,
                    booking=booking,
                    amount=money.amount,
                    currency=money.currency,
                    kind=kind.value,
                    method=method.value,
                    notes=notes,
                    idempotency_key=idempotency_key or None,
                    processed_by_id=processed_by,
                )
        except IntegrityError:
            if not idempotency_key:
                raise
            existing = self._replay(booking, money, kind, method, idempotency_key)
            if existing is None:
                raise
            return existing
        return self._settle(booking, payment, self.gateway.process)

    def _replay(self, booking, money: Money, kind, method, key: str) -> Payment | None:
        existing = Payment.all_tenants.filter(tenant_id=booking.tenant_id, idempotency_key=key).first()
        if existing is None:
            return None
        same_request = (
            existing.booking_id == booking.pk
            and existing.amount == money.amount
            and existing.kind == kind.value
            and existing.method == method.value
        )
        if not same_request:
            raise ValidationError(
                "Idempotency key was already used for a different payment.",
                field="idempotency_key",
            )
        logger.info(
            "payment.replayed",
            tenant_id=booking.tenant_id,
            payment_id=existing.pk,
            idempotency_key=key,
        )
        return existing

    def refund(
        self,
        booking,
        original: Payment,
        amount,
        reason: str = "",
        processed_by: int | None = None,
    ) -> Payment:
        """
        Give back part or all of a succeeded payment.

        The original payment row must be locked by the caller so two refunds
        cannot both pass the refundable-amount guard.
        """
        if original.is_refund:
            raise ValidationError("A refund cannot itself be refunded.", field="payment_id")
        money = self.as_money(booking, amount)

        refundable = original.get_refundable_amount()
        if money.amount > refundable:
            logger.info(
                "refund.rejected",
                tenant_id=booking.tenant_id,
                payment_id=original.pk,
                requested=str(money.amount),
                refundable_amount=str(refundable),
            )
            raise RefundExceedsPayment(original.pk, money.amount, refundable)

        refund = Payment.objects.create(
            tenant_id=booking.tenant_id,
            booking=booking,
            amount=money.amount,
            currency=money.currency,
            kind=PaymentKind.REFUND.value,
            method=original.method,
            original_payment=original,
            notes=reason,
            processed_by_id=processed_by,
        )
        return self._settle(booking, refund, self.gateway.refund, reason=reason)

    def _settle(self, booking, payment: Payment, attempt: Callable[[Payment], GatewayResult], reason: str = "") -> Payment:
        result = attempt(payment)
        log = logger.bind(
            tenant_id=booking.tenant_id,
            booking_id=booking.pk,
            payment_id=payment.pk,
            payment_number=payment.payment_number,
            kind=payment.kind,
            amount=str(payment.amount),
        )

        if not result.succeeded:
            payment.mark_failed(result.failure_reason, self.gateway.name)
            payment.add_event(
                PaymentFailed(
                    tenant_id=payment.tenant_id,
                    aggregate_id=payment.pk,
                    payment_number=payment.payment_number,
                    booking_id=booking.pk,
                    amount=payment.amount,
                    currency=payment.currency,
                    failure_reason=payment.failure_reason,
                )
            )
            log.info("payment.failed", failure_reason=payment.failure_reason)
            return payment

        payment.mark_succeeded(result.reference, self.gateway.name)
        projection = booking.recalculate_payments()
        if payment.is_refund:
            event = PaymentRefunded(
                tenant_id=payment.tenant_id,
                aggregate_id=payment.pk,
                payment_number=payment.payment_number,
                booking_id=booking.pk,
                original_payment_id=payment.original_payment_id,
                amount=payment.amount,
                currency=payment.currency,
                payment_status=projection.payment_status.value,
                reason=reason or None,
            )
        else:
            event = PaymentSucceeded(
                tenant_id=payment.tenant_id,
                aggregate_id=payment.pk,
                payment_number=payment.payment_number,
                booking_id=booking.pk,
                amount=payment.amount,
                currency=payment.currency,
                kind=payment.kind,
                payment_status=projection.payment_status.value,
            )
        payment.add_event(event)
        log.info(
            "payment.succeeded",
            payment_status=projection.payment_status.value,
            amount_paid=str(projection.amount_paid),
            balance_due=str(projection.balance_due),
        )
        return payment

    def recalculate(self, booking) -> Projection:
        return booking.recalculate_payments()

    @staticmethod
    def verify_projection(booking) -> dict[str, tuple]:
        """
        Compare the booking's cached money fields with the ledger.

        Returns ``{field: (stored, expected)}`` for every field that drifted;
        an empty dict means the cache is exact.
        """
        expected = booking.compute_projection().as_fields()
        drift = {}
        for field, value in expected.items():
            stored = getattr(booking, field)
            if isinstance(value, Decimal):
                stored = Decimal(stored)
            if stored != value:
                drift[field] = (stored, value)
        return drift
