"""
Payment Command Handlers

Commands:
- RecordPaymentCommand: Record a payment or deposit against a booking
- RefundPaymentCommand: Refund part or all of a succeeded payment
- RecalculateBookingPaymentsCommand: Rebuild a booking's cached projection

Every handler locks the booking row first; refunds then lock the original
payment, so ledger writers for one booking are serialized in that order.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import structlog

from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import to_decimal
from apps.bookings.application.command_handlers import require_id, require_reason
from apps.bookings.models import Booking
from apps.finances.domain.ledger import PaymentKind, PaymentMethod, Projection
from apps.finances.models import Payment
from apps.finances.services import PaymentLedger
from apps.tenants.scoping import TenantScope

logger = structlog.get_logger(__name__)

MAX_IDEMPOTENCY_KEY_LENGTH = 100


def require_amount(value, field: str = 'amount') -> Decimal:
    try:
        amount = to_decimal(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(str(exc), field=field) from exc
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than zero.", field=field)
    if amount != amount.quantize(Decimal('0.01')):
        raise ValidationError(f"{field} has more than two decimal places.", field=field)
    return amount


# ===== Commands =====

@dataclass(frozen=True)
class RecordPaymentCommand:
    """
    Command to record money received for a booking

    ``idempotency_key`` makes client retries safe: a repeated key returns
    the payment recorded the first time instead of applying it again.
    """
    tenant_id: int
    booking_id: int
    amount: Decimal
    kind: str = PaymentKind.PAYMENT.value
    method: str = PaymentMethod.CASH.value
    notes: str = ''
    idempotency_key: Optional[str] = None
    processed_by: Optional[int] = None

    def __post_init__(self):
        require_id(self.tenant_id, 'tenant_id')
        require_id(self.booking_id, 'booking_id')
        object.__setattr__(self, 'amount', require_amount(self.amount))
        if self.kind not in (PaymentKind.PAYMENT.value, PaymentKind.DEPOSIT.value):
            raise ValidationError("kind must be 'payment' or 'deposit'.", field='kind')
        if self.method not in {method.value for method in PaymentMethod}:
            raise ValidationError(f"Unknown payment method '{self.method}'.", field='method')
        if not isinstance(self.notes, str):
            raise ValidationError("notes must be a string.", field='notes')
        if self.idempotency_key is not None:
            if not isinstance(self.idempotency_key, str) or not self.idempotency_key.strip():
                raise ValidationError("idempotency_key must be a non-empty string.", field='idempotency_key')
            if len(self.idempotency_key) > MAX_IDEMPOTENCY_KEY_LENGTH:
                raise ValidationError(
                    f"idempotency_key must be at most {MAX_IDEMPOTENCY_KEY_LENGTH} characters.",
                    field='idempotency_key',
                )
        require_id(self.processed_by, 'processed_by', optional=True)


@dataclass(frozen=True)
class RefundPaymentCommand:
    tenant_id: int
    payment_id: int
    amount: Decimal
    reason: str = ''
    processed_by: Optional[int] = None

    def __post_init__(self):
        require_id(self.tenant_id, 'tenant_id')
        require_id(self.payment_id, 'payment_id')
        object.__setattr__(self, 'amount', require_amount(self.amount))
        require_reason(self.reason)
        require_id(self.processed_by, 'processed_by', optional=True)


@dataclass(frozen=True)
class RecalculateBookingPaymentsCommand:
    tenant_id: int
    booking_id: int

    def __post_init__(self):
        require_id(self.tenant_id, 'tenant_id')
        require_id(self.booking_id, 'booking_id')


# ===== Command Handlers =====

class RecordPaymentHandler:
    def handle(self, command: RecordPaymentCommand) -> Payment:
        scope = TenantScope.resolve(command.tenant_id, command.processed_by)
        ledger = PaymentLedger()

        with scope.activate(), DjangoUnitOfWork('record_payment') as uow:
            booking = scope.get(Booking, command.booking_id, lock=True, resource='booking')
            payment = ledger.record_payment(
                booking,
                command.amount,
                kind=PaymentKind(command.kind),
                method=PaymentMethod(command.method),
                notes=command.notes,
                idempotency_key=command.idempotency_key,
                processed_by=command.processed_by,
            )
            uow.collect_events(payment, booking)

        return payment


class RefundPaymentHandler:
    """
    Handler for RefundPayment command

    The tenant check runs on the payment, and through it on the booking it
    belongs to, before anything is locked or written.
    """

    def handle(self, command: RefundPaymentCommand) -> Payment:
        scope = TenantScope.resolve(command.tenant_id, command.processed_by)
        ledger = PaymentLedger()

        with scope.activate(), DjangoUnitOfWork('refund_payment') as uow:
            original = scope.get(Payment, command.payment_id, resource='payment')
            booking = scope.get(Booking, original.booking_id, lock=True, resource='booking')
            original = scope.get(Payment, command.payment_id, lock=True, resource='payment')
            refund = ledger.refund(
                booking,
                original,
                command.amount,
                reason=command.reason,
                processed_by=command.processed_by,
            )
            uow.collect_events(refund, booking)

        return refund


class RecalculateBookingPaymentsHandler:
    def handle(self, command: RecalculateBookingPaymentsCommand) -> Projection:
        scope = TenantScope.resolve(command.tenant_id)
        ledger = PaymentLedger()

        with scope.activate(), DjangoUnitOfWork('recalculate_booking_payments'):
            booking = scope.get(Booking, command.booking_id, lock=True, resource='booking')
            drift = ledger.verify_projection(booking)
            projection = ledger.recalculate(booking)

        if drift:
            logger.warning(
                "ledger.projection_drift",
                tenant_id=scope.tenant_id,
                booking_id=command.booking_id,
                drift={field: [str(stored), str(expected)] for field, (stored, expected) in drift.items()},
            )
        return projection


def register_handlers(bus) -> None:
    """Bind payment commands to their handlers on the message bus"""
    handlers = {
        RecordPaymentCommand: RecordPaymentHandler,
        RefundPaymentCommand: RefundPaymentHandler,
        RecalculateBookingPaymentsCommand: RecalculateBookingPaymentsHandler,
    }
    for command_type, handler_class in handlers.items():
        if not bus.has_command_handler(command_type):
            bus.register_command_handler(command_type, handler_class().handle)
