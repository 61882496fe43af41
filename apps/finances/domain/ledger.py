"""
Payment Ledger projection

A booking's money state is a cache of this projection over its payments:

    amount_paid     = sum(succeeded payment/deposit) - sum(succeeded refund)
    amount_refunded = sum(succeeded refund)
    balance_due     = total_amount - amount_paid

Pending and failed payments never enter the computation. The functions here
are pure so the projection can be recomputed and checked at any time.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable

from shared.domain.value_objects import minor_unit_exponent, to_decimal


class PaymentKind(str, Enum):
    PAYMENT = 'payment'
    DEPOSIT = 'deposit'
    REFUND = 'refund'

    @classmethod
    def choices(cls):
        return [(kind.value, kind.value.capitalize()) for kind in cls]


class PaymentState(str, Enum):
    PENDING = 'pending'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'

    @classmethod
    def choices(cls):
        return [(state.value, state.value.capitalize()) for state in cls]


class PaymentMethod(str, Enum):
    CARD = 'card'
    CASH = 'cash'
    BANK_TRANSFER = 'bank_transfer'
    OTHER = 'other'

    @classmethod
    def choices(cls):
        return [(method.value, method.value.replace('_', ' ').capitalize()) for method in cls]


class BookingPaymentStatus(str, Enum):
    PENDING = 'pending'
    DEPOSIT_PAID = 'deposit_paid'
    PARTIALLY_PAID = 'partially_paid'
    FULLY_PAID = 'fully_paid'

    @classmethod
    def choices(cls):
        return [(status.value, status.value.replace('_', ' ').capitalize()) for status in cls]


INCOMING_KINDS = frozenset({PaymentKind.PAYMENT, PaymentKind.DEPOSIT})


@dataclass(frozen=True)
class LedgerEntry:
    kind: PaymentKind
    status: PaymentState
    amount: Decimal

    def __post_init__(self):
        object.__setattr__(self, 'kind', PaymentKind(self.kind))
        object.__setattr__(self, 'status', PaymentState(self.status))
        object.__setattr__(self, 'amount', to_decimal(self.amount))

    @property
    def succeeded(self) -> bool:
        return self.status == PaymentState.SUCCEEDED


@dataclass(frozen=True)
class Projection:
    amount_paid: Decimal
    amount_refunded: Decimal
    balance_due: Decimal
    payment_status: BookingPaymentStatus

    def as_fields(self) -> dict:
        return {
            'amount_paid': self.amount_paid,
            'amount_refunded': self.amount_refunded,
            'balance_due': self.balance_due,
            'payment_status': self.payment_status.value,
        }


def _quantize(value: Decimal, currency: str) -> Decimal:
    return value.quantize(minor_unit_exponent(currency), rounding=ROUND_HALF_UP)


def project(total_amount, entries: Iterable[LedgerEntry], currency: str = 'USD') -> Projection:
    """Derive a booking's money state from its ledger entries"""
    total_amount = _quantize(to_decimal(total_amount), currency)
    succeeded = [entry for entry in entries if entry.succeeded]

    paid_in = sum((e.amount for e in succeeded if e.kind in INCOMING_KINDS), Decimal('0'))
    refunded = sum((e.amount for e in succeeded if e.kind == PaymentKind.REFUND), Decimal('0'))
    amount_paid = _quantize(paid_in - refunded, currency)
    has_deposit = any(e.kind == PaymentKind.DEPOSIT for e in succeeded)

    if amount_paid <= 0:
        status = BookingPaymentStatus.PENDING
    elif amount_paid >= total_amount:
        status = BookingPaymentStatus.FULLY_PAID
    elif has_deposit:
        status = BookingPaymentStatus.DEPOSIT_PAID
    else:
        status = BookingPaymentStatus.PARTIALLY_PAID

    return Projection(
        amount_paid=amount_paid,
        amount_refunded=_quantize(refunded, currency),
        balance_due=total_amount - amount_paid,
        payment_status=status,
    )


def refundable_amount(amount, kind, status, refunds: Iterable[LedgerEntry]) -> Decimal:
    """
    What can still be refunded from one payment

    Only a succeeded payment or deposit is refundable; its refundable amount
    is its own amount less its succeeded refunds.
    """
    if PaymentKind(kind) == PaymentKind.REFUND or PaymentState(status) != PaymentState.SUCCEEDED:
        return Decimal('0')
    refunded = sum(
        (e.amount for e in refunds if e.succeeded and e.kind == PaymentKind.REFUND),
        Decimal('0'),
    )
    return max(to_decimal(amount) - refunded, Decimal('0'))
