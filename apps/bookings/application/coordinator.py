"""
Consistency Coordinator

The only entry point API views, Celery tasks and other collaborators use to
touch bookings and payments. Each function builds a validated command and
dispatches it through the message bus; each command runs as one unit of
work in the acting tenant's scope.

Errors (shared.domain.exceptions) propagate unchanged:
- ValidationError before any transaction starts
- CrossTenantAccess / TenantInactive before any business logic
- CapacityExceeded / InvalidStateTransition / RefundExceedsPayment after rollback
- LockTimeout when a row lock could not be acquired in time
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

import structlog
from django.utils import timezone

from shared.application.message_bus import message_bus
from shared.domain.exceptions import DomainError
from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CheckInCommand,
    CheckOutCommand,
    ConfirmBookingCommand,
    CreateBookingCommand,
    ExpireUnpaidBookingCommand,
    MarkNoShowCommand,
    require_id,
)
from apps.bookings.domain.capacity import Availability
from apps.bookings.domain.state_machine import BookingStatus
from apps.bookings.models import Booking
from apps.bookings.services import CapacityAllocator
from apps.finances.application.command_handlers import (
    RecalculateBookingPaymentsCommand,
    RecordPaymentCommand,
    RefundPaymentCommand,
)
from apps.finances.domain.ledger import PaymentState
from apps.finances.models import Payment
from apps.finances.services import PaymentLedger
from apps.tenants.models import Tenant
from apps.tenants.scoping import TenantScope

logger = structlog.get_logger(__name__)


# ===== Bookings =====

def create_booking(
    tenant_id: int,
    schedule_id: int,
    member_id: int,
    participant_count: int,
    notes: str = '',
    created_by: Optional[int] = None,
) -> Booking:
    return message_bus.handle_command(
        CreateBookingCommand(
            tenant_id=tenant_id,
            schedule_id=schedule_id,
            member_id=member_id,
            participant_count=participant_count,
            notes=notes,
            created_by=created_by,
        )
    )


def confirm_booking(tenant_id: int, booking_id: int, confirmed_by: Optional[int] = None) -> Booking:
    return message_bus.handle_command(
        ConfirmBookingCommand(tenant_id=tenant_id, booking_id=booking_id, confirmed_by=confirmed_by)
    )


def check_in(tenant_id: int, booking_id: int, staff_id: int) -> Booking:
    return message_bus.handle_command(
        CheckInCommand(tenant_id=tenant_id, booking_id=booking_id, staff_id=staff_id)
    )


def check_out(tenant_id: int, booking_id: int, staff_id: int) -> Booking:
    return message_bus.handle_command(
        CheckOutCommand(tenant_id=tenant_id, booking_id=booking_id, staff_id=staff_id)
    )


def cancel_booking(
    tenant_id: int,
    booking_id: int,
    reason: str = '',
    cancelled_by: Optional[int] = None,
) -> Booking:
    return message_bus.handle_command(
        CancelBookingCommand(
            tenant_id=tenant_id,
            booking_id=booking_id,
            reason=reason,
            cancelled_by=cancelled_by,
        )
    )


def mark_no_show(tenant_id: int, booking_id: int, marked_by: Optional[int] = None) -> Booking:
    return message_bus.handle_command(
        MarkNoShowCommand(tenant_id=tenant_id, booking_id=booking_id, marked_by=marked_by)
    )


def get_booking(tenant_id: int, booking_id: int) -> Booking:
    require_id(tenant_id, 'tenant_id')
    require_id(booking_id, 'booking_id')
    scope = TenantScope.resolve(tenant_id)
    return scope.get(Booking, booking_id, resource='booking')


def schedule_availability(tenant_id: int, schedule_id: int) -> Availability:
    require_id(tenant_id, 'tenant_id')
    require_id(schedule_id, 'schedule_id')
    scope = TenantScope.resolve(tenant_id)
    with scope.activate():
        return CapacityAllocator().availability(schedule_id)


# ===== Payments =====

def record_payment(
    tenant_id: int,
    booking_id: int,
    amount: Decimal,
    kind: str = 'payment',
    method: str = 'cash',
    notes: str = '',
    idempotency_key: Optional[str] = None,
    processed_by: Optional[int] = None,
) -> Payment:
    return message_bus.handle_command(
        RecordPaymentCommand(
            tenant_id=tenant_id,
            booking_id=booking_id,
            amount=amount,
            kind=kind,
            method=method,
            notes=notes,
            idempotency_key=idempotency_key,
            processed_by=processed_by,
        )
    )


def refund_payment(
    tenant_id: int,
    payment_id: int,
    amount: Decimal,
    reason: str = '',
    processed_by: Optional[int] = None,
) -> Payment:
    return message_bus.handle_command(
        RefundPaymentCommand(
            tenant_id=tenant_id,
            payment_id=payment_id,
            amount=amount,
            reason=reason,
            processed_by=processed_by,
        )
    )


def recalculate_booking_payments(tenant_id: int, booking_id: int):
    return message_bus.handle_command(
        RecalculateBookingPaymentsCommand(tenant_id=tenant_id, booking_id=booking_id)
    )


def verify_booking_projection(tenant_id: int, booking_id: int) -> dict:
    """Report drift between a booking's cached money fields and its ledger"""
    booking = get_booking(tenant_id, booking_id)
    return PaymentLedger.verify_projection(booking)


# ===== Scheduled jobs =====

def expire_unpaid_bookings(now: Optional[datetime] = None) -> dict:
    """
    Cancel pending bookings whose payment window has passed unpaid

    Each booking is expired in its own tenant scope and transaction, so one
    contended or already-moved booking never blocks the rest of the sweep.
    """
    now = now or timezone.now()
    candidates = list(
        Booking.all_tenants.filter(
            status=BookingStatus.PENDING.value,
            payment_due_date__isnull=False,
            payment_due_date__lte=now,
            tenant__status=Tenant.Status.ACTIVE,
        )
        .exclude(payments__status=PaymentState.SUCCEEDED.value)
        .order_by('payment_due_date')
        .values_list('tenant_id', 'pk')
    )

    expired = skipped = 0
    for tenant_id, booking_id in candidates:
        try:
            booking = message_bus.handle_command(
                ExpireUnpaidBookingCommand(tenant_id=tenant_id, booking_id=booking_id, now=now)
            )
        except DomainError as exc:
            skipped += 1
            logger.warning(
                "booking.expiry_skipped",
                tenant_id=tenant_id,
                booking_id=booking_id,
                error=exc.code,
            )
            continue
        if booking is None:
            skipped += 1
        else:
            expired += 1

    logger.info("booking.expiry_sweep", candidates=len(candidates), expired=expired, skipped=skipped)
    return {"expired": expired, "skipped": skipped}
