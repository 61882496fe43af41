"""
Booking Command Handlers

These are the use cases for the booking domain.
Each one runs as a single unit of work inside the acting tenant's scope.

Commands:
- CreateBookingCommand: Reserve capacity and create a pending booking
- ConfirmBookingCommand: pending -> confirmed
- CheckInCommand / CheckOutCommand: confirmed -> checked_in -> completed
- CancelBookingCommand: Cancel and hand capacity back
- MarkNoShowCommand: confirmed -> no_show, capacity handed back
- ExpireUnpaidBookingCommand: Cancel a pending booking whose payment window passed

Commands validate their input on construction, so a bad request is
rejected before any transaction starts.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import structlog

from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import ValidationError
from apps.bookings.domain.capacity import validate_participant_count
from apps.bookings.domain.state_machine import BookingStatus, Transition
from apps.bookings.models import Booking
from apps.bookings.services import CapacityAllocator
from apps.tenants.scoping import TenantScope

logger = structlog.get_logger(__name__)

MAX_REASON_LENGTH = 255
EXPIRY_REASON = 'Payment window expired'


def require_id(value, field: str, optional: bool = False) -> None:
    if value is None and optional:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer.", field=field)


def require_reason(value, field: str = 'reason') -> None:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string.", field=field)
    if len(value) > MAX_REASON_LENGTH:
        raise ValidationError(f"{field} must be at most {MAX_REASON_LENGTH} characters.", field=field)


# ===== Commands =====

@dataclass(frozen=True)
class CreateBookingCommand:
    """
    Command to create a new booking

    This is the primary entry point for consuming schedule capacity.
    """
    tenant_id: int
    schedule_id: int
    member_id: int
    participant_count: int
    notes: str = ''
    created_by: Optional[int] = None

    def __post_init__(self):
        require_id(self.tenant_id, 'tenant_id')
        require_id(self.schedule_id, 'schedule_id')
        require_id(self.member_id, 'member_id')
        validate_participant_count(self.participant_count)
        if not isinstance(self.notes, str):
            raise ValidationError("notes must be a string.", field='notes')
        require_id(self.created_by, 'created_by', optional=True)


@dataclass(frozen=True)
class ConfirmBookingCommand:
    tenant_id: int
    booking_id: int
    confirmed_by: Optional[int] = None

    def __post_init__(self):
        require_id(self.tenant_id, 'tenant_id')
        require_id(self.booking_id, 'booking_id')
        require_id(self.confirmed_by, 'confirmed_by', optional=True)


@dataclass(frozen=True)
class CheckInCommand:
    tenant_id: int
    booking_id: int
    staff_id: int

    def __post_init__(self):
        require_id(self.tenant_id, 'tenant_id')
        require_id(self.booking_id, 'booking_id')
        require_id(self.staff_id, 'staff_id')


@dataclass(frozen=True)
class CheckOutCommand:
    tenant_id: int
    booking_id: int
    staff_id: int

    def __post_init__(self):
        require_id(self.tenant_id, 'tenant_id')
        require_id(self.booking_id, 'booking_id')
        require_id(self.staff_id, 'staff_id')


@dataclass(frozen=True)
class CancelBookingCommand:
    """Command to cancel a booking (pending or confirmed)"""
    tenant_id: int
    booking_id: int
    reason: str = ''
    cancelled_by: Optional[int] = None

    def __post_init__(self):
        require_id(self.tenant_id, 'tenant_id')
        require_id(self.booking_id, 'booking_id')
        require_reason(self.reason)
        require_id(self.cancelled_by, 'cancelled_by', optional=True)


@dataclass(frozen=True)
class MarkNoShowCommand:
    tenant_id: int
    booking_id: int
    marked_by: Optional[int] = None

    def __post_init__(self):
        require_id(self.tenant_id, 'tenant_id')
        require_id(self.booking_id, 'booking_id')
        require_id(self.marked_by, 'marked_by', optional=True)


@dataclass(frozen=True)
class ExpireUnpaidBookingCommand:
    """Command issued by the expiry job for one overdue booking"""
    tenant_id: int
    booking_id: int
    now: datetime

    def __post_init__(self):
        require_id(self.tenant_id, 'tenant_id')
        require_id(self.booking_id, 'booking_id')


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command

    Strategy:
    1. Resolve the acting tenant (inactive or unknown tenants stop here)
    2. Start the unit of work
    3. Reserve capacity: lock the schedule row, derive the booked count
    4. Create the pending booking in the same transaction
    5. Commit; BookingCreated is published after commit

    A failure anywhere rolls back the booking together with the reservation.
    """

    def __init__(self, allocator: Optional[CapacityAllocator] = None):
        self.allocator = allocator or CapacityAllocator()

    def handle(self, command: CreateBookingCommand) -> Booking:
        scope = TenantScope.resolve(command.tenant_id, command.created_by)

        with scope.activate(), DjangoUnitOfWork('create_booking') as uow:
            schedule = self.allocator.lock_schedule(command.schedule_id)
            reservation = self.allocator.reserve_on(schedule, command.participant_count)
            booking = Booking.open(
                tenant=scope.tenant,
                schedule=schedule,
                member_id=command.member_id,
                participant_count=command.participant_count,
                notes=command.notes,
                created_by_id=command.created_by,
            )
            uow.collect_events(booking)

        logger.info(
            "booking.created",
            tenant_id=scope.tenant_id,
            booking_id=booking.pk,
            booking_number=booking.booking_number,
            schedule_id=command.schedule_id,
            participant_count=command.participant_count,
            available_before=reservation.available,
        )
        return booking


class BookingTransitionHandler:
    """
    Shared shape of every status transition

    The booking row is locked before the transition is resolved. When the
    transition releases capacity, the schedule is locked next and the
    release happens in the same transaction as the status change.
    """

    label = 'booking_transition'

    def __init__(self, allocator: Optional[CapacityAllocator] = None):
        self.allocator = allocator or CapacityAllocator()

    def run(
        self,
        tenant_id: int,
        booking_id: int,
        user_id: Optional[int],
        apply: Callable[[Booking], Transition],
    ) -> Booking:
        scope = TenantScope.resolve(tenant_id, user_id)

        with scope.activate(), DjangoUnitOfWork(self.label) as uow:
            booking = scope.get(Booking, booking_id, lock=True, resource='booking')
            previous = booking.status
            transition = apply(booking)
            if transition.releases_capacity:
                self.allocator.release(booking.schedule_id, booking.participant_count)
            uow.collect_events(booking)

        logger.info(
            "booking.transitioned",
            tenant_id=scope.tenant_id,
            booking_id=booking.pk,
            booking_event=transition.event.value,
            from_status=previous,
            to_status=booking.status,
        )
        return booking


class ConfirmBookingHandler(BookingTransitionHandler):
    label = 'confirm_booking'

    def handle(self, command: ConfirmBookingCommand) -> Booking:
        return self.run(
            command.tenant_id,
            command.booking_id,
            command.confirmed_by,
            lambda booking: booking.confirm(),
        )


class CheckInHandler(BookingTransitionHandler):
    label = 'check_in'

    def handle(self, command: CheckInCommand) -> Booking:
        return self.run(
            command.tenant_id,
            command.booking_id,
            command.staff_id,
            lambda booking: booking.check_in(command.staff_id),
        )


class CheckOutHandler(BookingTransitionHandler):
    label = 'check_out'

    def handle(self, command: CheckOutCommand) -> Booking:
        return self.run(
            command.tenant_id,
            command.booking_id,
            command.staff_id,
            lambda booking: booking.check_out(command.staff_id),
        )


class CancelBookingHandler(BookingTransitionHandler):
    """Cancel a booking and release its capacity, all-or-nothing"""

    label = 'cancel_booking'

    def handle(self, command: CancelBookingCommand) -> Booking:
        return self.run(
            command.tenant_id,
            command.booking_id,
            command.cancelled_by,
            lambda booking: booking.cancel(command.reason, command.cancelled_by),
        )


class MarkNoShowHandler(BookingTransitionHandler):
    label = 'mark_no_show'

    def handle(self, command: MarkNoShowCommand) -> Booking:
        return self.run(
            command.tenant_id,
            command.booking_id,
            command.marked_by,
            lambda booking: booking.mark_no_show(),
        )


class ExpireUnpaidBookingHandler(BookingTransitionHandler):
    """
    Cancel one overdue booking if it is still pending and unpaid

    The conditions are re-checked under the booking lock, which payment
    recording also takes, so a payment that lands after the job selected
    the booking wins. Returns None when the booking no longer qualifies.
    """

    label = 'expire_unpaid_booking'

    def handle(self, command: ExpireUnpaidBookingCommand) -> Optional[Booking]:
        scope = TenantScope.resolve(command.tenant_id)

        with scope.activate(), DjangoUnitOfWork(self.label) as uow:
            booking = scope.get(Booking, command.booking_id, lock=True, resource='booking')
            overdue = (
                booking.status == BookingStatus.PENDING.value
                and booking.payment_due_date is not None
                and booking.payment_due_date <= command.now
                and not booking.has_succeeded_payment()
            )
            if not overdue:
                return None
            booking.cancel(EXPIRY_REASON)
            self.allocator.release(booking.schedule_id, booking.participant_count)
            uow.collect_events(booking)

        logger.info(
            "booking.expired",
            tenant_id=scope.tenant_id,
            booking_id=booking.pk,
            booking_number=booking.booking_number,
        )
        return booking


def register_handlers(bus) -> None:
    """Bind booking commands to their handlers on the message bus"""
    handlers = {
        CreateBookingCommand: CreateBookingHandler,
        ConfirmBookingCommand: ConfirmBookingHandler,
        CheckInCommand: CheckInHandler,
        CheckOutCommand: CheckOutHandler,
        CancelBookingCommand: CancelBookingHandler,
        MarkNoShowCommand: MarkNoShowHandler,
        ExpireUnpaidBookingCommand: ExpireUnpaidBookingHandler,
    }
    for command_type, handler_class in handlers.items():
        if not bus.has_command_handler(command_type):
            bus.register_command_handler(command_type, handler_class().handle)
