"""
Booking Domain Events

Events that represent things that have happened to a booking.
They are published only after the unit of work commits.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class BookingCreated(DomainEvent):
    """
    Event: A booking was created in ``pending`` holding a capacity reservation

    Triggers:
    - Audit log
    - Payment reminder (when the tenant has a payment window)
    """
    booking_number: str
    schedule_id: int
    member_id: int
    participant_count: int
    total_amount: Decimal
    currency: str


@dataclass(kw_only=True)
class BookingConfirmed(DomainEvent):
    """Event: pending -> confirmed"""
    booking_number: str


@dataclass(kw_only=True)
class BookingCheckedIn(DomainEvent):
    """Event: confirmed -> checked_in"""
    booking_number: str
    staff_id: Optional[int] = None


@dataclass(kw_only=True)
class BookingCompleted(DomainEvent):
    """Event: checked_in -> completed (checked out)"""
    booking_number: str
    staff_id: Optional[int] = None


@dataclass(kw_only=True)
class BookingCancelled(DomainEvent):
    """
    Event: Booking cancelled, its capacity handed back to the schedule

    Triggers:
    - Refund follow-up for bookings with money collected
    """
    booking_number: str
    schedule_id: int
    participant_count: int
    reason: str = ''
    cancelled_by: Optional[int] = None
    amount_paid: Decimal = Decimal('0')


@dataclass(kw_only=True)
class BookingMarkedNoShow(DomainEvent):
    """Event: confirmed -> no_show, capacity handed back"""
    booking_number: str
    schedule_id: int
    participant_count: int
