"""
Payment Domain Events

Published after commit by the unit of work.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class PaymentSucceeded(DomainEvent):
    """
    Event: A payment or deposit succeeded and the booking projection moved

    Triggers:
    - Receipt email (external collaborator)
    - Audit log
    """
    payment_number: str
    booking_id: int
    amount: Decimal
    currency: str
    kind: str
    payment_status: str


@dataclass(kw_only=True)
class PaymentFailed(DomainEvent):
    """Event: A payment attempt failed; the booking is unchanged"""
    payment_number: str
    booking_id: int
    amount: Decimal
    currency: str
    failure_reason: str = ''


@dataclass(kw_only=True)
class PaymentRefunded(DomainEvent):
    """Event: A refund against an earlier payment succeeded"""
    payment_number: str
    booking_id: int
    original_payment_id: int
    amount: Decimal
    currency: str
    payment_status: str
    reason: Optional[str] = None
