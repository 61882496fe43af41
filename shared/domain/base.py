"""
Base Domain Classes

Building blocks shared by the booking and payment contexts:
- ValueObject: immutable objects compared by value
- Aggregate: mixin for aggregate roots (Django models) that record domain events
- DomainEvent: something that happened, published after the transaction commits
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime
from typing import List
from uuid import UUID, uuid4

from django.utils import timezone


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    Two value objects are equal if all their attributes are equal.
    """
    pass


class Aggregate:
    """
    Mixin for aggregate roots

    Aggregates are the consistency boundaries of the engine (Booking,
    Payment). They collect domain events while a use case runs; the unit of
    work drains them and publishes them once the transaction has committed.
    """

    def _pending_events(self) -> List['DomainEvent']:
        # Django builds model instances without calling our __init__,
        # so the buffer is created lazily.
        return self.__dict__.setdefault('_domain_events', [])

    def add_event(self, event: 'DomainEvent'):
        """Record a domain event to be published after commit"""
        self._pending_events().append(event)

    def clear_events(self):
        """Forget collected events (called by the unit of work)"""
        self._pending_events().clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Get copy of collected events"""
        return list(self._pending_events())


@dataclass(kw_only=True)
class DomainEvent:
    """
    Base class for domain events

    Every event names the tenant it belongs to so subscribers never have to
    guess the isolation boundary.
    """
    tenant_id: int
    aggregate_id: int | None = None
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=timezone.now)

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict:
        """Convert event to a flat dictionary for logging and serialization"""
        payload = {
            key: value for key, value in self.__dict__.items()
            if key not in ('event_id', 'occurred_at')
        }
        for key, value in payload.items():
            if not isinstance(value, (int, str, bool, type(None))):
                payload[key] = str(value)
        payload.update({
            'event_id': str(self.event_id),
            'event_type': self.name,
            'occurred_at': self.occurred_at.isoformat(),
        })
        return payload
