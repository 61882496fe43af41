"""
Unit of Work Pattern

One use case of the consistency engine runs inside exactly one unit of
work: a database transaction whose row locks are held until commit or
rollback, and whose domain events are published only after a successful
commit.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from django.db import DEFAULT_DB_ALIAS, transaction

from shared.domain.base import Aggregate, DomainEvent

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Commit the transaction"""

    @abstractmethod
    def rollback(self):
        """Rollback the transaction"""

    @abstractmethod
    def collect_events(self, *aggregates: Aggregate):
        """Collect events from aggregate roots"""


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Wraps ``transaction.atomic()``. Any exception raised inside the block,
    including business rule violations, rolls back every write and releases
    every lock taken by the block. Events collected from aggregates are
    handed to the message bus through ``transaction.on_commit``.

    Usage:
        with DjangoUnitOfWork(label='create_booking') as uow:
            reservation = allocator.reserve(schedule_id, 2)
            booking = Booking.open(...)
            uow.collect_events(booking)
        # transaction committed, BookingCreated published
    """

    def __init__(self, label: str = '', using: str = DEFAULT_DB_ALIAS):
        self.label = label or self.__class__.__name__
        self.using = using
        self._events: List[DomainEvent] = []
        self._atomic = None

    def __enter__(self):
        self._atomic = transaction.atomic(using=self.using)
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            atomic, self._atomic = self._atomic, None
            if atomic is not None:
                atomic.__exit__(exc_type, exc_val, exc_tb)
        return False

    def commit(self):
        """Schedule publication of the collected events once the commit succeeds"""
        events = self._events.copy()
        self._events.clear()
        logger.debug("Unit of work %s committing with %d event(s)", self.label, len(events))

        if events:
            transaction.on_commit(lambda: self._publish_events(events), using=self.using)

    def rollback(self):
        """Discard collected events; the atomic block rolls back the writes"""
        logger.info(
            "Unit of work %s rolled back, discarding %d event(s)",
            self.label,
            len(self._events),
        )
        self._events.clear()

    def collect_events(self, *aggregates: Aggregate):
        """Move pending events from the given aggregates into this unit of work"""
        for aggregate in aggregates:
            if aggregate is None:
                continue
            new_events = aggregate.events
            if new_events:
                self._events.extend(new_events)
                aggregate.clear_events()
                logger.debug(
                    "Collected %d event(s) from %s %s",
                    len(new_events),
                    aggregate.__class__.__name__,
                    getattr(aggregate, 'pk', None),
                )

    @property
    def pending_events(self) -> List[DomainEvent]:
        return list(self._events)

    def _publish_events(self, events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        logger.info("Publishing %d domain event(s) from %s", len(events), self.label)
        message_bus.publish_events(events)
