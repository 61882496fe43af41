"""
Booking State Machine

The lifecycle of a booking is the TRANSITIONS table below and nothing else:

    pending   --confirm-->      confirmed
    pending   --cancel-->       cancelled   (releases capacity)
    confirmed --cancel-->       cancelled   (releases capacity)
    confirmed --check_in-->     checked_in
    checked_in --check_out-->   completed
    confirmed --mark_no_show--> no_show     (releases capacity)

completed, cancelled and no_show are terminal. Every operation and the
model's save() consult this one table, so auditing or adding a transition
is a one-place change.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from shared.domain.exceptions import InvalidStateTransition


class BookingStatus(str, Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CHECKED_IN = 'checked_in'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    NO_SHOW = 'no_show'

    @classmethod
    def choices(cls):
        return [(status.value, status.value.replace('_', ' ').capitalize()) for status in cls]


class BookingEvent(str, Enum):
    CONFIRM = 'confirm'
    CANCEL = 'cancel'
    CHECK_IN = 'check_in'
    CHECK_OUT = 'check_out'
    MARK_NO_SHOW = 'mark_no_show'


@dataclass(frozen=True)
class Transition:
    """One row of the transition table"""
    event: BookingEvent
    sources: FrozenSet[BookingStatus]
    target: BookingStatus
    releases_capacity: bool = False
    stamp: Optional[str] = None        # timestamp field set to "now"
    actor_field: Optional[str] = None  # user FK recording who did it


TRANSITIONS: Dict[BookingEvent, Transition] = {
    BookingEvent.CONFIRM: Transition(
        event=BookingEvent.CONFIRM,
        sources=frozenset({BookingStatus.PENDING}),
        target=BookingStatus.CONFIRMED,
        stamp='confirmed_at',
    ),
    BookingEvent.CANCEL: Transition(
        event=BookingEvent.CANCEL,
        sources=frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED}),
        target=BookingStatus.CANCELLED,
        releases_capacity=True,
        stamp='cancelled_at',
        actor_field='cancelled_by',
    ),
    BookingEvent.CHECK_IN: Transition(
        event=BookingEvent.CHECK_IN,
        sources=frozenset({BookingStatus.CONFIRMED}),
        target=BookingStatus.CHECKED_IN,
        stamp='checked_in_at',
        actor_field='checked_in_by',
    ),
    BookingEvent.CHECK_OUT: Transition(
        event=BookingEvent.CHECK_OUT,
        sources=frozenset({BookingStatus.CHECKED_IN}),
        target=BookingStatus.COMPLETED,
        stamp='checked_out_at',
        actor_field='checked_out_by',
    ),
    BookingEvent.MARK_NO_SHOW: Transition(
        event=BookingEvent.MARK_NO_SHOW,
        sources=frozenset({BookingStatus.CONFIRMED}),
        target=BookingStatus.NO_SHOW,
        releases_capacity=True,
        stamp='no_show_at',
    ),
}

TERMINAL_STATES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW})

# Bookings in these states no longer consume schedule capacity
CAPACITY_RELEASED_STATES = frozenset({BookingStatus.CANCELLED, BookingStatus.NO_SHOW})

ACTIVE_STATES = frozenset(set(BookingStatus) - CAPACITY_RELEASED_STATES)


def resolve(current, event) -> Transition:
    """
    Return the transition for ``event`` from ``current``

    Raises:
        InvalidStateTransition: the event is not legal from ``current``
    """
    current = BookingStatus(current)
    event = BookingEvent(event)
    transition = TRANSITIONS[event]
    if current not in transition.sources:
        raise InvalidStateTransition(current.value, event.value)
    return transition


def is_allowed(current, target) -> bool:
    """True if some event moves a booking from ``current`` to ``target``"""
    current = BookingStatus(current)
    target = BookingStatus(target)
    return any(
        transition.target == target and current in transition.sources
        for transition in TRANSITIONS.values()
    )


def allowed_events(current) -> List[BookingEvent]:
    current = BookingStatus(current)
    return [event for event, transition in TRANSITIONS.items() if current in transition.sources]
