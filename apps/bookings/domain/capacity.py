"""
Capacity rule of a schedule instance

Pure arithmetic over a snapshot taken while the schedule row is locked.
``max_participants is None`` is the explicit unbounded mode: every
reservation fits and no availability is reported.
"""

from dataclasses import dataclass
from typing import Optional

from shared.domain.exceptions import CapacityExceeded, ValidationError


def validate_participant_count(participant_count) -> int:
    if isinstance(participant_count, bool) or not isinstance(participant_count, int):
        raise ValidationError("participant_count must be an integer.", field='participant_count')
    if participant_count <= 0:
        raise ValidationError("participant_count must be greater than zero.", field='participant_count')
    return participant_count


@dataclass(frozen=True)
class Reservation:
    """Room granted to a new booking; ``booked``/``available`` are before it"""
    schedule_id: int
    participant_count: int
    booked: int
    available: Optional[int]
    unbounded: bool = False


@dataclass(frozen=True)
class Release:
    """Room handed back by a cancelled or no-show booking; figures are after it"""
    schedule_id: int
    participant_count: int
    booked: int
    available: Optional[int]
    unbounded: bool = False


@dataclass(frozen=True)
class Availability:
    schedule_id: int
    max_participants: Optional[int]
    booked: int
    available: Optional[int]
    unbounded: bool = False


@dataclass(frozen=True)
class CapacitySnapshot:
    schedule_id: int
    max_participants: Optional[int]
    booked: int

    @property
    def unbounded(self) -> bool:
        return self.max_participants is None

    @property
    def available(self) -> Optional[int]:
        if self.unbounded:
            return None
        return max(self.max_participants - self.booked, 0)

    def can_fit(self, participant_count: int) -> bool:
        if self.unbounded:
            return True
        return self.booked + participant_count <= self.max_participants

    def reserve(self, participant_count: int) -> Reservation:
        """
        Grant room for ``participant_count`` more participants

        Raises:
            ValidationError: participant_count is not a positive integer
            CapacityExceeded: bounded schedule without enough room
        """
        validate_participant_count(participant_count)
        if not self.can_fit(participant_count):
            raise CapacityExceeded(self.schedule_id, participant_count, self.available)
        return Reservation(
            schedule_id=self.schedule_id,
            participant_count=participant_count,
            booked=self.booked,
            available=self.available,
            unbounded=self.unbounded,
        )

    def released(self, participant_count: int) -> Release:
        return Release(
            schedule_id=self.schedule_id,
            participant_count=participant_count,
            booked=self.booked,
            available=self.available,
            unbounded=self.unbounded,
        )

    def availability(self) -> Availability:
        return Availability(
            schedule_id=self.schedule_id,
            max_participants=self.max_participants,
            booked=self.booked,
            available=self.available,
            unbounded=self.unbounded,
        )
