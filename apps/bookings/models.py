"""Booking models for SlotBook."""

from __future__ import annotations

import secrets
import string
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.finances.domain.ledger import BookingPaymentStatus, LedgerEntry, Projection, project
from apps.tenants.managers import TenantScopedManager, TenantScopedQuerySet
from apps.tenants.models import TenantOwnedModel
from shared.domain.base import Aggregate
from shared.domain.exceptions import InvalidStateTransition
from shared.domain.exceptions import ValidationError as DomainValidationError
from shared.domain.value_objects import Money, minor_unit_exponent

from .domain import state_machine
from .domain.events import (
    BookingCancelled,
    BookingCheckedIn,
    BookingCompleted,
    BookingConfirmed,
    BookingCreated,
    BookingMarkedNoShow,
)
from .domain.state_machine import BookingEvent, BookingStatus, Transition

BOOKING_NUMBER_ALPHABET = string.ascii_uppercase + string.digits

# Columns owned by the state machine and the payment ledger.
GUARDED_FIELDS = frozenset({"status", "amount_paid", "amount_refunded", "balance_due", "payment_status"})


class BookingQuerySet(TenantScopedQuerySet):
    def update(self, **kwargs):  # type: ignore
        """
        Bulk updates go straight to SQL and skip ``Booking.save()``, so status
        and payment columns are refused here. They change through the
        coordinator's transitions and ledger operations only.
        """
        guarded = sorted(GUARDED_FIELDS.intersection(kwargs))
        if guarded:
            raise DomainValidationError(
                f"Booking field(s) {', '.join(guarded)} cannot be bulk updated.",
                field=guarded[0],
            )
        return super().update(**kwargs)


BookingManager = TenantScopedManager.from_queryset(BookingQuerySet)


class Booking(Aggregate, TenantOwnedModel):
    """
    Reservation of capacity on a schedule instance.

    ``status`` only moves along the transition table; ``save()`` rejects any
    other change relative to the status loaded from the database. The money
    fields are a cached projection of the booking's payments.
    """

    Status = BookingStatus
    PaymentStatus = BookingPaymentStatus

    schedule = models.ForeignKey(
        "schedules.ScheduleInstance",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    location_id = models.PositiveBigIntegerField()
    member_id = models.PositiveBigIntegerField()
    booking_number = models.CharField(max_length=12, unique=True, editable=False)
    participant_count = models.PositiveIntegerField()
    status = models.CharField(
        max_length=20,
        choices=BookingStatus.choices(),
        default=BookingStatus.PENDING.value,
    )
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    amount_refunded = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    balance_due = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Negative when the booking is overpaid."),
    )
    payment_status = models.CharField(
        max_length=20,
        choices=BookingPaymentStatus.choices(),
        default=BookingPaymentStatus.PENDING.value,
    )
    currency = models.CharField(max_length=3, default="USD")
    customer_notes = models.TextField(blank=True)
    payment_due_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("Unpaid pending bookings are cancelled after this moment."),
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)
    checked_in_at = models.DateTimeField(null=True, blank=True)
    checked_in_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    checked_out_at = models.DateTimeField(null=True, blank=True)
    checked_out_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    cancellation_reason = models.CharField(max_length=255, blank=True)
    no_show_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingManager()
    all_tenants = BookingQuerySet.as_manager()

    class Meta:
        db_table = "bookings"
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(participant_count__gte=1),
                name="booking_participant_count_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant", "status"], name="bookings_tenant_status_idx"),
            models.Index(fields=["schedule", "status"], name="bookings_schedule_status_idx"),
            models.Index(fields=["tenant", "payment_due_date"], name="bookings_tenant_due_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.booking_number} ({self.status})"

    # ----- persistence guard -----

    @classmethod
    def from_db(cls, db, field_names, values):  # type: ignore
        instance = super().from_db(db, field_names, values)
        instance._persisted_status = instance.__dict__.get("status")
        return instance

    def refresh_from_db(self, using=None, fields=None, **kwargs):  # type: ignore
        super().refresh_from_db(using=using, fields=fields, **kwargs)
        if fields is None or "status" in fields:
            self._persisted_status = self.status

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding:
            if self.status != BookingStatus.PENDING.value:
                raise InvalidStateTransition("new", "create", self.status)
            if not self.booking_number:
                self.booking_number = self.generate_booking_number()
        else:
            persisted = self.__dict__.get("_persisted_status")
            if persisted is not None and self.status != persisted:
                if not state_machine.is_allowed(persisted, self.status):
                    attempted, self.status = self.status, persisted
                    raise InvalidStateTransition(persisted, "save", attempted)
        super().save(*args, **kwargs)
        self._persisted_status = self.status

    def clean(self) -> None:
        if self.amount_paid + self.balance_due != self.total_amount:
            raise ValidationError(_("amount_paid + balance_due must equal total_amount."))

    @staticmethod
    def generate_booking_number() -> str:
        return "BK-" + "".join(secrets.choice(BOOKING_NUMBER_ALPHABET) for _ in range(8))

    # ----- creation -----

    @classmethod
    def open(
        cls,
        *,
        tenant,
        schedule,
        member_id: int,
        participant_count: int,
        notes: str = "",
        created_by_id: int | None = None,
    ) -> "Booking":
        """Create a pending booking priced from the schedule."""
        currency = tenant.currency
        total = (schedule.price_per_participant * participant_count).quantize(
            minor_unit_exponent(currency), rounding=ROUND_HALF_UP
        )
        total = Money(total, currency)
        due = None
        if tenant.payment_window_hours:
            due = timezone.now() + timedelta(hours=tenant.payment_window_hours)

        booking = cls(
            tenant=tenant,
            schedule=schedule,
            location_id=schedule.location_id,
            member_id=member_id,
            participant_count=participant_count,
            status=BookingStatus.PENDING.value,
            total_amount=total.amount,
            amount_paid=Decimal("0"),
            amount_refunded=Decimal("0"),
            balance_due=total.amount,
            payment_status=BookingPaymentStatus.PENDING.value,
            currency=total.currency,
            customer_notes=notes,
            payment_due_date=due,
            created_by_id=created_by_id,
        )
        booking.save()
        booking.add_event(
            BookingCreated(
                tenant_id=booking.tenant_id,
                aggregate_id=booking.pk,
                booking_number=booking.booking_number,
                schedule_id=schedule.pk,
                member_id=member_id,
                participant_count=participant_count,
                total_amount=booking.total_amount,
                currency=booking.currency,
            )
        )
        return booking

    # ----- transitions -----

    def _apply(self, event: BookingEvent, actor_id: int | None = None, extra_fields=()) -> Transition:
        transition = state_machine.resolve(self.status, event)
        update_fields = ["status", "updated_at", *extra_fields]
        self.status = transition.target.value
        if transition.stamp:
            setattr(self, transition.stamp, timezone.now())
            update_fields.append(transition.stamp)
        if transition.actor_field and actor_id is not None:
            setattr(self, f"{transition.actor_field}_id", actor_id)
            update_fields.append(transition.actor_field)
        self.save(update_fields=update_fields)
        return transition

    def confirm(self) -> Transition:
        transition = self._apply(BookingEvent.CONFIRM)
        self.add_event(
            BookingConfirmed(tenant_id=self.tenant_id, aggregate_id=self.pk, booking_number=self.booking_number)
        )
        return transition

    def cancel(self, reason: str = "", cancelled_by: int | None = None) -> Transition:
        state_machine.resolve(self.status, BookingEvent.CANCEL)
        self.cancellation_reason = (reason or "")[:255]
        transition = self._apply(BookingEvent.CANCEL, cancelled_by, extra_fields=["cancellation_reason"])
        self.add_event(
            BookingCancelled(
                tenant_id=self.tenant_id,
                aggregate_id=self.pk,
                booking_number=self.booking_number,
                schedule_id=self.schedule_id,
                participant_count=self.participant_count,
                reason=self.cancellation_reason,
                cancelled_by=cancelled_by,
                amount_paid=self.amount_paid,
            )
        )
        return transition

    def check_in(self, staff_id: int | None = None) -> Transition:
        transition = self._apply(BookingEvent.CHECK_IN, staff_id)
        self.add_event(
            BookingCheckedIn(
                tenant_id=self.tenant_id,
                aggregate_id=self.pk,
                booking_number=self.booking_number,
                staff_id=staff_id,
            )
        )
        return transition

    def check_out(self, staff_id: int | None = None) -> Transition:
        transition = self._apply(BookingEvent.CHECK_OUT, staff_id)
        self.add_event(
            BookingCompleted(
                tenant_id=self.tenant_id,
                aggregate_id=self.pk,
                booking_number=self.booking_number,
                staff_id=staff_id,
            )
        )
        return transition

    def mark_no_show(self) -> Transition:
        transition = self._apply(BookingEvent.MARK_NO_SHOW)
        self.add_event(
            BookingMarkedNoShow(
                tenant_id=self.tenant_id,
                aggregate_id=self.pk,
                booking_number=self.booking_number,
                schedule_id=self.schedule_id,
                participant_count=self.participant_count,
            )
        )
        return transition

    def can_be_cancelled(self) -> bool:
        return BookingEvent.CANCEL in state_machine.allowed_events(self.status)

    @property
    def is_terminal(self) -> bool:
        return BookingStatus(self.status) in state_machine.TERMINAL_STATES

    # ----- money -----

    def ledger_entries(self) -> list[LedgerEntry]:
        return [
            LedgerEntry(kind=kind, status=status, amount=amount)
            for kind, status, amount in self.payments.values_list("kind", "status", "amount")
        ]

    def compute_projection(self) -> Projection:
        return project(self.total_amount, self.ledger_entries(), self.currency)

    def recalculate_payments(self) -> Projection:
        """Refresh the cached money fields from the ledger and persist them."""
        projection = self.compute_projection()
        for field, value in projection.as_fields().items():
            setattr(self, field, value)
        self.save(update_fields=["amount_paid", "amount_refunded", "balance_due", "payment_status", "updated_at"])
        return projection

    def has_succeeded_payment(self) -> bool:
        return any(entry.succeeded for entry in self.ledger_entries())
