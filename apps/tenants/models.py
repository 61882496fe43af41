"""Tenant models for SlotBook."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.exceptions import CrossTenantAccess

from .context import get_current_tenant
from .managers import TenantScopedManager


def default_currency() -> str:
    return getattr(settings, "DEFAULT_CURRENCY", "USD")


class Tenant(models.Model):
    """Operator business. Never hard-deleted; suspend instead."""

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        SUSPENDED = "suspended", _("Suspended")
        CANCELLED = "cancelled", _("Cancelled")

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=100, unique=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    currency = models.CharField(max_length=3, default=default_currency)
    payment_window_hours = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Hours a new booking may stay unpaid before it is cancelled."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Tenant")
        verbose_name_plural = _("Tenants")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE

    def suspend(self) -> None:
        self.status = self.Status.SUSPENDED
        self.save(update_fields=["status", "updated_at"])

    def activate(self) -> None:
        self.status = self.Status.ACTIVE
        self.save(update_fields=["status", "updated_at"])


class TenantMembership(models.Model):
    class Role(models.TextChoices):
        OWNER = "owner", _("Owner")
        MANAGER = "manager", _("Manager")
        STAFF = "staff", _("Staff")

    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.PROTECT,
        related_name="memberships",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="tenant_memberships",
    )
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.STAFF)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Tenant membership")
        verbose_name_plural = _("Tenant memberships")
        constraints = [
            models.UniqueConstraint(fields=["tenant", "user"], name="unique_tenant_membership"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} @ {self.tenant_id} ({self.role})"


class TenantOwnedModel(models.Model):
    """
    Base for every business table.

    ``objects`` is scoped to the acting tenant; ``all_tenants`` is the
    explicit escape hatch for cross-tenant jobs and explicit lookups.
    """

    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.PROTECT,
        related_name="+",
    )

    objects = TenantScopedManager()
    all_tenants = models.Manager()

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):  # type: ignore
        ctx = get_current_tenant()
        if ctx is not None:
            if self.tenant_id is None:
                self.tenant_id = ctx.tenant_id
            elif self.tenant_id != ctx.tenant_id:
                raise CrossTenantAccess(self._meta.model_name)
        super().save(*args, **kwargs)
