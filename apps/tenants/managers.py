"""Tenant-scoped managers for business models."""

from __future__ import annotations

from django.db import models  # type: ignore

from .context import get_current_tenant


class TenantScopedQuerySet(models.QuerySet):
    def for_tenant(self, tenant_id: int) -> "TenantScopedQuerySet":
        return self.filter(tenant_id=tenant_id)


class TenantScopedManager(models.Manager.from_queryset(TenantScopedQuerySet)):
    """
    Default manager of tenant-owned models.

    While a tenant context is active every query, including reverse related
    managers such as ``schedule.bookings``, is restricted to the acting
    tenant. Outside a context (migrations, admin, shell) it is unfiltered.
    """

    def get_queryset(self):  # type: ignore
        queryset = super().get_queryset()
        ctx = get_current_tenant()
        if ctx is not None:
            queryset = queryset.filter(tenant_id=ctx.tenant_id)
        return queryset
