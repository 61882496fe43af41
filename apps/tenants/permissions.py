"""DRF permission resolving the acting tenant of an API request."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from rest_framework import permissions  # type: ignore

from .context import TenantContext
from .models import Tenant, TenantMembership


def tenant_header() -> str:
    return getattr(settings, "TENANT_HEADER", "X-Tenant-ID")


class IsTenantMember(permissions.BasePermission):
    """
    The caller must be an active member of the tenant named in the tenant
    header, and that tenant must be active.

    On success ``request.tenant_context`` carries the acting tenant.
    """

    message = "You do not have access to this tenant."

    def has_permission(self, request, view):  # type: ignore
        user = request.user
        if not user or not user.is_authenticated:
            return False

        raw = request.headers.get(tenant_header())
        if not raw:
            self.message = f"The {tenant_header()} header is required."
            return False
        try:
            tenant_id = int(raw)
        except (TypeError, ValueError):
            self.message = "You do not have access to this tenant."
            return False

        tenant = Tenant.objects.filter(pk=tenant_id).first()
        is_member = tenant is not None and TenantMembership.objects.filter(
            tenant=tenant, user=user, is_active=True
        ).exists()
        if not is_member:
            self.message = "You do not have access to this tenant."
            return False
        if not tenant.is_active:
            self.message = "This account has been suspended or is inactive."
            return False

        request.tenant = tenant
        request.tenant_context = TenantContext(tenant_id=tenant.pk, user_id=user.pk)
        return True
