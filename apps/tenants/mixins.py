"""View mixins for tenant-owned resources."""

from __future__ import annotations

from django.http import Http404  # type: ignore
from rest_framework import permissions  # type: ignore

from shared.domain.exceptions import CrossTenantAccess

from .permissions import IsTenantMember


class TenantScopedViewMixin:
    """
    Restricts a viewset to the tenant resolved by IsTenantMember.

    Detail lookups of an id that is not visible to the tenant answer with
    the same 403 body whether the row is foreign or missing.
    """

    permission_classes = [permissions.IsAuthenticated, IsTenantMember]
    resource_name = "resource"

    @property
    def tenant_id(self) -> int:
        return self.request.tenant_context.tenant_id  # type: ignore[attr-defined]

    @property
    def acting_user_id(self) -> int:
        return self.request.tenant_context.user_id  # type: ignore[attr-defined]

    def get_queryset(self):  # type: ignore
        return super().get_queryset().for_tenant(self.tenant_id)  # type: ignore[misc]

    def get_object(self):  # type: ignore
        try:
            return super().get_object()  # type: ignore[misc]
        except Http404:
            raise CrossTenantAccess(self.resource_name)
