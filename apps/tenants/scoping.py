"""
Explicit tenant scope used by the coordinator.

``TenantScope.resolve`` authenticates the acting tenant once per use case;
``TenantScope.get`` is the only way handlers load an entity by id. A lookup
that finds nothing inside the acting tenant raises CrossTenantAccess, so a
caller cannot tell a foreign row from a missing one.
"""

from __future__ import annotations

from typing import TypeVar

from django.db import models  # type: ignore

from shared.domain.exceptions import CrossTenantAccess, TenantInactive
from shared.infrastructure.locking import bounded_lock_wait, lock_queryset

from .context import TenantContext, tenant_context
from .models import Tenant

ModelT = TypeVar("ModelT", bound=models.Model)


class TenantScope:
    def __init__(self, tenant: Tenant, user_id: int | None = None):
        self.tenant = tenant
        self.user_id = user_id

    @classmethod
    def resolve(cls, tenant_id: int, user_id: int | None = None) -> "TenantScope":
        tenant = Tenant.objects.filter(pk=tenant_id).first()
        if tenant is None:
            raise CrossTenantAccess("tenant")
        if not tenant.is_active:
            raise TenantInactive()
        return cls(tenant, user_id)

    @property
    def tenant_id(self) -> int:
        return self.tenant.pk

    @property
    def context(self) -> TenantContext:
        return TenantContext(tenant_id=self.tenant.pk, user_id=self.user_id)

    def activate(self):
        return tenant_context(self.context)

    def get(
        self,
        model: type[ModelT],
        pk: int,
        *,
        lock: bool = False,
        resource: str | None = None,
    ) -> ModelT:
        resource = resource or model._meta.model_name
        queryset = model.all_tenants.filter(tenant_id=self.tenant.pk, pk=pk)  # type: ignore[attr-defined]
        if lock:
            with bounded_lock_wait(f"{resource} {pk}"):
                instance = lock_queryset(queryset).first()
        else:
            instance = queryset.first()
        if instance is None:
            raise CrossTenantAccess(resource)
        return instance
