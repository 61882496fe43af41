"""
Acting tenant of the current unit of work.

The context is held in a ContextVar so it follows the request (or Celery
task) that entered it and never leaks into a concurrent one.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass


@dataclass(frozen=True)
class TenantContext:
    tenant_id: int
    user_id: int | None = None


_current_tenant: ContextVar[TenantContext | None] = ContextVar("current_tenant", default=None)


def get_current_tenant() -> TenantContext | None:
    return _current_tenant.get()


def require_tenant_context() -> TenantContext:
    ctx = _current_tenant.get()
    if ctx is None:
        raise RuntimeError("No tenant context is active")
    return ctx


@contextmanager
def tenant_context(ctx: TenantContext):
    """Make ``ctx`` the acting tenant for the enclosed block."""
    token = _current_tenant.set(ctx)
    try:
        yield ctx
    finally:
        _current_tenant.reset(token)
