"""
Multi-Tenancy Support Module

Request-scoped tenant identity. Each HTTP request carries its tenant in the
X-Tenant-Id header; the value lives in a context variable for the lifetime of
that request only.

Background statement processing runs on executor threads, which do not inherit
context variables. Work scheduled from a request therefore receives the tenant
id as an explicit argument and must never read it back from this module to
decide data ownership.
"""

import contextvars
from contextlib import contextmanager
from typing import Optional


_current_tenant = contextvars.ContextVar('current_tenant', default=None)


def get_current_tenant() -> Optional[str]:
    """Get the current tenant ID for this context"""
    return _current_tenant.get()


def set_current_tenant(tenant_id: Optional[str]) -> None:
    """Set the current tenant ID for this context"""
    _current_tenant.set(tenant_id)


@contextmanager
def tenant_context(tenant_id: str):
    """Context manager for temporary tenant switching"""
    token = _current_tenant.set(tenant_id)
    try:
        yield
    finally:
        _current_tenant.reset(token)


def normalize_tenant_id(raw: Optional[str]) -> Optional[str]:
    """Strip a raw header value; blank or missing values become None"""
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def extract_tenant_from_headers(headers, header_name: str = "X-Tenant-Id") -> Optional[str]:
    """Extract tenant ID from the tenant header (lookup is case-insensitive)"""
    value = headers.get(header_name)
    if value is None:
        value = headers.get(header_name.lower())
    return normalize_tenant_id(value)
