"""Tenant isolation helpers.

Every query the booking core issues goes through a ``TenantScope`` so that
a hotel's staff can never read or write another hotel's rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from apps.users.principal import Principal
from shared.domain.errors import Forbidden

# Lookups a caller could use to widen or redirect the tenant filter.
_TENANT_LOOKUPS = ("hotel", "hotel_id", "hotel__id", "hotel__pk")


@dataclass(frozen=True)
class TenantScope:
    """
    Tenant filter for one request.

    ``hotel_id`` None means unrestricted, which only a cross-tenant
    administrator can obtain through ``resolve_scope``.
    """

    hotel_id: UUID | None

    @classmethod
    def for_hotel(cls, hotel_id: UUID | str) -> "TenantScope":
        return cls(hotel_id=UUID(str(hotel_id)))

    @classmethod
    def unrestricted(cls) -> "TenantScope":
        return cls(hotel_id=None)

    @property
    def is_unrestricted(self) -> bool:
        return self.hotel_id is None

    def filter(self, **lookups) -> dict:
        """Merge caller lookups with the tenant condition; the tenant wins."""
        cleaned = {k: v for k, v in lookups.items() if k not in _TENANT_LOOKUPS}
        if self.hotel_id is not None:
            cleaned["hotel_id"] = self.hotel_id
        return cleaned

    def owns(self, obj) -> bool:
        if obj is None:
            return False
        if self.hotel_id is None:
            return True
        return getattr(obj, "hotel_id", None) == self.hotel_id

    def require_hotel(self) -> UUID:
        """Concrete hotel id for operations that create tenant data."""
        if self.hotel_id is None:
            raise Forbidden("Hotel is not specified")
        return self.hotel_id


def resolve_scope(principal: Principal, hotel_id: UUID | str | None = None) -> TenantScope:
    """
    Resolve the tenant scope for ``principal``.

    Fails closed: a principal without a hotel gets a scope only if it is a
    cross-tenant administrator.
    """
    requested = UUID(str(hotel_id)) if hotel_id else None

    if principal.hotel_id is not None:
        if requested is not None and requested != principal.hotel_id:
            raise Forbidden("Access to another hotel is not allowed")
        return TenantScope(hotel_id=principal.hotel_id)

    if principal.is_cross_tenant:
        return TenantScope(hotel_id=requested)

    raise Forbidden("Hotel is not specified")
