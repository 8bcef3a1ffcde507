"""Hotel lookups shared by the tenant-data services."""

from __future__ import annotations

from uuid import UUID

from apps.users.principal import Principal
from shared.domain.errors import Forbidden, NotFound

from .models import Hotel


def require_open_hotel(principal: Principal, hotel_id: UUID) -> Hotel:
    """
    Load the hotel an operation writes into.

    A deactivated hotel is closed to its own staff; only cross-tenant
    administrators may still work in it.
    """
    hotel = Hotel.objects.filter(pk=hotel_id).first()
    if hotel is None:
        raise NotFound("Hotel not found", hotel_id=str(hotel_id))
    if not hotel.is_active and not principal.is_cross_tenant:
        raise Forbidden("Hotel is inactive", hotel_id=str(hotel_id))
    return hotel
