"""Room registration."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Mapping
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore

from apps.hotels.scope import resolve_scope
from apps.hotels.services import require_open_hotel
from apps.users.permissions import Permission
from apps.users.principal import Principal
from shared.domain.errors import Conflict, ValidationError
from shared.domain.value_objects import to_money

from .models import Room

logger = logging.getLogger(__name__)

ROOM_FIELDS = (
    "room_number",
    "floor",
    "room_type",
    "status",
    "price_per_night",
    "capacity_adults",
    "capacity_children",
    "description",
    "is_active",
)


@transaction.atomic
def create_room(principal: Principal, data: Mapping[str, Any], hotel_id: UUID | None = None) -> Room:
    """
    Create a room in the caller's hotel.

    The hotel always comes from the resolved scope; a ``hotel`` key in
    ``data`` is ignored. Duplicate room numbers raise Conflict.
    """
    scope = resolve_scope(principal, hotel_id)
    target_hotel = scope.require_hotel()
    principal.require(Permission.ROOM_CREATE)
    require_open_hotel(principal, target_hotel)

    values = {key: data[key] for key in ROOM_FIELDS if key in data}
    room_number = str(values.get("room_number") or "").strip()
    if not room_number:
        raise ValidationError("Room number is required")
    values["room_number"] = room_number
    price = to_money(values.get("price_per_night", Decimal("0")))
    if price < 0:
        raise ValidationError("Price per night cannot be negative")
    values["price_per_night"] = price

    if Room.objects.filter(hotel_id=target_hotel, room_number=room_number).exists():
        raise Conflict(f"Room {room_number} already exists", room_number=room_number)

    room = Room(hotel_id=target_hotel, **values)
    try:
        room.full_clean(exclude=["hotel"], validate_unique=False)
    except DjangoValidationError as e:
        raise ValidationError("Invalid room data", fields=e.message_dict)
    try:
        room.save(force_insert=True)
    except IntegrityError:
        raise Conflict(f"Room {room_number} already exists", room_number=room_number)

    logger.info("Room %s created in hotel %s by %s", room_number, target_hotel, principal.user_id)
    return room
