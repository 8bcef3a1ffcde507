"""Guest registration."""

from __future__ import annotations

import logging
from typing import Any, Mapping
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError  # type: ignore

from apps.hotels.scope import resolve_scope
from apps.hotels.services import require_open_hotel
from apps.users.permissions import Permission
from apps.users.principal import Principal
from shared.domain.errors import ValidationError

from .models import Guest

logger = logging.getLogger(__name__)

GUEST_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "nationality",
    "id_type",
    "id_number",
    "guest_type",
    "company_name",
    "notes",
)


def register_guest(principal: Principal, data: Mapping[str, Any], hotel_id: UUID | None = None) -> Guest:
    """Create a guest profile stamped with the caller's hotel."""

    scope = resolve_scope(principal, hotel_id)
    target_hotel = scope.require_hotel()
    principal.require(Permission.GUEST_CREATE)
    require_open_hotel(principal, target_hotel)

    values = {key: data[key] for key in GUEST_FIELDS if key in data}
    for key in ("first_name", "last_name"):
        if isinstance(values.get(key), str):
            values[key] = values[key].strip()

    guest = Guest(hotel_id=target_hotel, **values)
    try:
        guest.full_clean(exclude=["hotel"])
    except DjangoValidationError as e:
        raise ValidationError("Invalid guest data", fields=e.message_dict)
    guest.save(force_insert=True)

    logger.info("Guest %s registered in hotel %s by %s", guest.pk, target_hotel, principal.user_id)
    return guest
