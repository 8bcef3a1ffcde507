"""Hotel notification log.

Event handlers that append short entries to a hotel's dashboard log when
the hotel has the matching notification switched on. Only the most recent
``HOTEL_NOTIFICATIONS_LIMIT`` entries are kept.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore

from apps.bookings.domain.events import BookingCancelled, BookingCreated, PaymentRecorded

from .models import Hotel, HotelNotification

logger = logging.getLogger(__name__)

# Hotel flag that enables each notification type
_TOGGLES = {
    HotelNotification.Type.BOOKING_NEW: "notify_new_booking",
    HotelNotification.Type.BOOKING_CANCELLED: "notify_cancelled_booking",
    HotelNotification.Type.PAYMENT_RECEIVED: "notify_payment_received",
}


def notifications_limit() -> int:
    return int(getattr(settings, "HOTEL_NOTIFICATIONS_LIMIT", 50))


@transaction.atomic
def push_notification(hotel_id: UUID, type: str, message: str,
                      created_at: datetime | None = None) -> HotelNotification | None:
    """Append an entry and trim the log; returns None if the hotel opted out."""

    hotel = Hotel.objects.select_for_update().filter(pk=hotel_id).first()
    if hotel is None:
        logger.warning("Notification %s for unknown hotel %s dropped", type, hotel_id)
        return None
    if not getattr(hotel, _TOGGLES[type]):
        return None

    fields = {"hotel": hotel, "type": type, "message": message}
    if created_at is not None:
        fields["created_at"] = created_at
    notification = HotelNotification.objects.create(**fields)

    stale = list(
        HotelNotification.objects.filter(hotel=hotel)
        .order_by("-created_at")
        .values_list("pk", flat=True)[notifications_limit():]
    )
    if stale:
        HotelNotification.objects.filter(pk__in=stale).delete()
    return notification


def on_booking_created(event: BookingCreated) -> None:
    push_notification(
        event.hotel_id,
        HotelNotification.Type.BOOKING_NEW,
        f"New booking {event.booking_number} for room {event.room_number} ({event.guest_name}).",
        created_at=event.occurred_at,
    )


def on_booking_cancelled(event: BookingCancelled) -> None:
    message = f"Booking {event.booking_number} was cancelled."
    if event.reason:
        message = f"{message[:-1]}: {event.reason}"
    push_notification(
        event.hotel_id,
        HotelNotification.Type.BOOKING_CANCELLED,
        message[:255],
        created_at=event.occurred_at,
    )


def on_payment_recorded(event: PaymentRecorded) -> None:
    push_notification(
        event.hotel_id,
        HotelNotification.Type.PAYMENT_RECEIVED,
        f"Payment of {event.amount} ({event.method}) received for booking {event.booking_number}.",
        created_at=event.occurred_at,
    )


def register(bus) -> None:
    bus.register_event_handler(BookingCreated, on_booking_created)
    bus.register_event_handler(BookingCancelled, on_booking_cancelled)
    bus.register_event_handler(PaymentRecorded, on_payment_recorded)
