"""Tests for the hotel notification log."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from django.test import TestCase, override_settings

from apps.bookings.domain.payments import NewPayment, PaymentPatch
from apps.bookings.services import BookingService
from apps.guests.models import Guest
from apps.hotels.handlers import push_notification
from apps.hotels.models import Hotel, HotelNotification
from apps.rooms.models import Room
from apps.users.principal import Principal

START = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)


class PushNotificationTests(TestCase):
    def setUp(self) -> None:
        self.hotel = Hotel.objects.create(
            name="Palm",
            slug="palm",
            email="palm@example.com",
            phone="+966110000000",
            city="Riyadh",
            country="Saudi Arabia",
        )

    def test_entry_is_added(self) -> None:
        notification = push_notification(self.hotel.id, HotelNotification.Type.BOOKING_NEW, "New booking")

        self.assertIsNotNone(notification)
        self.assertEqual(self.hotel.notifications.get().message, "New booking")

    def test_disabled_type_is_skipped(self) -> None:
        self.hotel.notify_payment_received = False
        self.hotel.save(update_fields=["notify_payment_received"])

        result = push_notification(self.hotel.id, HotelNotification.Type.PAYMENT_RECEIVED, "Paid")

        self.assertIsNone(result)
        self.assertFalse(HotelNotification.objects.exists())

    def test_unknown_hotel_is_ignored(self) -> None:
        with self.assertLogs("apps.hotels.handlers", level="WARNING"):
            result = push_notification(uuid4(), HotelNotification.Type.BOOKING_NEW, "Lost")

        self.assertIsNone(result)

    @override_settings(HOTEL_NOTIFICATIONS_LIMIT=3)
    def test_only_the_newest_entries_are_kept(self) -> None:
        for minute in range(5):
            push_notification(
                self.hotel.id,
                HotelNotification.Type.BOOKING_NEW,
                f"booking {minute}",
                created_at=START + timedelta(minutes=minute),
            )

        messages = list(self.hotel.notifications.values_list("message", flat=True))
        self.assertEqual(messages, ["booking 4", "booking 3", "booking 2"])


class BookingEventNotificationTests(TestCase):
    """Booking events reach the log once the transaction commits."""

    def setUp(self) -> None:
        self.hotel = Hotel.objects.create(
            name="Palm",
            slug="palm",
            email="palm@example.com",
            phone="+966110000000",
            city="Riyadh",
            country="Saudi Arabia",
        )
        self.room = Room.objects.create(hotel=self.hotel, room_number="101", price_per_night=Decimal("300"))
        self.guest = Guest.objects.create(
            hotel=self.hotel,
            first_name="Sara",
            last_name="Al-Harbi",
            phone="+966500000000",
            nationality="Saudi",
            id_number="1000000001",
        )
        self.principal = Principal.build("user-1", "receptionist", self.hotel.id)
        self.service = BookingService()

    def _create(self):
        return self.service.create_booking(
            self.principal,
            room_id=self.room.id,
            guest_id=self.guest.id,
            check_in_date=date(2026, 11, 1),
            check_out_date=date(2026, 11, 3),
        )

    def test_new_booking_is_logged_after_commit(self) -> None:
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            booking = self._create()

        self.assertEqual(len(callbacks), 1)
        notification = self.hotel.notifications.get()
        self.assertEqual(notification.type, HotelNotification.Type.BOOKING_NEW)
        self.assertIn(booking.booking_number, notification.message)
        self.assertIn("Sara Al-Harbi", notification.message)

    def test_nothing_is_logged_without_a_commit(self) -> None:
        self._create()

        self.assertFalse(HotelNotification.objects.exists())

    def test_cancellation_and_payment_are_logged(self) -> None:
        booking = self._create()

        with self.captureOnCommitCallbacks(execute=True):
            self.service.apply_payment_update(
                self.principal, booking.id, PaymentPatch(add_payment=NewPayment("100", "cash")),
            )
            self.service.transition_status(self.principal, booking.id, "cancelled", reason="flight cancelled")

        types = set(self.hotel.notifications.values_list("type", flat=True))
        self.assertEqual(types, {"payment_received", "booking_cancelled"})
        cancelled = self.hotel.notifications.get(type=HotelNotification.Type.BOOKING_CANCELLED)
        self.assertTrue(cancelled.message.endswith(": flight cancelled"))

    def test_disabled_hotel_flag_keeps_the_log_empty(self) -> None:
        Hotel.objects.filter(pk=self.hotel.pk).update(notify_new_booking=False)

        with self.captureOnCommitCallbacks(execute=True):
            self._create()

        self.assertFalse(HotelNotification.objects.exists())
