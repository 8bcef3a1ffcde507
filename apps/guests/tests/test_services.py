"""Tests for guest registration."""

from __future__ import annotations

from django.test import TestCase

from apps.guests.models import Guest
from apps.guests.services import register_guest
from apps.hotels.models import Hotel
from apps.users.principal import Principal
from shared.domain.errors import Forbidden, ValidationError

GUEST = {
    "first_name": " Sara ",
    "last_name": "Al-Harbi",
    "phone": "+966500000000",
    "nationality": "Saudi",
    "id_number": "1000000001",
}


class RegisterGuestTests(TestCase):
    def setUp(self) -> None:
        self.hotel = Hotel.objects.create(
            name="Palm",
            slug="palm",
            email="palm@example.com",
            phone="+966110000000",
            city="Riyadh",
            country="Saudi Arabia",
        )
        self.receptionist = Principal.build("user-1", "receptionist", self.hotel.id)

    def test_guest_is_stamped_with_the_callers_hotel(self) -> None:
        guest = register_guest(self.receptionist, {**GUEST, "hotel": "ignored"})

        self.assertEqual(guest.hotel_id, self.hotel.id)
        self.assertEqual(guest.full_name, "Sara Al-Harbi")
        self.assertTrue(Guest.objects.filter(pk=guest.pk).exists())

    def test_missing_fields_are_reported(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            register_guest(self.receptionist, {"first_name": "Sara"})

        self.assertIn("last_name", ctx.exception.details["fields"])
        self.assertFalse(Guest.objects.exists())

    def test_invalid_email(self) -> None:
        with self.assertRaises(ValidationError):
            register_guest(self.receptionist, {**GUEST, "email": "not-an-email"})

    def test_needs_guest_create(self) -> None:
        with self.assertRaises(Forbidden):
            register_guest(Principal.build("h-1", "housekeeping", self.hotel.id), GUEST)

    def test_inactive_hotel_is_closed_to_its_staff(self) -> None:
        Hotel.objects.filter(pk=self.hotel.pk).update(is_active=False)

        with self.assertRaises(Forbidden):
            register_guest(self.receptionist, GUEST)
        self.assertFalse(Guest.objects.exists())

        guest = register_guest(Principal.build("root", "super_admin"), GUEST, hotel_id=self.hotel.id)
        self.assertEqual(guest.hotel_id, self.hotel.id)
