"""Tests for room registration."""

from __future__ import annotations

from decimal import Decimal

from django.test import TestCase

from apps.hotels.models import Hotel
from apps.rooms.models import Room
from apps.rooms.services import create_room
from apps.users.principal import Principal
from shared.domain.errors import Conflict, Forbidden, ValidationError


def make_hotel(slug: str, **kwargs) -> Hotel:
    return Hotel.objects.create(
        name=slug.title(),
        slug=slug,
        email=f"{slug}@example.com",
        phone="+966110000000",
        city="Riyadh",
        country="Saudi Arabia",
        **kwargs,
    )


class CreateRoomTests(TestCase):
    def setUp(self) -> None:
        self.hotel = make_hotel("palm")
        self.admin = Principal.build("admin-1", "admin", self.hotel.id)

    def test_room_is_created_in_the_callers_hotel(self) -> None:
        other = make_hotel("dune")

        room = create_room(self.admin, {
            "room_number": " 101 ",
            "price_per_night": "300",
            "capacity_adults": 2,
            "hotel": other.id,
        })

        self.assertEqual(room.hotel_id, self.hotel.id)
        self.assertEqual(room.room_number, "101")
        self.assertEqual(Room.objects.get(pk=room.pk).price_per_night, Decimal("300.00"))

    def test_duplicate_number_in_the_same_hotel_conflicts(self) -> None:
        create_room(self.admin, {"room_number": "101", "price_per_night": 300})

        with self.assertRaises(Conflict):
            create_room(self.admin, {"room_number": "101", "price_per_night": 300})

    def test_same_number_in_another_hotel_is_fine(self) -> None:
        other = make_hotel("dune")
        create_room(self.admin, {"room_number": "101", "price_per_night": 300})

        room = create_room(Principal.build("admin-2", "admin", other.id), {"room_number": "101", "price_per_night": 200})

        self.assertEqual(room.hotel_id, other.id)

    def test_invalid_rooms_are_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            create_room(self.admin, {"room_number": "  ", "price_per_night": 300})
        with self.assertRaises(ValidationError):
            create_room(self.admin, {"room_number": "102", "price_per_night": -1})
        with self.assertRaises(ValidationError):
            create_room(self.admin, {"room_number": "103", "price_per_night": 100, "room_type": "castle"})
        self.assertFalse(Room.objects.exists())

    def test_permission_and_scope(self) -> None:
        with self.assertRaises(Forbidden):
            create_room(Principal.build("r-1", "receptionist", self.hotel.id), {"room_number": "1"})
        with self.assertRaises(Forbidden):
            create_room(Principal.build("root", "super_admin"), {"room_number": "1"})

    def test_super_admin_names_the_hotel(self) -> None:
        room = create_room(
            Principal.build("root", "super_admin"),
            {"room_number": "900", "price_per_night": 1000},
            hotel_id=self.hotel.id,
        )

        self.assertEqual(room.hotel_id, self.hotel.id)

    def test_inactive_hotel_is_closed_to_its_staff(self) -> None:
        closed = make_hotel("closed", is_active=False)

        with self.assertRaises(Forbidden):
            create_room(Principal.build("admin-3", "admin", closed.id), {"room_number": "1", "price_per_night": 100})
        self.assertFalse(Room.objects.filter(hotel=closed).exists())

        room = create_room(
            Principal.build("root", "super_admin"),
            {"room_number": "1", "price_per_night": 100},
            hotel_id=closed.id,
        )
        self.assertEqual(room.hotel_id, closed.id)

    def test_sub_cent_price_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            create_room(self.admin, {"room_number": "104", "price_per_night": "99.995"})
        self.assertFalse(Room.objects.exists())
