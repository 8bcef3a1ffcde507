"""Shared pytest fixtures.

The in-memory fixtures need no database; Django-backed tests create their
own rows under ``@pytest.mark.django_db``.
"""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from apps.audit.recorder import AuditRecorder, InMemoryAuditSink
from apps.bookings.domain.entities import (
    Booking,
    BookingStatus,
    GuestCount,
    GuestInfo,
    HotelInfo,
    PricingSnapshot,
    RoomInfo,
)
from apps.bookings.infrastructure.memory import InMemoryStore
from apps.bookings.services import BookingService
from apps.users.permissions import Role
from apps.users.principal import Principal
from shared.domain.value_objects import StayPeriod

RIYADH = ZoneInfo("Asia/Riyadh")


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def hotel(store):
    return store.add_hotel(HotelInfo(id=uuid4(), name="Palm Hotel"))


@pytest.fixture
def other_hotel(store):
    return store.add_hotel(HotelInfo(id=uuid4(), name="Dune Hotel"))


@pytest.fixture
def room(store, hotel):
    return store.add_room(RoomInfo(
        id=uuid4(),
        hotel_id=hotel.id,
        room_number="101",
        price_per_night=Decimal("300"),
        capacity_adults=2,
        capacity_children=1,
    ))


@pytest.fixture
def guest(store, hotel):
    return store.add_guest(GuestInfo(id=uuid4(), hotel_id=hotel.id, full_name="Sara Al-Harbi"))


@pytest.fixture
def audit_sink():
    return InMemoryAuditSink()


@pytest.fixture
def service(store, audit_sink):
    return BookingService.in_memory(store, audit=AuditRecorder(audit_sink))


@pytest.fixture
def make_principal(hotel):
    def factory(role=Role.RECEPTIONIST, hotel_id="default", permissions=(), user_id="user-1"):
        if hotel_id == "default":
            hotel_id = None if role is Role.SUPER_ADMIN else hotel.id
        return Principal(
            user_id=user_id,
            role=role,
            hotel_id=hotel_id,
            custom_permissions=frozenset(p.value if hasattr(p, "value") else p for p in permissions),
        )

    return factory


@pytest.fixture
def receptionist(make_principal):
    return make_principal(Role.RECEPTIONIST)


@pytest.fixture
def admin(make_principal):
    return make_principal(Role.ADMIN, user_id="admin-1")


@pytest.fixture
def super_admin(make_principal):
    return make_principal(Role.SUPER_ADMIN, user_id="root")


@pytest.fixture
def make_booking(hotel, room, guest):
    """Domain booking for 300/night, two nights, 15% tax (total 690)."""

    def factory(status=BookingStatus.PENDING, check_in=None, check_out=None, total=Decimal("690.00"), **kwargs):
        period = StayPeriod(
            check_in or datetime(2026, 11, 1, 14, 0, tzinfo=RIYADH),
            check_out or datetime(2026, 11, 3, 12, 0, tzinfo=RIYADH),
        )
        kwargs.setdefault("room_id", room.id)
        return Booking(
            hotel_id=hotel.id,
            booking_number="BK26110001",
            guest_id=guest.id,
            period=period,
            guests=GuestCount(adults=2),
            pricing=PricingSnapshot(
                room_rate=Decimal("300"),
                nights=2,
                subtotal=Decimal("600.00"),
                taxes=Decimal("90.00"),
                discount=Decimal("0.00"),
                total=total,
            ),
            status=status,
            created_by="user-1",
            **kwargs,
        )

    return factory
