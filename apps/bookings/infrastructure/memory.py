"""In-memory persistence with the same semantics as the Django repositories.

Used by the domain and application tests and by anything that needs the
booking core without a database. One ``InMemoryStore`` plays the role of
the database; each ``InMemoryUnitOfWork`` holds the store lock for its
whole lifetime, so units of work are serializable, and stages its writes
until commit.
"""

from __future__ import annotations

import copy
import threading
from datetime import datetime
from typing import Dict, List
from uuid import UUID

from apps.bookings.domain.availability import conflicting_bookings
from apps.bookings.domain.entities import (
    Booking,
    BookingStatus,
    GuestInfo,
    HotelInfo,
    PaymentStatus,
    RoomInfo,
)
from apps.hotels.scope import TenantScope
from shared.application.uow import AbstractUnitOfWork
from shared.domain.base import DomainEvent
from shared.domain.errors import ConcurrentWriteError, Conflict, NotFound
from shared.domain.value_objects import StayPeriod


class InMemoryStore:
    """Committed state shared by every unit of work created for it."""

    def __init__(self):
        self.lock = threading.RLock()
        self.hotels: Dict[UUID, HotelInfo] = {}
        self.rooms: Dict[UUID, RoomInfo] = {}
        self.guests: Dict[UUID, GuestInfo] = {}
        self.bookings: Dict[UUID, Booking] = {}

    def add_hotel(self, hotel: HotelInfo) -> HotelInfo:
        with self.lock:
            self.hotels[hotel.id] = hotel
        return hotel

    def add_room(self, room: RoomInfo) -> RoomInfo:
        with self.lock:
            duplicate = any(
                r.hotel_id == room.hotel_id and r.room_number == room.room_number and r.id != room.id
                for r in self.rooms.values()
            )
            if duplicate:
                raise Conflict(f"Room {room.room_number} already exists", room_number=room.room_number)
            self.rooms[room.id] = room
        return room

    def add_guest(self, guest: GuestInfo) -> GuestInfo:
        with self.lock:
            self.guests[guest.id] = guest
        return guest

    def unit_of_work(self, bus=None) -> 'InMemoryUnitOfWork':
        return InMemoryUnitOfWork(self, bus=bus)


def _detached(booking: Booking) -> Booking:
    clone = copy.deepcopy(booking)
    clone.clear_events()
    return clone


def _scoped(scope: TenantScope, obj, missing: str, **details):
    if obj is None or not scope.owns(obj):
        raise NotFound(f"{missing} not found", **details)
    return obj


class InMemoryHotelRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get(self, hotel_id: UUID) -> HotelInfo:
        hotel = self.store.hotels.get(hotel_id)
        if hotel is None:
            raise NotFound("Hotel not found", hotel_id=str(hotel_id))
        return hotel


class InMemoryRoomRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get(self, scope: TenantScope, room_id: UUID, *, lock: bool = False) -> RoomInfo:
        # The unit of work already holds the store lock.
        return _scoped(scope, self.store.rooms.get(room_id), "Room", room_id=str(room_id))


class InMemoryGuestRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get(self, scope: TenantScope, guest_id: UUID) -> GuestInfo:
        return _scoped(scope, self.store.guests.get(guest_id), "Guest", guest_id=str(guest_id))


class InMemoryBookingRepository:
    """
    Booking repository over an ``InMemoryStore``

    Reads see this unit's staged writes first, then committed state.
    """

    def __init__(self, store: InMemoryStore):
        self.store = store
        self.staged: Dict[UUID, Booking] = {}

    def _current(self, booking_id: UUID) -> Booking | None:
        return self.staged.get(booking_id) or self.store.bookings.get(booking_id)

    def _all(self) -> List[Booking]:
        merged = dict(self.store.bookings)
        merged.update(self.staged)
        return list(merged.values())

    def get(self, scope: TenantScope, booking_id: UUID) -> Booking:
        booking = _scoped(scope, self._current(booking_id), "Booking", booking_id=str(booking_id))
        return copy.deepcopy(booking)

    def find_blocking(
        self,
        scope: TenantScope,
        room_id: UUID,
        period: StayPeriod,
        exclude_booking_id: UUID | None = None,
    ) -> List[Booking]:
        candidates = [b for b in self._all() if scope.owns(b) and b.room_id == room_id]
        return [copy.deepcopy(b) for b in conflicting_bookings(candidates, period, exclude_booking_id)]

    def list(
        self,
        scope: TenantScope,
        *,
        status: BookingStatus | None = None,
        payment_status: PaymentStatus | None = None,
        starts_before: datetime | None = None,
        ends_after: datetime | None = None,
    ) -> List[Booking]:
        result = [
            b for b in self._all()
            if scope.owns(b)
            and (status is None or b.status is status)
            and (payment_status is None or b.payment.status is payment_status)
            and (starts_before is None or b.check_in < starts_before)
            and (ends_after is None or b.check_out > ends_after)
        ]
        result.sort(key=lambda b: (b.check_in, b.booking_number))
        return [copy.deepcopy(b) for b in result]

    def booking_number_exists(self, hotel_id: UUID, booking_number: str) -> bool:
        return any(
            b.hotel_id == hotel_id and b.booking_number == booking_number
            for b in self._all()
        )

    def add(self, booking: Booking):
        if self._current(booking.id) is not None:
            raise Conflict("Booking already exists", booking_id=str(booking.id))
        if self.booking_number_exists(booking.hotel_id, booking.booking_number):
            raise Conflict("Booking number already taken", booking_number=booking.booking_number)
        self.staged[booking.id] = _detached(booking)

    def save(self, booking: Booking):
        current = self._current(booking.id)
        if current is None or current.hotel_id != booking.hotel_id or current.version != booking.version:
            raise ConcurrentWriteError(
                "Booking was modified concurrently",
                booking_id=str(booking.id),
                version=booking.version,
            )
        booking.version += 1
        self.staged[booking.id] = _detached(booking)


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """
    Unit of work over an ``InMemoryStore``

    Staged bookings become visible to other units only on commit. Events
    are published once the store lock is released, so subscribers may open
    their own units of work from any thread.
    """

    def __init__(self, store: InMemoryStore, bus=None):
        super().__init__(bus)
        self.store = store
        self.hotels = InMemoryHotelRepository(store)
        self.rooms = InMemoryRoomRepository(store)
        self.guests = InMemoryGuestRepository(store)
        self.bookings = InMemoryBookingRepository(store)
        self._committed: List[DomainEvent] = []

    def __enter__(self):
        self.store.lock.acquire()
        self.bookings.staged.clear()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            super().__exit__(exc_type, exc_val, exc_tb)
        finally:
            self.store.lock.release()
        events, self._committed = self._committed, []
        if events:
            self._publish_events(events)

    def commit(self):
        self.store.bookings.update(self.bookings.staged)
        self.bookings.staged.clear()
        self._committed.extend(self._take_events())

    def rollback(self):
        self.bookings.staged.clear()
        super().rollback()
