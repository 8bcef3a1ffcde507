"""Django repositories for the booking core.

Each repository maps ORM rows to the frozen domain views in
``apps.bookings.domain.entities`` and back. Every query goes through a
``TenantScope``; a row outside the scope is reported as ``NotFound``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List
from uuid import UUID

from django.db import DatabaseError, IntegrityError, transaction  # type: ignore
from django.db.models import F, Max, Q  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from apps.bookings.domain.entities import (
    ACTIVE_STATUSES,
    Booking,
    BookingSource,
    BookingStatus,
    GuestCount,
    GuestInfo,
    HotelInfo,
    PaymentLedger,
    PaymentMethod,
    PaymentStatus,
    PaymentTransaction,
    PricingSnapshot,
    RoomInfo,
)
from apps.bookings.models import Booking as BookingModel
from apps.bookings.models import PaymentTransaction as TransactionModel
from apps.guests.models import Guest
from apps.hotels.models import Hotel
from apps.hotels.scope import TenantScope
from apps.rooms.models import Room
from shared.application.uow import DjangoUnitOfWork
from shared.domain.errors import ConcurrentWriteError, Conflict, InternalError, NotFound
from shared.domain.value_objects import StayPeriod

logger = logging.getLogger(__name__)


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def hotel_to_info(hotel: Hotel) -> HotelInfo:
    return HotelInfo(
        id=hotel.id,
        name=hotel.name,
        is_active=hotel.is_active,
        timezone=hotel.timezone,
        check_in_time=hotel.check_in_time,
        check_out_time=hotel.check_out_time,
        tax_rate=hotel.tax_rate,
        currency=hotel.currency,
        notify_new_booking=hotel.notify_new_booking,
        notify_cancelled_booking=hotel.notify_cancelled_booking,
        notify_payment_received=hotel.notify_payment_received,
    )


def room_to_info(room: Room) -> RoomInfo:
    return RoomInfo(
        id=room.id,
        hotel_id=room.hotel_id,
        room_number=room.room_number,
        price_per_night=room.price_per_night,
        capacity_adults=room.capacity_adults,
        capacity_children=room.capacity_children,
        is_active=room.is_active,
    )


def guest_to_info(guest: Guest) -> GuestInfo:
    return GuestInfo(id=guest.id, hotel_id=guest.hotel_id, full_name=guest.full_name)


class DjangoHotelRepository:
    def get(self, hotel_id: UUID) -> HotelInfo:
        try:
            return hotel_to_info(Hotel.objects.get(pk=hotel_id))
        except Hotel.DoesNotExist:
            raise NotFound("Hotel not found", hotel_id=str(hotel_id))


class DjangoRoomRepository:
    def get(self, scope: TenantScope, room_id: UUID, *, lock: bool = False) -> RoomInfo:
        """
        Load a room inside ``scope``.

        With ``lock`` the row stays locked until the surrounding transaction
        ends, which serializes booking creation per room.
        """
        queryset = Room.objects.filter(**scope.filter(pk=room_id))
        if lock:
            queryset = _lock_queryset_if_possible(queryset)
        room = queryset.first()
        if room is None:
            raise NotFound("Room not found", room_id=str(room_id))
        return room_to_info(room)


class DjangoGuestRepository:
    def get(self, scope: TenantScope, guest_id: UUID) -> GuestInfo:
        guest = Guest.objects.filter(**scope.filter(pk=guest_id)).first()
        if guest is None:
            raise NotFound("Guest not found", guest_id=str(guest_id))
        return guest_to_info(guest)


def _opt(value: str) -> str | None:
    return value or None


def booking_to_domain(row: BookingModel) -> Booking:
    transactions = [
        PaymentTransaction(
            sequence=t.sequence,
            amount=t.amount,
            method=PaymentMethod(t.method),
            recorded_at=t.recorded_at,
            reference=_opt(t.reference),
        )
        for t in row.transactions.all()
    ]
    return Booking(
        id=row.id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        hotel_id=row.hotel_id,
        booking_number=row.booking_number,
        room_id=row.room_id,
        guest_id=row.guest_id,
        period=StayPeriod(row.check_in, row.check_out),
        guests=GuestCount(adults=row.adults, children=row.children),
        pricing=PricingSnapshot(
            room_rate=row.room_rate,
            nights=row.nights,
            subtotal=row.subtotal,
            taxes=row.taxes,
            discount=row.discount,
            total=row.total,
        ),
        payment=PaymentLedger(
            status=PaymentStatus(row.payment_status),
            paid_amount=row.paid_amount,
            transactions=transactions,
        ),
        status=BookingStatus(row.status),
        source=BookingSource(row.source),
        special_requests=row.special_requests,
        notes=row.notes,
        created_by=row.created_by,
        last_modified_by=_opt(row.last_modified_by),
        actual_check_in=row.actual_check_in,
        actual_check_out=row.actual_check_out,
        cancelled_at=row.cancelled_at,
        cancellation_reason=_opt(row.cancellation_reason),
        version=row.version,
    )


def _mutable_fields(booking: Booking) -> dict:
    """Columns that may change after creation; pricing is not among them."""
    return {
        'room_id': booking.room_id,
        'check_in': booking.check_in,
        'check_out': booking.check_out,
        'status': booking.status.value,
        'payment_status': booking.payment.status.value,
        'paid_amount': booking.payment.paid_amount,
        'special_requests': booking.special_requests,
        'notes': booking.notes,
        'last_modified_by': booking.last_modified_by or '',
        'actual_check_in': booking.actual_check_in,
        'actual_check_out': booking.actual_check_out,
        'cancelled_at': booking.cancelled_at,
        'cancellation_reason': booking.cancellation_reason or '',
        'updated_at': booking.updated_at,
    }


class DjangoBookingRepository:
    """
    Booking persistence

    ``save`` is a version-conditional update: it only succeeds if nobody
    wrote the row since it was loaded, otherwise ConcurrentWriteError is
    raised and the caller reloads.
    """

    def _queryset(self, scope: TenantScope, **lookups):
        return BookingModel.objects.filter(**scope.filter(**lookups)).prefetch_related('transactions')

    def get(self, scope: TenantScope, booking_id: UUID) -> Booking:
        row = self._queryset(scope, pk=booking_id).first()
        if row is None:
            raise NotFound("Booking not found", booking_id=str(booking_id))
        return booking_to_domain(row)

    def find_blocking(
        self,
        scope: TenantScope,
        room_id: UUID,
        period: StayPeriod,
        exclude_booking_id: UUID | None = None,
    ) -> List[Booking]:
        """Active bookings of ``room_id`` overlapping ``period`` (half-open)."""
        queryset = self._queryset(
            scope,
            room_id=room_id,
            status__in=[s.value for s in ACTIVE_STATUSES],
        ).filter(Q(check_in__lt=period.check_out) & Q(check_out__gt=period.check_in))
        if exclude_booking_id is not None:
            queryset = queryset.exclude(pk=exclude_booking_id)
        return [booking_to_domain(row) for row in queryset]

    def list(
        self,
        scope: TenantScope,
        *,
        status: BookingStatus | None = None,
        payment_status: PaymentStatus | None = None,
        starts_before: datetime | None = None,
        ends_after: datetime | None = None,
    ) -> List[Booking]:
        lookups = {}
        if status is not None:
            lookups['status'] = status.value
        if payment_status is not None:
            lookups['payment_status'] = payment_status.value
        if starts_before is not None:
            lookups['check_in__lt'] = starts_before
        if ends_after is not None:
            lookups['check_out__gt'] = ends_after
        queryset = self._queryset(scope, **lookups).order_by('check_in', 'booking_number')
        return [booking_to_domain(row) for row in queryset]

    def booking_number_exists(self, hotel_id: UUID, booking_number: str) -> bool:
        return BookingModel.objects.filter(hotel_id=hotel_id, booking_number=booking_number).exists()

    def add(self, booking: Booking):
        try:
            BookingModel.objects.create(
                id=booking.id,
                hotel_id=booking.hotel_id,
                booking_number=booking.booking_number,
                guest_id=booking.guest_id,
                adults=booking.guests.adults,
                children=booking.guests.children,
                source=booking.source.value,
                room_rate=booking.pricing.room_rate,
                nights=booking.pricing.nights,
                subtotal=booking.pricing.subtotal,
                taxes=booking.pricing.taxes,
                discount=booking.pricing.discount,
                total=booking.pricing.total,
                created_by=booking.created_by,
                version=booking.version,
                created_at=booking.created_at,
                **_mutable_fields(booking),
            )
            self._insert_transactions(booking, after_sequence=0)
        except IntegrityError as e:
            raise Conflict("Booking could not be stored", reason=str(e))
        except DatabaseError as e:
            logger.exception("Failed to insert booking %s", booking.id)
            raise InternalError("Failed to store booking") from e

    def save(self, booking: Booking):
        """Write changed fields and new ledger entries, bumping ``version``."""
        try:
            updated = BookingModel.objects.filter(
                pk=booking.id,
                hotel_id=booking.hotel_id,
                version=booking.version,
            ).update(version=F('version') + 1, **_mutable_fields(booking))
            if not updated:
                raise ConcurrentWriteError(
                    "Booking was modified concurrently",
                    booking_id=str(booking.id),
                    version=booking.version,
                )
            persisted = TransactionModel.objects.filter(booking_id=booking.id).aggregate(
                last=Max('sequence')
            )['last'] or 0
            self._insert_transactions(booking, after_sequence=persisted)
        except IntegrityError as e:
            raise Conflict("Booking could not be stored", reason=str(e))
        except DatabaseError as e:
            logger.exception("Failed to update booking %s", booking.id)
            raise InternalError("Failed to store booking") from e
        booking.version += 1

    def _insert_transactions(self, booking: Booking, after_sequence: int):
        new_rows = [
            TransactionModel(
                booking_id=booking.id,
                sequence=t.sequence,
                amount=t.amount,
                method=t.method.value,
                reference=t.reference or '',
                recorded_at=t.recorded_at,
            )
            for t in booking.payment.transactions
            if t.sequence > after_sequence
        ]
        if new_rows:
            TransactionModel.objects.bulk_create(new_rows)


class BookingUnitOfWork(DjangoUnitOfWork):
    """Django unit of work exposing the booking core repositories."""

    def __init__(self, bus=None):
        super().__init__(bus)
        self.hotels = DjangoHotelRepository()
        self.rooms = DjangoRoomRepository()
        self.guests = DjangoGuestRepository()
        self.bookings = DjangoBookingRepository()
