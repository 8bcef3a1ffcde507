"""Booking persistence models.

Rows are written only through ``apps.bookings.infrastructure.repositories``;
the domain aggregate in ``apps.bookings.domain.entities`` carries the rules.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Booking(models.Model):
    """Reservation of one room by one guest."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CHECKED_IN = "checked_in", _("Checked in")
        CHECKED_OUT = "checked_out", _("Checked out")
        CANCELLED = "cancelled", _("Cancelled")
        NO_SHOW = "no_show", _("No show")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PARTIAL = "partial", _("Partially paid")
        PAID = "paid", _("Paid")
        REFUNDED = "refunded", _("Refunded")

    class Source(models.TextChoices):
        DIRECT = "direct", _("Direct")
        WEBSITE = "website", _("Website")
        PHONE = "phone", _("Phone")
        WALKIN = "walkin", _("Walk-in")
        OTA = "ota", _("Online travel agency")

    ACTIVE_STATUSES = (Status.PENDING, Status.CONFIRMED, Status.CHECKED_IN)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    hotel = models.ForeignKey("hotels.Hotel", on_delete=models.CASCADE, related_name="bookings")
    booking_number = models.CharField(max_length=16)
    room = models.ForeignKey("rooms.Room", on_delete=models.PROTECT, related_name="bookings")
    guest = models.ForeignKey("guests.Guest", on_delete=models.PROTECT, related_name="bookings")

    check_in = models.DateTimeField()
    check_out = models.DateTimeField()
    actual_check_in = models.DateTimeField(null=True, blank=True)
    actual_check_out = models.DateTimeField(null=True, blank=True)
    adults = models.PositiveSmallIntegerField(default=1)
    children = models.PositiveSmallIntegerField(default=0)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    source = models.CharField(max_length=20, choices=Source.choices, default=Source.DIRECT)

    # Pricing snapshot
    room_rate = models.DecimalField(max_digits=10, decimal_places=2)
    nights = models.PositiveSmallIntegerField()
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    taxes = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=12, decimal_places=2)

    # Payment sub-record
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    special_requests = models.TextField(max_length=500, blank=True)
    notes = models.TextField(max_length=1000, blank=True)
    created_by = models.CharField(max_length=64)
    last_modified_by = models.CharField(max_length=64, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)

    version = models.PositiveIntegerField(
        default=0,
        help_text=_("Incremented on every write; updates are conditional on it."),
    )
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="booking_check_out_after_check_in",
            ),
            models.CheckConstraint(
                condition=models.Q(paid_amount__gte=0),
                name="booking_paid_amount_not_negative",
            ),
            models.UniqueConstraint(
                fields=["hotel", "booking_number"],
                name="booking_number_unique_per_hotel",
            ),
        ]
        indexes = [
            models.Index(fields=["hotel", "status"]),
            models.Index(fields=["hotel", "room", "check_in", "check_out"]),
            models.Index(fields=["hotel", "guest"]),
            models.Index(fields=["hotel", "payment_status"]),
            models.Index(fields=["hotel", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_number}"


class PaymentTransaction(models.Model):
    """Ledger entry. Inserted once, never updated or deleted."""

    class Method(models.TextChoices):
        CASH = "cash", _("Cash")
        CARD = "card", _("Card")
        BANK_TRANSFER = "bank_transfer", _("Bank transfer")
        ONLINE = "online", _("Online")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="transactions")
    sequence = models.PositiveIntegerField()
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(max_length=20, choices=Method.choices)
    reference = models.CharField(max_length=100, blank=True)
    recorded_at = models.DateTimeField()

    class Meta:
        ordering = ["booking", "sequence"]
        constraints = [
            models.UniqueConstraint(fields=["booking", "sequence"], name="transaction_sequence_unique"),
            models.CheckConstraint(condition=models.Q(amount__gt=0), name="transaction_amount_positive"),
        ]

    def __str__(self) -> str:
        return f"{self.amount} via {self.method}"
