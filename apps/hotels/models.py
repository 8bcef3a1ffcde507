"""Hotel (tenant) models."""

from __future__ import annotations

import uuid
from datetime import time
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.timezone import now  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Hotel(models.Model):
    """An independent hotel organization; every other record belongs to one."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=120, unique=True)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=30)
    city = models.CharField(max_length=100)
    country = models.CharField(max_length=100)

    # Settings used by the booking core
    currency = models.CharField(max_length=3, default="SAR")
    timezone = models.CharField(max_length=64, default="Asia/Riyadh")
    check_in_time = models.TimeField(default=time(14, 0))
    check_out_time = models.TimeField(default=time(12, 0))
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("15.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("30"))],
        help_text=_("Tax rate in percent applied to the booking subtotal."),
    )
    notify_new_booking = models.BooleanField(default=True)
    notify_cancelled_booking = models.BooleanField(default=True)
    notify_payment_received = models.BooleanField(default=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Hotel")
        verbose_name_plural = _("Hotels")
        ordering = ["name"]
        indexes = [models.Index(fields=["is_active"])]

    def __str__(self) -> str:
        return self.name


class HotelNotification(models.Model):
    """Short in-app notification shown on the hotel dashboard."""

    class Type(models.TextChoices):
        BOOKING_NEW = "booking_new", _("New booking")
        BOOKING_CANCELLED = "booking_cancelled", _("Booking cancelled")
        PAYMENT_RECEIVED = "payment_received", _("Payment received")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    hotel = models.ForeignKey(Hotel, on_delete=models.CASCADE, related_name="notifications")
    type = models.CharField(max_length=32, choices=Type.choices)
    message = models.CharField(max_length=255)
    created_at = models.DateTimeField(default=now)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["hotel", "created_at"])]

    def __str__(self) -> str:
        return f"{self.get_type_display()}: {self.message}"
