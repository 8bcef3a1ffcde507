"""Room models."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Room(models.Model):
    """A bookable room. Its hotel never changes after creation."""

    class RoomType(models.TextChoices):
        SINGLE = "single", _("Single")
        DOUBLE = "double", _("Double")
        TWIN = "twin", _("Twin")
        SUITE = "suite", _("Suite")
        DELUXE = "deluxe", _("Deluxe")
        PRESIDENTIAL = "presidential", _("Presidential")

    class Status(models.TextChoices):
        AVAILABLE = "available", _("Available")
        OCCUPIED = "occupied", _("Occupied")
        RESERVED = "reserved", _("Reserved")
        MAINTENANCE = "maintenance", _("Maintenance")
        CLEANING = "cleaning", _("Cleaning")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    hotel = models.ForeignKey("hotels.Hotel", on_delete=models.CASCADE, related_name="rooms")
    room_number = models.CharField(max_length=20)
    floor = models.PositiveSmallIntegerField(default=0)
    room_type = models.CharField(max_length=20, choices=RoomType.choices, default=RoomType.DOUBLE)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.AVAILABLE)
    price_per_night = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    capacity_adults = models.PositiveSmallIntegerField(default=2, validators=[MinValueValidator(1)])
    capacity_children = models.PositiveSmallIntegerField(default=0)
    description = models.CharField(max_length=500, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Room")
        verbose_name_plural = _("Rooms")
        ordering = ["hotel", "room_number"]
        constraints = [
            models.UniqueConstraint(fields=["hotel", "room_number"], name="room_number_unique_per_hotel"),
            models.CheckConstraint(
                condition=models.Q(price_per_night__gte=0),
                name="room_price_not_negative",
            ),
        ]
        indexes = [
            models.Index(fields=["hotel", "status"]),
            models.Index(fields=["hotel", "room_type"]),
        ]

    def __str__(self) -> str:
        return f"Room {self.room_number}"
