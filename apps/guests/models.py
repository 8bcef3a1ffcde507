"""Guest models."""

from __future__ import annotations

import uuid

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Guest(models.Model):
    """Guest profile kept per hotel; the same person at two hotels is two guests."""

    class IdType(models.TextChoices):
        PASSPORT = "passport", _("Passport")
        NATIONAL_ID = "national_id", _("National ID")
        DRIVER_LICENSE = "driver_license", _("Driver license")

    class GuestType(models.TextChoices):
        INDIVIDUAL = "individual", _("Individual")
        CORPORATE = "corporate", _("Corporate")
        VIP = "vip", _("VIP")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    hotel = models.ForeignKey("hotels.Hotel", on_delete=models.CASCADE, related_name="guests")
    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30)
    nationality = models.CharField(max_length=60)
    id_type = models.CharField(max_length=20, choices=IdType.choices, default=IdType.PASSPORT)
    id_number = models.CharField(max_length=50)
    guest_type = models.CharField(max_length=20, choices=GuestType.choices, default=GuestType.INDIVIDUAL)
    company_name = models.CharField(max_length=120, blank=True)
    notes = models.TextField(max_length=1000, blank=True)
    is_blacklisted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Guest")
        verbose_name_plural = _("Guests")
        ordering = ["last_name", "first_name"]
        indexes = [
            models.Index(fields=["hotel", "id_number"]),
            models.Index(fields=["hotel", "phone"]),
            models.Index(fields=["hotel", "last_name", "first_name"]),
        ]

    def __str__(self) -> str:
        return self.full_name

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
