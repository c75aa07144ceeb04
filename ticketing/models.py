"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models
from django.db.models import F, Q


class Event(models.Model):
    """Persistence model for the event. A single row is expected."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=255)
    starts_at = models.DateTimeField()
    ends_at = models.DateTimeField()
    payment_code = models.CharField(max_length=64)
    payment_instructions = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return self.name


class TicketTier(models.Model):
    """Persistence model for ticket tiers.

    ``sold`` is written only through the inventory ledger.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    features = models.JSONField(default=list, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    discount_price = models.DecimalField(
        max_digits=10, decimal_places=2, blank=True, null=True
    )
    discount_ends_at = models.DateTimeField(blank=True, null=True)
    capacity = models.PositiveIntegerField(default=100)
    sold = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["price", "name"]
        indexes = [
            models.Index(fields=["is_active"], name="ticket_tier_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(sold__lte=F("capacity")),
                name="ticket_tier_sold_within_capacity",
            ),
            models.CheckConstraint(
                condition=Q(discount_price__isnull=True) | Q(discount_price__lte=F("price")),
                name="ticket_tier_discount_not_above_price",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} - {self.price}"


class Booking(models.Model):
    """Persistence model for bookings.

    ``status`` and ``unit_price`` are written only through the booking store's
    conditional transition.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        REJECTED = "rejected", "Rejected"
        CANCELLED = "cancelled", "Cancelled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    full_name = models.CharField(max_length=255)
    email = models.EmailField()
    phone_number = models.CharField(max_length=32)
    student_level = models.CharField(max_length=100, blank=True)
    trade = models.CharField(max_length=100, blank=True)
    tier = models.ForeignKey(
        TicketTier, on_delete=models.PROTECT, related_name="bookings"
    )
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(
        max_digits=10, decimal_places=2, blank=True, null=True
    )
    payment_reference = models.CharField(max_length=128)
    payment_proof_url = models.CharField(max_length=500)
    status = models.CharField(
        max_length=16, choices=Status.choices, default=Status.PENDING
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="booking_created_idx"),
            models.Index(fields=["tier", "status"], name="booking_tier_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name="booking_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.full_name} - {self.tier_id} ({self.status})"
