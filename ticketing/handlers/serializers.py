"""Serializers for request input and domain model responses.

Input serializers only check shape; domain rules are applied when the
validated data is turned into domain types.
"""

from decimal import Decimal

from rest_framework import serializers

from ticketing.domain import Availability, Booking, BookingStatus, BookingSummary, Event
from ticketing.services import TierQuote


class EventSerializer(serializers.Serializer):
    """Serializer for Event domain model."""

    def to_representation(self, event: Event) -> dict:
        return {
            "id": str(event.id),
            "name": event.name,
            "description": event.description,
            "location": event.location,
            "starts_at": event.starts_at.isoformat(),
            "ends_at": event.ends_at.isoformat(),
            "payment_code": event.payment_code,
            "payment_instructions": event.payment_instructions,
        }


class AvailabilitySerializer(serializers.Serializer):
    def to_representation(self, availability: Availability) -> dict:
        return {
            "capacity": availability.capacity,
            "sold": availability.sold,
            "remaining": availability.remaining,
        }


class TierSerializer(serializers.Serializer):
    """Serializer for a priced TicketTier."""

    def to_representation(self, quote: TierQuote) -> dict:
        tier = quote.tier
        return {
            "id": str(tier.id),
            "name": tier.name,
            "description": tier.description,
            "features": list(tier.features),
            "price": str(tier.price) if tier.price else None,
            "discount_price": str(tier.discount_price) if tier.discount_price else None,
            "discount_ends_at": tier.discount_ends_at.isoformat() if tier.discount_ends_at else None,
            "current_price": str(quote.price),
            "discount_active": quote.discount_active,
            "is_active": tier.is_active,
            "sold_out": quote.availability.remaining == 0,
            **AvailabilitySerializer(quote.availability).data,
        }


class BookingSerializer(serializers.Serializer):
    """Serializer for Booking domain model."""

    def to_representation(self, booking: Booking) -> dict:
        total = booking.total_amount
        return {
            "id": str(booking.id),
            "full_name": booking.buyer.full_name,
            "email": booking.buyer.email,
            "phone_number": booking.buyer.phone_number,
            "student_level": booking.buyer.student_level,
            "trade": booking.buyer.trade,
            "tier": {"id": str(booking.tier_id), "name": booking.tier_name},
            "quantity": booking.quantity.value,
            "unit_price": str(booking.unit_price) if booking.unit_price else None,
            "total_amount": str(total) if total else None,
            "payment_reference": booking.payment_reference,
            "payment_proof_url": booking.payment_proof_url,
            "status": booking.status.value,
            "created_at": booking.created_at.isoformat(),
            "updated_at": booking.updated_at.isoformat(),
        }


class BookingSummarySerializer(serializers.Serializer):
    def to_representation(self, summary: BookingSummary) -> dict:
        return {
            "total_bookings": summary.total,
            "total_revenue": str(summary.revenue),
            **{
                f"{status.value}_bookings": summary.count(status)
                for status in BookingStatus
            },
        }


class CreateBookingSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    phone_number = serializers.CharField(max_length=32)
    student_level = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    trade = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    tier_id = serializers.CharField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    payment_reference = serializers.CharField(max_length=128)
    payment_proof_url = serializers.CharField(max_length=500)


class SetStatusSerializer(serializers.Serializer):
    status = serializers.CharField()


class CreateTierSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    features = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0"))
    discount_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True, default=None
    )
    discount_ends_at = serializers.DateTimeField(required=False, allow_null=True, default=None)
    capacity = serializers.IntegerField(min_value=1, default=100)
    is_active = serializers.BooleanField(required=False, default=True)


class ResizeTierSerializer(serializers.Serializer):
    capacity = serializers.IntegerField(min_value=1)


class PaymentProofSerializer(serializers.Serializer):
    file = serializers.FileField()


class UpdateTierSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    features = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0"))
    discount_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True, default=None
    )
    discount_ends_at = serializers.DateTimeField(required=False, allow_null=True, default=None)
    is_active = serializers.BooleanField(required=False, default=True)


class UpdateEventSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    location = serializers.CharField(max_length=255)
    starts_at = serializers.DateTimeField()
    ends_at = serializers.DateTimeField()
    payment_code = serializers.CharField(max_length=64)
    payment_instructions = serializers.CharField(required=False, allow_blank=True, default="")


class TierSalesSerializer(serializers.Serializer):
    """Ledger sold count next to the units held by confirmed bookings."""

    def to_representation(self, row: tuple) -> dict:
        quote, confirmed_quantity = row
        return {
            "id": str(quote.tier.id),
            "name": quote.tier.name,
            "sold": quote.availability.sold,
            "confirmed_quantity": confirmed_quantity,
        }
