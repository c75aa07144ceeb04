"""Django ORM implementation of the stores.

Sold counts and booking statuses are changed with ``QuerySet.update`` calls
whose ``WHERE`` clause carries the precondition, so the database decides
which of two racing requests wins.
"""

from datetime import datetime
from decimal import Decimal

from django.db import connections, transaction
from django.db.models import (
    Count,
    DecimalField,
    Exists,
    ExpressionWrapper,
    F,
    IntegerField,
    OuterRef,
    Sum,
)
from django.db.models.functions import Greatest
from django.utils import timezone

from ticketing import models as orm
from ticketing.domain import (
    Availability,
    Booking,
    BookingId,
    BookingRequest,
    BookingStatus,
    BookingSummary,
    Buyer,
    Capacity,
    Event,
    EventId,
    Money,
    Quantity,
    ReservationResult,
    TicketTier,
    TierId,
)
from ticketing.domain.errors import CapacityBelowSoldError, TierNotFoundError
from ticketing.stores.interfaces import BookingStore, EventStore, InventoryLedger, Persistence


def _money(value: Decimal | None) -> Money | None:
    return None if value is None else Money(value)


def _to_tier(row: orm.TicketTier) -> TicketTier:
    return TicketTier(
        id=TierId(row.id),
        name=row.name,
        description=row.description,
        price=_money(row.price),
        discount_price=_money(row.discount_price),
        discount_ends_at=row.discount_ends_at,
        capacity=Capacity(row.capacity),
        sold=row.sold,
        is_active=row.is_active,
        features=tuple(row.features or ()),
        created_at=row.created_at,
    )


def _to_booking(row: orm.Booking) -> Booking:
    return Booking(
        id=BookingId(row.id),
        buyer=Buyer(
            full_name=row.full_name,
            email=row.email,
            phone_number=row.phone_number,
            student_level=row.student_level,
            trade=row.trade,
        ),
        tier_id=TierId(row.tier_id),
        tier_name=row.tier.name,
        quantity=Quantity(row.quantity),
        unit_price=_money(row.unit_price),
        payment_reference=row.payment_reference,
        payment_proof_url=row.payment_proof_url,
        status=BookingStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_event(row: orm.Event) -> Event:
    return Event(
        id=EventId(row.id),
        name=row.name,
        description=row.description,
        location=row.location,
        starts_at=row.starts_at,
        ends_at=row.ends_at,
        payment_code=row.payment_code,
        payment_instructions=row.payment_instructions,
        updated_at=row.updated_at,
    )


def _check_quantity(quantity: int) -> None:
    if quantity <= 0:
        raise ValueError("Quantity must be positive")


class DjangoInventoryLedger(InventoryLedger):
    """Tier inventory backed by the ``TicketTier`` table."""

    def __init__(self, using: str = "default") -> None:
        self._using = using

    def _tiers(self):
        return orm.TicketTier.objects.using(self._using)

    def get_tier(self, tier_id: TierId) -> TicketTier | None:
        row = self._tiers().filter(pk=tier_id.value).first()
        return _to_tier(row) if row else None

    def list_tiers(self, active_only: bool = True) -> list[TicketTier]:
        rows = self._tiers().all()
        if active_only:
            rows = rows.filter(is_active=True)
        return [_to_tier(row) for row in rows]

    def add_tier(
        self,
        *,
        name: str,
        price: Money,
        capacity: int,
        discount_price: Money | None = None,
        discount_ends_at: datetime | None = None,
        description: str = "",
        features: tuple[str, ...] = (),
        is_active: bool = True,
    ) -> TicketTier:
        row = self._tiers().create(
            name=name,
            price=price.amount,
            capacity=Capacity(capacity).value,
            discount_price=discount_price.amount if discount_price else None,
            discount_ends_at=discount_ends_at,
            description=description,
            features=list(features),
            is_active=is_active,
        )
        return _to_tier(row)

    def update_tier(
        self,
        tier_id: TierId,
        *,
        name: str,
        price: Money,
        discount_price: Money | None,
        discount_ends_at: datetime | None,
        description: str,
        features: tuple[str, ...],
        is_active: bool,
    ) -> TicketTier:
        updated = self._tiers().filter(pk=tier_id.value).update(
            name=name,
            price=price.amount,
            discount_price=discount_price.amount if discount_price else None,
            discount_ends_at=discount_ends_at,
            description=description,
            features=list(features),
            is_active=is_active,
            updated_at=timezone.now(),
        )
        if not updated:
            raise TierNotFoundError(str(tier_id))
        return _to_tier(self._tiers().get(pk=tier_id.value))

    def delete_tier(self, tier_id: TierId) -> bool:
        has_bookings = orm.Booking.objects.using(self._using).filter(tier=OuterRef("pk"))
        deleted, _ = (
            self._tiers()
            .filter(pk=tier_id.value, sold=0)
            .exclude(Exists(has_bookings))
            .delete()
        )
        if deleted:
            return True
        if not self._tiers().filter(pk=tier_id.value).exists():
            raise TierNotFoundError(str(tier_id))
        return False

    def reserve(self, tier_id: TierId, quantity: int) -> ReservationResult:
        _check_quantity(quantity)
        updated = (
            self._tiers()
            .filter(pk=tier_id.value, sold__lte=F("capacity") - quantity)
            .update(sold=F("sold") + quantity, updated_at=timezone.now())
        )
        if updated:
            return ReservationResult.OK
        if not self._tiers().filter(pk=tier_id.value).exists():
            raise TierNotFoundError(str(tier_id))
        return ReservationResult.SOLD_OUT

    def release(self, tier_id: TierId, quantity: int) -> ReservationResult:
        _check_quantity(quantity)
        updated = (
            self._tiers()
            .filter(pk=tier_id.value)
            .update(
                sold=Greatest(F("sold") - quantity, 0, output_field=IntegerField()),
                updated_at=timezone.now(),
            )
        )
        if not updated:
            raise TierNotFoundError(str(tier_id))
        return ReservationResult.OK

    def resize(self, tier_id: TierId, capacity: int) -> TicketTier:
        Capacity(capacity)
        updated = (
            self._tiers()
            .filter(pk=tier_id.value, sold__lte=capacity)
            .update(capacity=capacity, updated_at=timezone.now())
        )
        if not updated:
            if not self._tiers().filter(pk=tier_id.value).exists():
                raise TierNotFoundError(str(tier_id))
            raise CapacityBelowSoldError(str(tier_id))
        return _to_tier(self._tiers().get(pk=tier_id.value))

    def availability(self, tier_id: TierId) -> Availability:
        row = self._tiers().filter(pk=tier_id.value).values("capacity", "sold").first()
        if row is None:
            raise TierNotFoundError(str(tier_id))
        return Availability(capacity=row["capacity"], sold=row["sold"])


class DjangoBookingStore(BookingStore):
    """Bookings backed by the ``Booking`` table."""

    def __init__(self, using: str = "default") -> None:
        self._using = using

    def _bookings(self):
        return orm.Booking.objects.using(self._using).select_related("tier")

    def add(self, request: BookingRequest) -> Booking:
        row = orm.Booking.objects.using(self._using).create(
            full_name=request.buyer.full_name,
            email=request.buyer.email,
            phone_number=request.buyer.phone_number,
            student_level=request.buyer.student_level,
            trade=request.buyer.trade,
            tier_id=request.tier_id.value,
            quantity=request.quantity.value,
            payment_reference=request.payment_reference,
            payment_proof_url=request.payment_proof_url,
            status=orm.Booking.Status.PENDING,
        )
        return _to_booking(self._bookings().get(pk=row.pk))

    def get(self, booking_id: BookingId) -> Booking | None:
        row = self._bookings().filter(pk=booking_id.value).first()
        return _to_booking(row) if row else None

    def list_bookings(self, status: BookingStatus | None = None) -> list[Booking]:
        rows = self._bookings().all()
        if status is not None:
            rows = rows.filter(status=status.value)
        return [_to_booking(row) for row in rows]

    def list_for_tier(self, tier_id: TierId) -> list[Booking]:
        rows = self._bookings().filter(tier_id=tier_id.value)
        return [_to_booking(row) for row in rows]

    def confirmed_quantity_for_tier(self, tier_id: TierId) -> int:
        total = (
            orm.Booking.objects.using(self._using)
            .filter(tier_id=tier_id.value, status=orm.Booking.Status.CONFIRMED)
            .aggregate(total=Sum("quantity"))["total"]
        )
        return total or 0

    def transition(
        self,
        booking_id: BookingId,
        source: BookingStatus,
        target: BookingStatus,
        unit_price: Money | None = None,
    ) -> bool:
        changes = {"status": target.value, "updated_at": timezone.now()}
        if unit_price is not None:
            changes["unit_price"] = unit_price.amount
        updated = (
            orm.Booking.objects.using(self._using)
            .filter(pk=booking_id.value, status=source.value)
            .update(**changes)
        )
        return updated == 1

    def delete(self, booking_id: BookingId) -> bool:
        deleted, _ = (
            orm.Booking.objects.using(self._using)
            .filter(pk=booking_id.value)
            .exclude(status=orm.Booking.Status.CONFIRMED)
            .delete()
        )
        return deleted > 0

    def summary(self) -> BookingSummary:
        bookings = orm.Booking.objects.using(self._using)
        counts = {
            BookingStatus(row["status"]): row["n"]
            for row in bookings.order_by().values("status").annotate(n=Count("id"))
        }
        revenue = bookings.filter(status=orm.Booking.Status.CONFIRMED).aggregate(
            revenue=Sum(
                ExpressionWrapper(
                    F("unit_price") * F("quantity"),
                    output_field=DecimalField(max_digits=12, decimal_places=2),
                )
            )
        )["revenue"]
        return BookingSummary(
            total=sum(counts.values()),
            revenue=Money(revenue or Decimal("0")),
            by_status=counts,
        )


class DjangoEventStore(EventStore):
    """Event details backed by the ``Event`` table."""

    def __init__(self, using: str = "default") -> None:
        self._using = using

    def get_event(self) -> Event | None:
        row = orm.Event.objects.using(self._using).first()
        return _to_event(row) if row else None

    def save_event(
        self,
        *,
        name: str,
        description: str,
        location: str,
        starts_at: datetime,
        ends_at: datetime,
        payment_code: str,
        payment_instructions: str,
    ) -> Event:
        fields = {
            "name": name,
            "description": description,
            "location": location,
            "starts_at": starts_at,
            "ends_at": ends_at,
            "payment_code": payment_code,
            "payment_instructions": payment_instructions,
        }
        row = orm.Event.objects.using(self._using).first()
        if row is None:
            row = orm.Event.objects.using(self._using).create(**fields)
        else:
            for key, value in fields.items():
                setattr(row, key, value)
            row.save(using=self._using)
        return _to_event(row)


class DjangoPersistence(Persistence):
    """Persistence handle over one Django database alias."""

    def __init__(self, using: str = "default") -> None:
        self._using = using
        self.tiers = DjangoInventoryLedger(using)
        self.bookings = DjangoBookingStore(using)
        self.events = DjangoEventStore(using)

    def atomic(self):
        return transaction.atomic(using=self._using)

    def close(self) -> None:
        connection = connections[self._using]
        # An enclosing transaction owns the connection.
        if not connection.in_atomic_block:
            connection.close()
