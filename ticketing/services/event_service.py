"""Event service - the single event's details."""

import logging
from datetime import datetime
from typing import Any

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from ticketing.domain import Event
from ticketing.domain.errors import BookingValidationError, UnauthorizedError
from ticketing.stores.interfaces import EventStore

logger = logging.getLogger(__name__)


def _aware(value: datetime | str) -> datetime:
    parsed = parse_datetime(value) if isinstance(value, str) else value
    if parsed is None:
        raise ValueError(f"Invalid datetime: {value!r}")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


class EventService:
    """Service for the event catalog entry."""

    def __init__(self, store: EventStore, defaults: dict[str, Any]) -> None:
        self._store = store
        self._defaults = defaults

    def get_event(self) -> Event:
        """Return the event, creating it from the configured defaults on first use."""
        event = self._store.get_event()
        if event is not None:
            return event
        logger.info("No event configured yet, creating it from defaults")
        return self._store.save_event(
            name=self._defaults["NAME"],
            description=self._defaults.get("DESCRIPTION", ""),
            location=self._defaults["LOCATION"],
            starts_at=_aware(self._defaults["STARTS_AT"]),
            ends_at=_aware(self._defaults["ENDS_AT"]),
            payment_code=self._defaults["PAYMENT_CODE"],
            payment_instructions=self._defaults.get("PAYMENT_INSTRUCTIONS", ""),
        )

    def update_event(
        self,
        *,
        name: str,
        description: str,
        location: str,
        starts_at: datetime,
        ends_at: datetime,
        payment_code: str,
        payment_instructions: str,
        acting_as_operator: bool,
    ) -> Event:
        """Overwrite the event details.

        Raises:
            UnauthorizedError: If the caller is not an operator.
            BookingValidationError: If the event would end before it starts.
        """
        if not acting_as_operator:
            raise UnauthorizedError()
        starts_at, ends_at = _aware(starts_at), _aware(ends_at)
        if ends_at < starts_at:
            raise BookingValidationError("Event cannot end before it starts")
        event = self._store.save_event(
            name=name,
            description=description,
            location=location,
            starts_at=starts_at,
            ends_at=ends_at,
            payment_code=payment_code,
            payment_instructions=payment_instructions,
        )
        logger.info("Event details updated (%s)", event.name)
        return event
