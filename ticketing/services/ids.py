"""Parsing of identifiers received from callers."""

from typing import TypeVar

from ticketing.domain import BookingId, TierId
from ticketing.domain.errors import InvalidIdError

IdT = TypeVar("IdT", BookingId, TierId)


def parse_id(id_type: type[IdT], value: str | IdT, kind: str) -> IdT:
    """Return ``value`` as an ``id_type``.

    Raises:
        InvalidIdError: If ``value`` is not a valid UUID.
    """
    if isinstance(value, id_type):
        return value
    try:
        return id_type.from_string(str(value))
    except ValueError:
        raise InvalidIdError(kind) from None
