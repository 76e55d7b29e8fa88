"""Helpers for the ``HH:MM`` slot strings and appointment timestamps."""

from datetime import date, datetime, timezone

SLOT_FORMAT = "%H:%M"


def utc_now() -> datetime:
    """Default clock: current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def normalize_slot(value: str) -> str:
    """'9:00' -> '09:00'. Raises ValueError for anything that is not a time of day."""
    return datetime.strptime(value.strip(), SLOT_FORMAT).strftime(SLOT_FORMAT)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(second=0, microsecond=0)


def split_timestamp(value: datetime) -> tuple[date, str]:
    value = to_naive_utc(value)
    return value.date(), value.strftime(SLOT_FORMAT)


def combine(day: date, slot: str) -> datetime:
    return datetime.combine(day, datetime.strptime(normalize_slot(slot), SLOT_FORMAT).time())
