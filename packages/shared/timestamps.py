"""Conversion between datetimes and epoch milliseconds."""

from datetime import UTC, datetime, timedelta

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
MILLISECOND = timedelta(milliseconds=1)


def to_ms(value: datetime | None) -> int | None:
    """Datetime to epoch milliseconds. Naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (value - EPOCH) // MILLISECOND


def from_ms(value: int | None) -> datetime | None:
    """Epoch milliseconds to an aware UTC datetime."""
    if value is None:
        return None
    return EPOCH + timedelta(milliseconds=value)


def now_ms() -> int:
    return to_ms(datetime.now(UTC))
