"""Shift computation. Shifts are 8 hours long and start at 23:00, 07:00 and 15:00
Geneva time."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from packages.shared.timestamps import to_ms

SHIFT_TIMEZONE = ZoneInfo("Europe/Zurich")
SHIFT_DURATION = timedelta(hours=8)
SHIFT_PERIODS = {23: "Night", 7: "Morning", 15: "Afternoon"}


@dataclass(frozen=True)
class Shift:
    start: int
    end: int
    period: str

    def to_view(self) -> dict:
        return {"start": self.start, "end": self.end, "period": self.period}


def get_shift_from_timestamp(timestamp: int) -> Shift:
    """Return the shift containing ``timestamp`` (epoch milliseconds).

    Bounds are computed on wall-clock time, so the night shift around a
    daylight saving change lasts 7 or 9 hours.
    """
    local = datetime.fromtimestamp(timestamp / 1000, tz=SHIFT_TIMEZONE)
    hours_since_start = (local.hour + 1) % 24 % 8

    start = local.replace(minute=0, second=0, microsecond=0) - timedelta(hours=hours_since_start)
    start = start.replace(fold=0)
    end = start + SHIFT_DURATION

    return Shift(
        start=to_ms(start),
        end=to_ms(end),
        period=SHIFT_PERIODS[start.hour],
    )
