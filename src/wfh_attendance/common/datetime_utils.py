from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_BUSINESS_TIMEZONE


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_utc() -> datetime:
    """Current instant as an aware UTC datetime.

    Note: Wrapped so services can take it as an injectable clock.
    """
    return datetime.now(timezone.utc)


def format_display_date(day: date) -> str:
    """Human readable date used in generated notes, e.g. 'Mon Oct 19 2026'."""
    return day.strftime("%a %b %d %Y")


def require_aware(value: datetime, field_name: str = "instant") -> datetime:
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValueError(f"{field_name} must be timezone-aware, got naive {value!r}")
    return value


@dataclass(frozen=True)
class DayWindow:
    """Half-open instant range [start, end) covering one business calendar day.

    ``start`` and ``end`` are aware UTC datetimes.
    """

    day: date
    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= require_aware(instant) < self.end


class DayPolicy:
    """Computes calendar days in one canonical business timezone.

    Every "is this before today" and "which day does this belong to" decision
    goes through here so that reconciliation, check-in and reporting agree on
    day boundaries.
    """

    def __init__(self, tz_name: str = DEFAULT_BUSINESS_TIMEZONE):
        self._tz_name = tz_name
        self._tz = ZoneInfo(tz_name)

    @property
    def tz_name(self) -> str:
        return self._tz_name

    def local_date(self, instant: datetime) -> date:
        return require_aware(instant).astimezone(self._tz).date()

    def today(self, now: datetime) -> date:
        return self.local_date(now)

    def start_of(self, day: date) -> datetime:
        local_midnight = datetime.combine(day, time.min, tzinfo=self._tz)
        return local_midnight.astimezone(timezone.utc)

    def window_for_date(self, day: date) -> DayWindow:
        # Next local midnight, not +24h, so DST transitions keep exact days.
        return DayWindow(
            day=day,
            start=self.start_of(day),
            end=self.start_of(day + timedelta(days=1)),
        )

    def window_for(self, instant: datetime) -> DayWindow:
        return self.window_for_date(self.local_date(instant))

    def today_start(self, now: datetime) -> datetime:
        """Start of the current business day; rows logged before it are expired."""
        return self.start_of(self.today(now))

    def local_time(self, instant: datetime) -> time:
        return require_aware(instant).astimezone(self._tz).time()

    def __repr__(self) -> str:
        return f"DayPolicy({self._tz_name!r})"
