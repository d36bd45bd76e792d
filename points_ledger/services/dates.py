from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from points_ledger import config


def _zone(tz: ZoneInfo | None) -> ZoneInfo:
    return tz or config.reference_zone()


def as_utc_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=ZoneInfo("UTC"))
    return dt.astimezone(ZoneInfo("UTC"))


def to_utc_naive(dt: datetime) -> datetime:
    return as_utc_aware(dt).replace(tzinfo=None)


def utcnow() -> datetime:
    # Keep naive UTC timestamps to match existing DB column types/semantics.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_reference_date(value: date | datetime, tz: ZoneInfo | None = None) -> date:
    """
    Calendar date of ``value`` in the reference zone.

    Aware timestamps are converted first; naive ones are read as already
    local to the reference zone; plain dates pass through.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(_zone(tz)).date()
    return value


def reference_today(now: datetime | None = None, tz: ZoneInfo | None = None) -> date:
    if now is None:
        now = datetime.now(timezone.utc)
    return as_utc_aware(now).astimezone(_zone(tz)).date()


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def next_month_on_day(base: date, day: int) -> date:
    """``day`` of the month after ``base``, clamped to that month's length."""
    year = base.year + base.month // 12
    month = base.month % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(clamp_day(day), last))


def clamp_day(day) -> int:
    try:
        n = int(day or 1)
    except (TypeError, ValueError):
        n = 1
    return min(31, max(1, n))
