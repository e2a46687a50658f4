"""Calendar helpers shared by validation, pricing and scheduling."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_iso_datetime(value: str | date) -> datetime:
    """Parse an ISO-8601 date or datetime into an aware UTC datetime.

    Naive values are taken as UTC. Raises ValueError when unparseable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def add_months(moment: datetime, months: int) -> datetime:
    """Return a new datetime ``months`` calendar months later.

    The day of month is clamped to the last day of the target month.
    """
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def duration_in_months(start: datetime, end: datetime) -> int:
    """Whole calendar months between two dates; the day of month is ignored."""
    return (end.year - start.year) * 12 + (end.month - start.month)
