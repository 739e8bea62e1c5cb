"""Date parsing and reporting-period utilities.

All period boundaries are calendar aligned in a caller supplied time zone
and returned as aware datetimes in that zone.
"""

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional

from dateutil import parser as date_parser
from dateutil import tz
from dateutil.relativedelta import relativedelta

PERIODS = ("today", "week", "month", "year", "custom")


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """Look up an IANA time zone name.

    Raises:
        ValueError: If the zone is unknown
    """
    if not name or name.upper() == "UTC":
        return tz.UTC
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown time zone: '{name}'")
    return zone


def localize(moment: datetime, zone: tzinfo) -> datetime:
    """Attach ``zone`` to naive datetimes; convert aware ones into it."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=zone)
    return moment.astimezone(zone)


def to_utc(moment: datetime, zone: tzinfo) -> datetime:
    """Return ``moment`` as an aware UTC datetime, reading naive values in ``zone``."""
    return localize(moment, zone).astimezone(tz.UTC)


def start_of_day(day: date, zone: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=zone)


def end_of_day(day: date, zone: tzinfo) -> datetime:
    return datetime.combine(day, time.max, tzinfo=zone)


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Accepts absolute dates ("2024-01-15", "January 15, 2024") and the
    relative words "today", "yesterday" and "tomorrow".

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = today or date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_datetime(value: str, zone: tzinfo) -> datetime:
    """Parse a date or date-time string into an aware datetime in ``zone``.

    A bare date resolves to the start of that day.

    Raises:
        ValueError: If the string cannot be parsed
    """
    text = value.strip()
    if text.lower() in ("now",):
        return datetime.now(zone)
    if text.lower() in ("today", "yesterday", "tomorrow"):
        return start_of_day(parse_date(text, datetime.now(zone).date()), zone)
    try:
        parsed = date_parser.parse(text)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{value}': {e}")
    return localize(parsed, zone)


def get_period_range(
    period: str,
    zone: tzinfo,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> tuple[datetime, datetime]:
    """Get calendar-aligned start and end datetimes for a reporting period.

    Args:
        period: One of today, week, month, year, custom. Anything else falls
            back to the current month.
        zone: Time zone the calendar is read in
        start: Start for the custom period (defaults to start of month)
        end: End for the custom period (defaults to end of month); its day
            is always extended to end of day
        now: Reference moment, defaults to the current time

    Returns:
        Tuple of aware (start, end) datetimes in ``zone``
    """
    now = localize(now, zone) if now is not None else datetime.now(zone)
    today = now.date()
    month_start = today.replace(day=1)
    month_end = month_start + relativedelta(months=1) - timedelta(days=1)

    period = (period or "month").strip().lower()
    if period == "today":
        return start_of_day(today, zone), end_of_day(today, zone)
    if period == "week":
        return start_of_day(today - timedelta(days=7), zone), end_of_day(today, zone)
    if period == "year":
        return (
            start_of_day(today.replace(month=1, day=1), zone),
            end_of_day(today.replace(month=12, day=31), zone),
        )
    if period == "custom":
        range_start = localize(start, zone) if start is not None else start_of_day(month_start, zone)
        range_end = (
            end_of_day(localize(end, zone).date(), zone)
            if end is not None
            else end_of_day(month_end, zone)
        )
        if range_end < range_start:
            raise ValueError("End date must not be before start date")
        return range_start, range_end
    return start_of_day(month_start, zone), end_of_day(month_end, zone)
