"""Date parsing utilities."""

from datetime import date, datetime, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

ISO_FORMAT = "%Y-%m-%d"


def parse_date(date_str: str) -> date:
    """Parse a user-supplied date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024", ...) and a
    few relative forms: "today", "yesterday", "tomorrow", and
    "last/this/next month|year" (first day of that period).

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    offsets = {"last": -1, "this": 0, "next": 1}
    words = date_str.split()
    if len(words) == 2 and words[0] in offsets:
        step = offsets[words[0]]
        if words[1] == "month":
            return (today + relativedelta(months=step)).replace(day=1)
        if words[1] == "year":
            return today.replace(month=1, day=1) + relativedelta(years=step)

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def to_date_string(value: date) -> str:
    """Return the canonical ``YYYY-MM-DD`` form of a date."""
    return value.isoformat()


def normalize_statement_date(value: str) -> str:
    """Normalize a bank statement date to ``YYYY-MM-DD``.

    Values containing ``/`` are read as ``DD/MM/YYYY`` (two-digit years
    become 20YY); anything else must already be ``YYYY-MM-DD``.

    Raises:
        ValueError: If the value is not a real calendar date
    """
    value = value.strip()
    if "/" in value:
        parts = [p.strip() for p in value.split("/")]
        if len(parts) != 3 or not all(p.isdigit() for p in parts):
            raise ValueError(f"Could not parse date '{value}': expected DD/MM/YYYY")
        day, month, year = parts
        if len(year) == 2:
            year = f"20{year}"
        return to_date_string(date(int(year), int(month), int(day)))

    try:
        return to_date_string(datetime.strptime(value, ISO_FORMAT).date())
    except ValueError as e:
        raise ValueError(f"Could not parse date '{value}': {e}")


def is_canonical_date(value: str) -> bool:
    """Return True if value is a valid, zero-padded ``YYYY-MM-DD`` string."""
    try:
        return to_date_string(datetime.strptime(value, ISO_FORMAT).date()) == value
    except (TypeError, ValueError):
        return False
