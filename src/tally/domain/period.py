"""Period window resolution."""

from datetime import date, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from tally.domain.entities import UNBOUNDED, PeriodWindow, RangeKind
from tally.domain.errors import ValidationError
from tally.utils.date_parser import to_date_string


def resolve_period(
    kind: RangeKind,
    reference: Optional[date] = None,
    custom_start: str = "",
    custom_end: str = "",
) -> PeriodWindow:
    """Compute the inclusive date window for a range kind.

    Args:
        kind: Range kind
        reference: Reference date for MONTH/QUARTER/YEAR (defaults to today)
        custom_start: Start string for CUSTOM, used verbatim; empty means open
        custom_end: End string for CUSTOM, used verbatim; empty means open

    Returns:
        PeriodWindow; ``UNBOUNDED`` for ALL
    """
    kind = RangeKind(kind)
    if kind == RangeKind.ALL:
        return UNBOUNDED
    if kind == RangeKind.CUSTOM:
        return PeriodWindow(start=custom_start or None, end=custom_end or None)

    reference = reference or date.today()

    if kind == RangeKind.MONTH:
        start = reference.replace(day=1)
        months = 1
    elif kind == RangeKind.QUARTER:
        quarter = (reference.month - 1) // 3
        start = date(reference.year, quarter * 3 + 1, 1)
        months = 3
    else:
        start = date(reference.year, 1, 1)
        months = 12

    # Last day of the span is the day before the next span starts
    end = start + relativedelta(months=months) - timedelta(days=1)
    return PeriodWindow(start=to_date_string(start), end=to_date_string(end))


def shift_reference(kind: RangeKind, reference: date, step: int) -> date:
    """Move a reference date by ``step`` periods of the given kind.

    Day-of-month is clamped to the target month's length. CUSTOM and ALL
    have no period length, so the reference is returned unchanged.
    """
    kind = RangeKind(kind)
    if kind == RangeKind.MONTH:
        return reference + relativedelta(months=step)
    if kind == RangeKind.QUARTER:
        return reference + relativedelta(months=3 * step)
    if kind == RangeKind.YEAR:
        return reference + relativedelta(years=step)
    return reference


def validate_window(window: PeriodWindow) -> PeriodWindow:
    """Reject windows whose start lies after their end."""
    if window.start and window.end and window.start > window.end:
        raise ValidationError(
            f"Period start {window.start} must not be after end {window.end}"
        )
    return window
