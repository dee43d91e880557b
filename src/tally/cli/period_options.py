"""CLI helpers for period window resolution."""

import click

from tally.domain.entities import PeriodWindow, RangeKind
from tally.domain.errors import ValidationError
from tally.domain.period import resolve_period, shift_reference, validate_window
from tally.utils.date_parser import parse_date, to_date_string


def period_options(default_range: str = "month"):
    """Decorator adding the shared period flags to a command."""

    def decorator(func):
        options = [
            click.option(
                "--range",
                "range_kind",
                type=click.Choice([kind.value.lower() for kind in RangeKind], case_sensitive=False),
                default=default_range,
                show_default=True,
                help="Period kind",
            ),
            click.option(
                "--date",
                "reference",
                help="Reference date inside the period (YYYY-MM-DD or relative like 'last month')",
            ),
            click.option(
                "--offset",
                type=int,
                default=0,
                help="Move the period by N steps (e.g. -1 for the previous month)",
            ),
            click.option("--start", help="Start date for --range custom"),
            click.option("--end", help="End date for --range custom"),
        ]
        for option in reversed(options):
            func = option(func)
        return func

    return decorator


def resolve_window_or_exit(
    ctx,
    *,
    range_kind: str,
    reference: str | None,
    offset: int,
    start: str | None,
    end: str | None,
) -> PeriodWindow:
    """Resolve CLI period flags into a PeriodWindow, or exit with a CLI error."""
    kind = RangeKind(range_kind.upper())

    if kind != RangeKind.CUSTOM and (start or end):
        click.echo("Error: --start and --end can only be used with --range custom.", err=True)
        ctx.exit(1)

    try:
        if kind == RangeKind.CUSTOM:
            custom_start = to_date_string(parse_date(start)) if start else ""
            custom_end = to_date_string(parse_date(end)) if end else ""
            return validate_window(
                resolve_period(kind, custom_start=custom_start, custom_end=custom_end)
            )

        ref_date = parse_date(reference) if reference else None
        if ref_date is not None or offset:
            ref_date = shift_reference(kind, ref_date or parse_date("today"), offset)
        return resolve_period(kind, reference=ref_date)
    except ValidationError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    except ValueError as e:
        click.echo(f"Error: Invalid date: {e}", err=True)
        ctx.exit(1)


def describe_window(window: PeriodWindow) -> str:
    if window.is_unbounded:
        return "all time"
    return f"{window.start or '...'} to {window.end or '...'}"
