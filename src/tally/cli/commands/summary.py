"""Summary command."""

import click
from tally.cli.account_resolution import load_ledger_or_exit
from tally.cli.period_options import describe_window, period_options, resolve_window_or_exit
from tally.domain.entities import FamilyRollup
from tally.domain.summary import SummaryService

INDENT = " " * 4


def _display_rollup(title: str, rollups: tuple[FamilyRollup, ...], expand: bool, show_empty: bool):
    click.echo(f"\n{title}")
    click.echo("-" * 60)
    shown = 0
    for rollup in rollups:
        if not rollup.total and not show_empty:
            continue
        shown += 1
        click.echo(f"{rollup.family.name:<40} {rollup.total:>19,.2f}")
        if not expand:
            continue
        for line in rollup.categories:
            if not line.total and not show_empty:
                continue
            click.echo(f"{INDENT}{line.category.name:<36} {line.total:>19,.2f}")
    if not shown:
        click.echo("(none)")


@click.command("summary")
@period_options(default_range="month")
@click.option("--expand", is_flag=True, help="Show the category breakdown of each family")
@click.option("--show-empty", is_flag=True, help="Include families and categories with no movement")
@click.pass_context
def summary(
    ctx,
    range_kind: str,
    reference: str | None,
    offset: int,
    start: str | None,
    end: str | None,
    expand: bool,
    show_empty: bool,
):
    """Show balances and income/expense totals for a period.

    Balances always cover the whole ledger; totals and the family
    breakdown cover the selected period. Transfers move money between
    accounts and never count as income or expense.

    Examples:
        tally summary
        tally summary --range quarter --offset -1 --expand
        tally summary --range custom --start 2024-01-01 --end 2024-06-30
    """
    db = ctx.obj["db"]
    ledger, index = load_ledger_or_exit(ctx, db)

    window = resolve_window_or_exit(
        ctx, range_kind=range_kind, reference=reference, offset=offset, start=start, end=end
    )
    result = SummaryService(index).summarize(ledger.transactions, window)

    click.echo("\nBalances")
    click.echo("-" * 60)
    for account in index.accounts:
        balance = result.balances[account.id]
        if not account.active and not balance and not show_empty:
            continue
        click.echo(f"{account.name:<40} {balance:>19,.2f}")
    click.echo(f"{'Total':<40} {result.global_balance:>19,.2f}")

    click.echo(f"\nPeriod: {describe_window(window)}")
    click.echo(f"  Income:  {result.period_income:>15,.2f}")
    click.echo(f"  Expense: {result.period_expense:>15,.2f}")
    click.echo(f"  Net:     {result.period_net:>15,.2f}")

    _display_rollup("Income by family", result.incomes, expand, show_empty)
    _display_rollup("Expenses by family", result.expenses, expand, show_empty)


def register_commands(cli):
    """Register summary command with main CLI."""
    cli.add_command(summary)
