"""Transaction management commands."""

import click
from tally.cli.account_resolution import (
    load_ledger_or_exit,
    resolve_role_or_exit,
    resolve_transaction_or_exit,
)
from tally.cli.error_handling import handle_domain_error
from tally.cli.period_options import describe_window, period_options, resolve_window_or_exit
from tally.domain.entities import Transaction, TransactionType
from tally.domain.errors import DomainError
from tally.domain.query import (
    AmountFilter,
    AttachmentFilter,
    SortField,
    TransactionQuery,
    run_query,
)
from tally.domain.reference import ReferenceIndex
from tally.domain.transaction import TransactionService
from tally.utils.date_parser import parse_date, to_date_string


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


def _describe_target(index: ReferenceIndex, txn: Transaction) -> str:
    if txn.type == TransactionType.TRANSFER:
        destination = index.account(txn.transfer_account_id)
        return f"-> {destination.name if destination else 'Unknown'}"
    category = index.category(txn.category_id)
    return category.name if category else "Unknown"


@transaction_group.command("list")
@period_options(default_range="all")
@click.option("--entry", help="First filter slot: account:NAME or category:NAME")
@click.option("--exit", "exit_", help="Second filter slot: account:NAME or category:NAME")
@click.option("--search", default="", help="Only descriptions containing this text")
@click.option(
    "--attachment",
    type=click.Choice(["all", "yes", "no"], case_sensitive=False),
    default="all",
    help="Filter on attachment presence",
)
@click.option("--amount", help="Absolute amount condition, e.g. '>100', '<20' or '=12.50'")
@click.option(
    "--sort",
    "sort_field",
    type=click.Choice(["date", "description", "amount"], case_sensitive=False),
    default="date",
    help="Sort field",
)
@click.option("--asc", is_flag=True, help="Sort ascending instead of descending")
@click.option("--page", type=int, default=1, help="Page number")
@click.option("--page-size", type=int, default=25, help="Transactions per page")
@click.option("--all", "show_all", is_flag=True, help="Show every match on one page")
@click.pass_context
def list_transactions(
    ctx,
    range_kind: str,
    reference: str | None,
    offset: int,
    start: str | None,
    end: str | None,
    entry: str | None,
    exit_: str | None,
    search: str,
    attachment: str,
    amount: str | None,
    sort_field: str,
    asc: bool,
    page: int,
    page_size: int,
    show_all: bool,
):
    """View transactions with optional filters.

    --entry and --exit combine with OR: a transaction is shown if either
    role takes part in it. An account matches as source or as transfer
    destination.

    Examples:
        tally transaction list --range month
        tally transaction list --entry account:Checking --exit category:Groceries
        tally transaction list --amount '>100' --sort amount
    """
    db = ctx.obj["db"]
    ledger, index = load_ledger_or_exit(ctx, db)

    window = resolve_window_or_exit(
        ctx, range_kind=range_kind, reference=reference, offset=offset, start=start, end=end
    )

    try:
        query = TransactionQuery(
            entry=resolve_role_or_exit(ctx, index, entry),
            exit=resolve_role_or_exit(ctx, index, exit_),
            search=search,
            attachment=AttachmentFilter(attachment.upper()),
            amount=AmountFilter.parse(amount) if amount else None,
            window=window,
            sort_field=SortField(sort_field.upper()),
            descending=not asc,
        )
        result = run_query(
            ledger.transactions, query, page=page, page_size=None if show_all else page_size
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not result.total_count:
        click.echo("No transactions found.")
        return

    click.echo(f"\n{result.total_count} transaction(s), {describe_window(window)}")
    click.echo("-" * 100)
    for txn in result.items:
        account = index.account(txn.account_id)
        marker = " [A]" if txn.attachment else ""
        click.echo(
            f"{txn.id[:8]} | {txn.date} | {(account.name if account else 'Unknown'):15s} | "
            f"{_describe_target(index, txn):20s} | {txn.amount:>12,.2f} | "
            f"{txn.description}{marker}"
        )
    if result.page_count > 1:
        click.echo(f"\nPage {result.page} of {result.page_count}")


@transaction_group.command("duplicate")
@click.argument("transaction_id")
@click.option("--date", help="Date for the copy (defaults to the original date)")
@click.option("--copy-attachment", is_flag=True, help="Keep the attachment reference on the copy")
@click.pass_context
def duplicate_transaction(ctx, transaction_id: str, date: str | None, copy_attachment: bool):
    """Copy a transaction under a new ID.

    TRANSACTION_ID can be the full ID or a unique prefix.
    """
    db = ctx.obj["db"]
    ledger, index = load_ledger_or_exit(ctx, db)
    original = resolve_transaction_or_exit(ctx, ledger.transactions, transaction_id)

    new_date = None
    if date:
        try:
            new_date = to_date_string(parse_date(date))
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        _, copy = TransactionService(index).duplicate(
            ledger.transactions, original.id, date=new_date, copy_attachment=copy_attachment
        )
        db.prepend_transactions([copy])
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created transaction {copy.id[:8]} (copy of {original.id[:8]})")


@transaction_group.command("delete")
@click.argument("transaction_ids", nargs=-1, required=True)
@click.option("--yes", is_flag=True, help="Don't ask for confirmation")
@click.pass_context
def delete_transactions(ctx, transaction_ids: tuple[str, ...], yes: bool) -> None:
    """Delete one or more transactions.

    Examples:
        tally transaction delete 3f2a9c1e
        tally transaction delete 3f2a9c1e 7b01d4aa --yes
    """
    db = ctx.obj["db"]
    ledger, index = load_ledger_or_exit(ctx, db)
    selected = [
        resolve_transaction_or_exit(ctx, ledger.transactions, ref).id for ref in transaction_ids
    ]

    if not yes and not click.confirm(
        f"Are you sure you want to delete {len(selected)} transaction(s)?"
    ):
        click.echo("Deletion cancelled.")
        return

    kept = TransactionService(index).delete_selection(ledger.transactions, selected)
    kept_ids = {txn.id for txn in kept}
    deleted = db.delete_transactions(txn.id for txn in ledger.transactions if txn.id not in kept_ids)
    click.echo(f"Deleted {deleted} transaction(s)")


@transaction_group.command("purge")
@click.option("--year", help="Delete every transaction dated in this year (YYYY)")
@click.option("--all", "purge_all", is_flag=True, help="Delete every transaction")
@click.option("--yes", is_flag=True, help="Don't ask for confirmation")
@click.pass_context
def purge_transactions(ctx, year: str | None, purge_all: bool, yes: bool) -> None:
    """Bulk-delete transactions by year or all at once.

    Accounts, families and categories are kept.
    """
    db = ctx.obj["db"]

    if bool(year) == purge_all:
        click.echo("Error: Specify exactly one of --year or --all.", err=True)
        ctx.exit(1)

    ledger, index = load_ledger_or_exit(ctx, db)
    service = TransactionService(index)

    try:
        kept = service.purge(ledger.transactions) if purge_all else service.delete_year(
            ledger.transactions, year
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    kept_ids = {txn.id for txn in kept}
    doomed = [txn.id for txn in ledger.transactions if txn.id not in kept_ids]
    if not doomed:
        click.echo("No transactions to delete.")
        return

    scope = "all years" if purge_all else year
    if not yes and not click.confirm(f"Delete {len(doomed)} transaction(s) from {scope}?"):
        click.echo("Deletion cancelled.")
        return

    deleted = db.delete_transactions(doomed)
    click.echo(f"Deleted {deleted} transaction(s)")


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
