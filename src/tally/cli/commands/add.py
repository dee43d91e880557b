"""Add transaction command."""

import click
from tally.cli.account_resolution import (
    load_ledger_or_exit,
    resolve_account_or_exit,
    resolve_category_or_exit,
)
from tally.cli.error_handling import handle_domain_error
from tally.domain.entities import Nature, TransactionType
from tally.domain.errors import DomainError
from tally.domain.transaction import TransactionService
from tally.utils.amount_parser import parse_amount
from tally.utils.date_parser import parse_date, to_date_string


@click.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option(
    "--date",
    default="today",
    show_default=True,
    help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')",
)
@click.option("--amount", required=True, help="Transaction amount (e.g., 12,50 or 1.234,56)")
@click.option("--description", default="", help="Transaction description")
@click.option("--category", help="Category name or ID (income or expense)")
@click.option("--to", "to_account", help="Destination account for a transfer")
@click.option("--attachment", help="Reference to an attached receipt")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    date: str,
    amount: str,
    description: str,
    category: str | None,
    to_account: str | None,
    attachment: str | None,
):
    """Add a transaction manually.

    The type follows from the options: --to makes a transfer, otherwise
    the category's family decides between income and expense. The amount
    sign is normalized to the type.

    Examples:
        tally add --account Checking --amount 45,90 --category Groceries --description "Market"
        tally add --account Checking --amount 2000 --category "Monthly Salary"
        tally add --account Checking --amount 500 --to Savings
    """
    db = ctx.obj["db"]
    ledger, index = load_ledger_or_exit(ctx, db)

    if category and to_account:
        click.echo("Error: Use either --category or --to, not both.", err=True)
        ctx.exit(1)
    if not category and not to_account:
        click.echo("Error: Provide --category for income/expense or --to for a transfer.", err=True)
        ctx.exit(1)

    source = resolve_account_or_exit(ctx, index, account)

    try:
        txn_date = to_date_string(parse_date(date))
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    try:
        txn_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    category_id = None
    transfer_account_id = None
    if to_account:
        txn_type = TransactionType.TRANSFER
        transfer_account_id = resolve_account_or_exit(ctx, index, to_account).id
    else:
        category_obj = resolve_category_or_exit(ctx, index, category)
        category_id = category_obj.id
        nature = index.nature_of(category_id)
        txn_type = TransactionType.INCOME if nature == Nature.INCOME else TransactionType.EXPENSE

    service = TransactionService(index)
    try:
        txn = service.build_transaction(
            date=txn_date,
            amount=txn_amount,
            description=description,
            type=txn_type,
            account_id=source.id,
            category_id=category_id,
            transfer_account_id=transfer_account_id,
            attachment=attachment,
        )
        service.add(ledger.transactions, txn)
        db.prepend_transactions([txn])
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created transaction {txn.id[:8]}")
    click.echo(f"  Type: {txn.type.value.lower()}")
    click.echo(f"  Account: {source.name}")
    if transfer_account_id:
        click.echo(f"  To: {index.account(transfer_account_id).name}")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Amount: {txn.amount:,.2f}")
    if description:
        click.echo(f"  Description: {description}")
    if category_id:
        click.echo(f"  Category: {index.category(category_id).name}")


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)
