"""Account management commands."""

import click
from tally.cli.account_resolution import load_ledger_or_exit, resolve_account_or_exit
from tally.cli.error_handling import handle_domain_error
from tally.domain.account import AccountService
from tally.domain.errors import DomainError
from tally.domain.summary import SummaryService
from tally.utils.amount_parser import parse_amount


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--initial-balance", default="0", help="Opening balance (e.g., 1.234,56 or 1234.56)")
@click.option("--group", help="Account group (created if it doesn't exist)")
@click.pass_context
def create_account(ctx, name: str, initial_balance: str, group: str | None):
    """Create a new account.

    Examples:
        tally account create "Checking"
        tally account create "Savings" --initial-balance "2.500,00" --group "Bank"
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        balance = parse_amount(initial_balance)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        account_id = service.create_account(name=name, initial_balance=balance, group_name=group)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{name}' (ID: {account_id})")


@account_group.command("list")
@click.option("--active-only", is_flag=True, help="Hide archived accounts")
@click.pass_context
def list_accounts(ctx, active_only: bool):
    """List accounts with their current balances."""
    db = ctx.obj["db"]
    ledger, index = load_ledger_or_exit(ctx, db)

    accounts = [acc for acc in index.accounts if acc.active or not active_only]
    if not accounts:
        click.echo("No accounts found.")
        return

    balances = SummaryService(index).compute_balances(ledger.transactions).balances

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    for acc in accounts:
        group = index.group(acc.group_id)
        group_name = group.name if group else "-"
        status = "" if acc.active else " (archived)"
        click.echo(
            f"{acc.name:20s} | Group: {group_name:12s} | "
            f"Balance: {balances[acc.id]:>12,.2f}{status}"
        )


@account_group.command("archive")
@click.argument("account", metavar="ACCOUNT")
@click.option("--restore", is_flag=True, help="Make an archived account active again")
@click.pass_context
def archive_account(ctx, account: str, restore: bool) -> None:
    """Archive an account.

    Archived accounts keep their transactions and balance but are not
    offered for new entries.
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    _, index = load_ledger_or_exit(ctx, db)
    acc = resolve_account_or_exit(ctx, index, account)

    try:
        service.set_active(acc.id, active=restore)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"{'Restored' if restore else 'Archived'} account '{acc.name}'")


@account_group.command("usage")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def account_usage(ctx, account: str) -> None:
    """Show how many transactions use an account."""
    db = ctx.obj["db"]
    service = AccountService(db)
    _, index = load_ledger_or_exit(ctx, db)
    acc = resolve_account_or_exit(ctx, index, account)

    click.echo(f"Account '{acc.name}' is used by {service.usage_count(acc.id)} transaction(s)")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def delete_account(ctx, account: str) -> None:
    """Delete an account.

    ACCOUNT can be an account name or ID.

    The account can only be deleted if no transaction uses it, either as
    source or as transfer destination. Archive it instead to keep history.

    Examples:
        tally account delete "Checking"
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    _, index = load_ledger_or_exit(ctx, db)
    acc = resolve_account_or_exit(ctx, index, account)

    try:
        service.delete_account(acc.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted account '{acc.name}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
