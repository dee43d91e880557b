"""Statement import command."""

import click
from tally.cli.account_resolution import (
    load_ledger_or_exit,
    resolve_account_or_exit,
    resolve_category_or_exit,
    resolve_role_or_exit,
)
from tally.cli.error_handling import handle_domain_error
from tally.domain.entities import AccountRole, ProposedTransaction, TransactionType
from tally.domain.errors import DomainError
from tally.domain.reference import ReferenceIndex
from tally.domain.statement_import import ImportSession, StatementImportService


def _describe_row(index: ReferenceIndex, row: ProposedTransaction) -> str:
    if row.type == TransactionType.TRANSFER:
        counterpart = index.account(row.transfer_account_id)
        return f"transfer {'from' if row.amount > 0 else 'to'} {counterpart.name}"
    if row.category_id:
        return index.category(row.category_id).name
    return "(unassigned)"


def _apply_rules(ctx, service, index, session: ImportSession, rules: tuple[str, ...]):
    """Apply ``TEXT=account:NAME`` / ``TEXT=category:NAME`` rules in order."""
    for rule in rules:
        text, sep, target = rule.partition("=")
        if not sep or not text.strip():
            click.echo(f"Error: Invalid rule '{rule}': use TEXT=category:NAME or TEXT=account:NAME", err=True)
            ctx.exit(1)
        role = resolve_role_or_exit(ctx, index, target)
        needle = text.strip().casefold()
        for row in session.rows:
            if needle not in row.description.casefold():
                continue
            if isinstance(role, AccountRole):
                session = service.mark_transfer(session, row.id, role.id)
            else:
                session = service.assign_category(session, row.id, role.id)
    return session


@click.command("import")
@click.argument("statement_file", type=click.File("r", encoding="utf-8-sig"))
@click.option("--account", required=True, help="Account the statement belongs to (name or ID)")
@click.option(
    "--rule",
    "rules",
    multiple=True,
    help="Assign rows whose description contains TEXT: 'TEXT=category:NAME' or 'TEXT=account:NAME' (transfer)",
)
@click.option("--default-category", help="Category for rows still unassigned after suggestions and rules")
@click.option("--discard-duplicates", is_flag=True, help="Drop rows that look like existing transactions")
@click.option("--commit/--dry-run", default=True, help="Store assigned rows or only show the proposals")
@click.option(
    "--pending-out",
    type=click.Path(dir_okay=False, writable=True),
    help="Write rows that could not be committed to this file for re-import",
)
@click.pass_context
def import_statement(
    ctx,
    statement_file,
    account: str,
    rules: tuple[str, ...],
    default_category: str | None,
    discard_duplicates: bool,
    commit: bool,
    pending_out: str | None,
):
    """Import transactions from pasted bank statement text.

    Each line holds date, description and amount separated by ';', tab
    or ','. Dates may be DD/MM/YYYY or YYYY-MM-DD; amounts may use either
    decimal convention ("1.234,56" or "1,234.56"). Use '-' to read from
    standard input.

    Rows with a category (suggested from history or category names, or
    given by --rule / --default-category) are committed; the rest stay
    pending and can be exported with --pending-out.

    Examples:
        tally import statement.txt --account Checking
        tally import statement.txt --account Checking --rule "MERCADONA=category:Groceries"
        tally import statement.txt --account Checking --rule "TRANSFER=account:Savings" --dry-run
    """
    db = ctx.obj["db"]
    ledger, index = load_ledger_or_exit(ctx, db)
    target = resolve_account_or_exit(ctx, index, account)
    service = StatementImportService(index)

    try:
        session = service.stage(statement_file.read(), target.id, ledger.transactions)
        session = _apply_rules(ctx, service, index, session, rules)
        if default_category:
            category = resolve_category_or_exit(ctx, index, default_category)
            for row in session.pending:
                session = service.assign_category(session, row.id, category.id)
        if discard_duplicates and session.duplicates:
            click.echo(f"Discarding {len(session.duplicates)} possible duplicate(s)")
            session = service.discard_duplicates(session)
    except DomainError as e:
        handle_domain_error(ctx, e)

    for skipped in session.skipped:
        click.echo(f"Skipped line {skipped.line_number}: {skipped.reason}", err=True)

    if session.rows:
        click.echo(f"\nProposed transactions for '{target.name}':")
        click.echo("-" * 100)
        for row in session.rows:
            flag = "  DUPLICATE?" if row.is_duplicate_candidate else ""
            click.echo(
                f"{row.line_number:4d} | {row.date} | {row.description[:40]:40s} | "
                f"{row.amount:>12,.2f} | {_describe_row(index, row)}{flag}"
            )

    if not commit:
        click.echo(
            f"\nDry run: {len(session.assigned)} ready, {len(session.pending)} unassigned, "
            f"{len(session.skipped)} skipped"
        )
        return

    if not session.rows:
        click.echo("\nNothing to import.")
        return

    try:
        result = service.commit(session, ledger.transactions)
        db.prepend_transactions(result.committed)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result.committed_count} transactions")
    click.echo(f"  Pending: {len(result.session.pending)} unassigned")
    if result.rejected:
        click.echo(f"  Rejected: {len(result.rejected)} rows")
    click.echo(f"  Skipped: {len(session.skipped)} lines")
    if session.discarded_count:
        click.echo(f"  Discarded: {session.discarded_count} rows")

    for rejected in result.rejected:
        click.echo(f"Rejected line {rejected.row.line_number}: {rejected.reason}", err=True)

    if result.pending and pending_out:
        with open(pending_out, "w", encoding="utf-8") as f:
            f.write(service.export_rows(result.pending) + "\n")
        click.echo(f"Pending rows written to {pending_out}")


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_statement)
