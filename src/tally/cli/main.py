"""Main CLI entry point."""

import logging

import click
from tally.database.factories import create_sqlite_database

# Import and register all commands at module level
from tally.cli.commands import (
    account,
    category,
    init_categories,
    add,
    transaction,
    summary,
    import_cmd,
)


def _configure_logging(verbose: int) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides TALLY_DB_PATH environment variable)",
    envvar="TALLY_DB_PATH",
)
@click.option("--verbose", "-v", count=True, help="Log progress (-vv for debug output)")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: int):
    """Tally - Personal ledger.

    Keep accounts, income and expense categories and transfers in one
    ledger, see balances and period summaries, and import pasted bank
    statements.
    """
    ctx.ensure_object(dict)
    _configure_logging(verbose)

    # Open the database only when a command actually runs (not for --help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
category.register_commands(cli)
init_categories.register_commands(cli)
add.register_commands(cli)
transaction.register_commands(cli)
summary.register_commands(cli)
import_cmd.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
