"""CLI helpers for ledger loading and name resolution."""

from __future__ import annotations

from typing import Sequence

import click

from tally.database.base import Database
from tally.domain.entities import (
    Account,
    AccountRole,
    Category,
    CategoryRole,
    Ledger,
    Role,
    Transaction,
)
from tally.domain.reference import ReferenceIndex
from tally.utils.account_resolver import resolve_account, resolve_category


def load_ledger_or_exit(ctx: click.Context, db: Database) -> tuple[Ledger, ReferenceIndex]:
    """Load a ledger snapshot and its reference index, or exit with a CLI error."""
    ledger = db.load_ledger()
    try:
        return ledger, ReferenceIndex.from_ledger(ledger)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_account_or_exit(ctx: click.Context, index: ReferenceIndex, account: str) -> Account:
    """Resolve account name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(index.accounts, account)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_category_or_exit(ctx: click.Context, index: ReferenceIndex, category: str) -> Category:
    """Resolve category name or ID, or exit with a CLI error."""
    try:
        return resolve_category(index.categories, category)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_role_or_exit(ctx: click.Context, index: ReferenceIndex, value: str | None) -> Role | None:
    """Resolve a filter slot written as ``account:NAME`` or ``category:NAME``.

    ``None``, an empty string and ``all`` leave the slot inactive.
    """
    if value is None or value.strip().casefold() in ("", "all"):
        return None
    kind, sep, reference = value.partition(":")
    kind = kind.strip().casefold()
    if not sep or kind not in ("account", "category"):
        click.echo(
            f"Error: Invalid filter '{value}': use account:NAME or category:NAME", err=True
        )
        ctx.exit(1)
    if kind == "account":
        return AccountRole(resolve_account_or_exit(ctx, index, reference).id)
    return CategoryRole(resolve_category_or_exit(ctx, index, reference).id)


def resolve_transaction_or_exit(
    ctx: click.Context, transactions: Sequence[Transaction], reference: str
) -> Transaction:
    """Resolve a transaction by full ID or unique ID prefix, or exit with a CLI error."""
    reference = reference.strip()
    matches = [txn for txn in transactions if txn.id == reference]
    if not matches and reference:
        matches = [txn for txn in transactions if txn.id.startswith(reference)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        click.echo(f"Error: Transaction {reference} not found", err=True)
    else:
        click.echo(f"Error: Transaction ID prefix '{reference}' is ambiguous", err=True)
    ctx.exit(1)
