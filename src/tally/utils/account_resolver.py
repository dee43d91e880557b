"""Utility for resolving account and category references to IDs."""

from typing import Sequence, TypeVar

from tally.domain.entities import Account, Category, Family
from tally.domain.errors import NotFoundError

T = TypeVar("T", Account, Category, Family)


def _resolve(kind: str, items: Sequence[T], reference: str) -> T:
    """Resolve a name or ID against a list of reference entities.

    IDs win over names; names are matched case-insensitively.

    Raises:
        NotFoundError: If nothing matches
    """
    reference = reference.strip()
    for item in items:
        if item.id == reference:
            return item
    for item in items:
        if item.name.casefold() == reference.casefold():
            return item
    raise NotFoundError(f"{kind} '{reference}' not found")


def resolve_account(accounts: Sequence[Account], account: str) -> Account:
    """Resolve account name or ID to an account."""
    return _resolve("Account", accounts, account)


def resolve_category(categories: Sequence[Category], category: str) -> Category:
    """Resolve category name or ID to a category."""
    return _resolve("Category", categories, category)


def resolve_family(families: Sequence[Family], family: str) -> Family:
    """Resolve family name or ID to a family."""
    return _resolve("Family", families, family)
