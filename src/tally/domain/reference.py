"""Reference index over accounts, families, categories and account groups."""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, TypeVar

from tally.domain.entities import (
    Account,
    AccountGroup,
    Category,
    Family,
    Ledger,
    Nature,
    Transaction,
    TransactionType,
)
from tally.domain.errors import ConflictError, DependencyError, delete_blocked, duplicate_id

T = TypeVar("T", Account, AccountGroup, Category, Family)


def _index_by_id(kind: str, items: Iterable[T]) -> dict[str, T]:
    index: dict[str, T] = {}
    for item in items:
        if item.id in index:
            raise ConflictError(duplicate_id(kind, item.id))
        index[item.id] = item
    return index


@dataclass(frozen=True)
class ReferenceIndex:
    """Lookup maps by id, rebuilt whenever reference data changes.

    The original list order is kept alongside the maps because rollups
    break ties by reference order.
    """

    accounts: tuple[Account, ...]
    families: tuple[Family, ...]
    categories: tuple[Category, ...]
    groups: tuple[AccountGroup, ...]
    accounts_by_id: dict[str, Account]
    families_by_id: dict[str, Family]
    categories_by_id: dict[str, Category]
    groups_by_id: dict[str, AccountGroup]

    @classmethod
    def build(
        cls,
        accounts: Sequence[Account] = (),
        families: Sequence[Family] = (),
        categories: Sequence[Category] = (),
        groups: Sequence[AccountGroup] = (),
    ) -> "ReferenceIndex":
        """Build an index from reference lists.

        Raises:
            ConflictError: If an id appears twice within one list
        """
        return cls(
            accounts=tuple(accounts),
            families=tuple(families),
            categories=tuple(categories),
            groups=tuple(groups),
            accounts_by_id=_index_by_id("account", accounts),
            families_by_id=_index_by_id("family", families),
            categories_by_id=_index_by_id("category", categories),
            groups_by_id=_index_by_id("account group", groups),
        )

    @classmethod
    def from_ledger(cls, ledger: Ledger) -> "ReferenceIndex":
        return cls.build(
            accounts=ledger.accounts,
            families=ledger.families,
            categories=ledger.categories,
            groups=ledger.groups,
        )

    def account(self, account_id: Optional[str]) -> Optional[Account]:
        if account_id is None:
            return None
        return self.accounts_by_id.get(account_id)

    def category(self, category_id: Optional[str]) -> Optional[Category]:
        if category_id is None:
            return None
        return self.categories_by_id.get(category_id)

    def family(self, family_id: Optional[str]) -> Optional[Family]:
        if family_id is None:
            return None
        return self.families_by_id.get(family_id)

    def group(self, group_id: Optional[str]) -> Optional[AccountGroup]:
        if group_id is None:
            return None
        return self.groups_by_id.get(group_id)

    def family_of(self, category_id: Optional[str]) -> Optional[Family]:
        """Return the family owning a category, or None if either is unknown."""
        category = self.category(category_id)
        if category is None:
            return None
        return self.family(category.family_id)

    def nature_of(self, category_id: Optional[str]) -> Optional[Nature]:
        """Return a category's effective nature (its family's nature)."""
        family = self.family_of(category_id)
        return family.nature if family else None

    def categories_in(self, family_id: str) -> tuple[Category, ...]:
        return tuple(c for c in self.categories if c.family_id == family_id)

    def families_of_nature(self, nature: Nature) -> tuple[Family, ...]:
        return tuple(f for f in self.families if f.nature == nature)

    def active_accounts(self) -> tuple[Account, ...]:
        """Accounts offered for new entries."""
        return tuple(a for a in self.accounts if a.active)

    def active_categories(self) -> tuple[Category, ...]:
        """Categories offered for new entries."""
        return tuple(c for c in self.categories if c.active)


def account_usage_count(transactions: Iterable[Transaction], account_id: str) -> int:
    """Count transactions that use an account as source or transfer destination."""
    return sum(
        1
        for txn in transactions
        if txn.account_id == account_id
        or (txn.type == TransactionType.TRANSFER and txn.transfer_account_id == account_id)
    )


def category_usage_count(transactions: Iterable[Transaction], category_id: str) -> int:
    """Count transactions assigned to a category."""
    return sum(1 for txn in transactions if txn.category_id == category_id)


def ensure_account_deletable(transactions: Iterable[Transaction], account_id: str) -> None:
    """Raise DependencyError if any transaction still references the account."""
    count = account_usage_count(transactions, account_id)
    if count > 0:
        raise DependencyError(delete_blocked("account", account_id, count))


def ensure_category_deletable(transactions: Iterable[Transaction], category_id: str) -> None:
    """Raise DependencyError if any transaction still uses the category."""
    count = category_usage_count(transactions, category_id)
    if count > 0:
        raise DependencyError(delete_blocked("category", category_id, count))
