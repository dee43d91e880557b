"""Domain model entities for tally.

These are pure data classes representing ledger concepts, independent of
the database schema. Every engine operation receives these frozen values
and returns new ones, so they can be shared freely between calls.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

# Equality tolerance for monetary comparisons
AMOUNT_TOLERANCE = Decimal("0.01")


class TransactionType(str, Enum):
    """Kind of ledger movement."""

    EXPENSE = "EXPENSE"
    INCOME = "INCOME"
    TRANSFER = "TRANSFER"


class Nature(str, Enum):
    """Top-level classification of a family. Never TRANSFER."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class RangeKind(str, Enum):
    """Period kinds understood by the period resolver."""

    MONTH = "MONTH"
    QUARTER = "QUARTER"
    YEAR = "YEAR"
    CUSTOM = "CUSTOM"
    ALL = "ALL"


@dataclass(frozen=True)
class AccountGroup:
    """Account group domain entity."""

    id: str
    name: str


@dataclass(frozen=True)
class Account:
    """Account domain entity.

    Inactive accounts are hidden from new-entry selectors but remain valid
    targets for historical transactions.
    """

    id: str
    name: str
    initial_balance: Decimal = Decimal("0")
    group_id: Optional[str] = None
    active: bool = True


@dataclass(frozen=True)
class Family:
    """Family domain entity, the parent of categories."""

    id: str
    name: str
    nature: Nature


@dataclass(frozen=True)
class Category:
    """Category domain entity. Its effective nature is its family's."""

    id: str
    name: str
    family_id: str
    active: bool = True


@dataclass(frozen=True)
class Transaction:
    """Ledger entry.

    Amounts are signed: EXPENSE negative, INCOME positive, TRANSFER negative
    on the source leg. A TRANSFER has no category or family; its
    destination leg is implied by ``transfer_account_id``.
    """

    id: str
    date: str
    amount: Decimal
    description: str
    type: TransactionType
    account_id: str
    category_id: Optional[str] = None
    family_id: Optional[str] = None
    transfer_account_id: Optional[str] = None
    attachment: Optional[str] = None

    @property
    def year(self) -> str:
        return self.date[:4]


@dataclass(frozen=True)
class ProposedTransaction:
    """Import-staged candidate ledger entry. Never persisted directly."""

    id: str
    date: str
    amount: Decimal
    description: str
    type: TransactionType
    account_id: str
    category_id: Optional[str] = None
    family_id: Optional[str] = None
    transfer_account_id: Optional[str] = None
    attachment: Optional[str] = None
    is_duplicate_candidate: bool = False
    line_number: int = 0

    @property
    def is_assigned(self) -> bool:
        """True once a category or a transfer destination has been chosen."""
        if self.type == TransactionType.TRANSFER:
            return bool(self.transfer_account_id)
        return bool(self.category_id)

    def to_transaction(self) -> Transaction:
        """Convert to a ledger entry, dropping the staging-only fields."""
        return Transaction(
            id=self.id,
            date=self.date,
            amount=self.amount,
            description=self.description,
            type=self.type,
            account_id=self.account_id,
            category_id=self.category_id,
            family_id=self.family_id,
            transfer_account_id=self.transfer_account_id,
            attachment=self.attachment,
        )

    def evolve(self, **changes) -> "ProposedTransaction":
        return replace(self, **changes)


@dataclass(frozen=True)
class AccountRole:
    """Filter slot targeting an account (source or transfer destination)."""

    id: str


@dataclass(frozen=True)
class CategoryRole:
    """Filter slot targeting a category."""

    id: str


Role = Union[AccountRole, CategoryRole]


@dataclass(frozen=True)
class PeriodWindow:
    """Inclusive ``[start, end]`` window of canonical date strings.

    ``None`` on either side means that side is unbounded.
    """

    start: Optional[str] = None
    end: Optional[str] = None

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None

    def contains(self, date_str: str) -> bool:
        if self.start is not None and date_str < self.start:
            return False
        if self.end is not None and date_str > self.end:
            return False
        return True


UNBOUNDED = PeriodWindow()


@dataclass(frozen=True)
class CategoryTotal:
    """Category line inside a family rollup."""

    category: Category
    total: Decimal


@dataclass(frozen=True)
class FamilyRollup:
    """Family total with its per-category breakdown."""

    family: Family
    total: Decimal
    categories: tuple[CategoryTotal, ...] = ()


@dataclass(frozen=True)
class LedgerSummary:
    """Balances and period totals computed in one pass."""

    balances: dict[str, Decimal]
    global_balance: Decimal
    period_income: Decimal
    period_expense: Decimal
    incomes: tuple[FamilyRollup, ...] = ()
    expenses: tuple[FamilyRollup, ...] = ()

    @property
    def period_net(self) -> Decimal:
        return self.period_income + self.period_expense


@dataclass(frozen=True)
class Ledger:
    """Immutable snapshot of reference data and the transaction list."""

    accounts: tuple[Account, ...] = ()
    families: tuple[Family, ...] = ()
    categories: tuple[Category, ...] = ()
    groups: tuple[AccountGroup, ...] = ()
    transactions: tuple[Transaction, ...] = field(default_factory=tuple)
