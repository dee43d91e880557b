"""Transaction query engine: filtering, sorting and pagination."""

import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Iterable, Optional, Sequence

from tally.domain.entities import (
    AMOUNT_TOLERANCE,
    UNBOUNDED,
    AccountRole,
    CategoryRole,
    PeriodWindow,
    Role,
    Transaction,
    TransactionType,
)
from tally.domain.errors import ValidationError


class AttachmentFilter(str, Enum):
    ALL = "ALL"
    YES = "YES"
    NO = "NO"


class SortField(str, Enum):
    DATE = "DATE"
    DESCRIPTION = "DESCRIPTION"
    AMOUNT = "AMOUNT"


class AmountOperator(str, Enum):
    GREATER = ">"
    LESS = "<"
    EQUAL = "="


_AMOUNT_FILTER = re.compile(r"^\s*([<>=])\s*(.+?)\s*$")


@dataclass(frozen=True)
class AmountFilter:
    """Comparison against the absolute value of a transaction amount."""

    operator: AmountOperator
    value: Decimal

    @classmethod
    def parse(cls, text: str) -> "AmountFilter":
        """Parse expressions such as ``">100"``, ``"< 20.5"`` or ``"=12"``.

        Raises:
            ValidationError: If the expression is malformed
        """
        match = _AMOUNT_FILTER.match(text or "")
        if match is None:
            raise ValidationError(f"Invalid amount filter '{text}': expected >N, <N or =N")
        try:
            value = Decimal(match.group(2))
        except InvalidOperation:
            raise ValidationError(f"Invalid amount filter value '{match.group(2)}'")
        if not value.is_finite():
            raise ValidationError(f"Invalid amount filter value '{match.group(2)}'")
        return cls(operator=AmountOperator(match.group(1)), value=value)

    def matches(self, amount: Decimal) -> bool:
        magnitude = abs(amount)
        if self.operator == AmountOperator.GREATER:
            return magnitude > self.value
        if self.operator == AmountOperator.LESS:
            return magnitude < self.value
        return abs(magnitude - self.value) < AMOUNT_TOLERANCE


@dataclass(frozen=True)
class TransactionQuery:
    """Filter and sort state for a transaction view.

    ``entry`` and ``exit`` are the two dual-role filter slots; ``None``
    means the slot is inactive ("ALL").
    """

    entry: Optional[Role] = None
    exit: Optional[Role] = None
    search: str = ""
    attachment: AttachmentFilter = AttachmentFilter.ALL
    amount: Optional[AmountFilter] = None
    window: PeriodWindow = UNBOUNDED
    sort_field: SortField = SortField.DATE
    descending: bool = True


@dataclass(frozen=True)
class QueryPage:
    """One page of query results."""

    items: tuple[Transaction, ...]
    page: int
    page_size: Optional[int]
    page_count: int
    total_count: int


def role_matches(role: Role, txn: Transaction) -> bool:
    """Return True if a role is part of the transaction's participant set."""
    if isinstance(role, AccountRole):
        if txn.account_id == role.id:
            return True
        return txn.type == TransactionType.TRANSFER and txn.transfer_account_id == role.id
    if isinstance(role, CategoryRole):
        return txn.category_id is not None and txn.category_id == role.id
    raise TypeError(f"Unsupported role: {role!r}")


def matches_roles(txn: Transaction, entry: Optional[Role], exit: Optional[Role]) -> bool:
    """Inclusive OR across the active filter slots.

    With both slots inactive everything passes; otherwise a transaction
    passes if any active slot is among its participants.
    """
    active = [role for role in (entry, exit) if role is not None]
    if not active:
        return True
    return any(role_matches(role, txn) for role in active)


def matches_query(txn: Transaction, query: TransactionQuery) -> bool:
    if not query.window.contains(txn.date):
        return False
    if not matches_roles(txn, query.entry, query.exit):
        return False
    if query.search and query.search.casefold() not in (txn.description or "").casefold():
        return False
    if query.attachment == AttachmentFilter.YES and not txn.attachment:
        return False
    if query.attachment == AttachmentFilter.NO and txn.attachment:
        return False
    if query.amount is not None and not query.amount.matches(txn.amount):
        return False
    return True


def filter_transactions(
    transactions: Iterable[Transaction], query: TransactionQuery
) -> list[Transaction]:
    """Return the transactions matching every filter, in input order."""
    return [txn for txn in transactions if matches_query(txn, query)]


def sort_transactions(
    transactions: Iterable[Transaction],
    field: SortField = SortField.DATE,
    descending: bool = True,
) -> list[Transaction]:
    """Stable sort by date, description (case-insensitive) or absolute amount."""
    if field == SortField.DATE:
        key = lambda txn: txn.date
    elif field == SortField.DESCRIPTION:
        key = lambda txn: (txn.description or "").casefold()
    else:
        key = lambda txn: abs(txn.amount)
    return sorted(transactions, key=key, reverse=descending)


def paginate(
    transactions: Sequence[Transaction], page: int = 1, page_size: Optional[int] = None
) -> QueryPage:
    """Slice one page out of an ordered result.

    ``page_size=None`` shows everything on a single page.

    Raises:
        ValidationError: If page or page_size is below 1
    """
    if page < 1:
        raise ValidationError(f"Page must be 1 or greater, got {page}")
    total = len(transactions)
    if page_size is None:
        return QueryPage(
            items=tuple(transactions) if page == 1 else (),
            page=page,
            page_size=None,
            page_count=1,
            total_count=total,
        )
    if page_size < 1:
        raise ValidationError(f"Page size must be 1 or greater, got {page_size}")

    offset = (page - 1) * page_size
    return QueryPage(
        items=tuple(transactions[offset : offset + page_size]),
        page=page,
        page_size=page_size,
        page_count=math.ceil(total / page_size),
        total_count=total,
    )


def run_query(
    transactions: Sequence[Transaction],
    query: TransactionQuery,
    page: int = 1,
    page_size: Optional[int] = 25,
) -> QueryPage:
    """Filter, sort and paginate a transaction list."""
    matched = filter_transactions(transactions, query)
    ordered = sort_transactions(matched, query.sort_field, query.descending)
    return paginate(ordered, page=page, page_size=page_size)
