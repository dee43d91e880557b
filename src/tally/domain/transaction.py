"""Transaction write path: invariant checks and ledger list updates.

Every operation takes the current transaction list and returns a new
tuple; inputs are never mutated.
"""

import logging
import uuid
import dataclasses
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from tally.domain.entities import Transaction, TransactionType
from tally.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    category_not_found,
    transaction_not_found,
)
from tally.domain.reference import ReferenceIndex
from tally.utils.date_parser import is_canonical_date

logger = logging.getLogger(__name__)


def new_id() -> str:
    """Generate an opaque entity id."""
    return uuid.uuid4().hex


class TransactionService:
    """Service validating and applying transaction writes."""

    def __init__(self, index: ReferenceIndex):
        """Initialize transaction service.

        Args:
            index: Reference index used to check accounts and categories
        """
        self.index = index

    def build_transaction(
        self,
        date: str,
        amount: Decimal,
        description: str,
        type: TransactionType,
        account_id: str,
        category_id: Optional[str] = None,
        transfer_account_id: Optional[str] = None,
        attachment: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> Transaction:
        """Create a validated transaction value.

        Returns:
            Transaction with family id derived and amount sign normalized

        Raises:
            ValidationError: If a ledger invariant is violated
            NotFoundError: If the account or category doesn't exist
        """
        return self.validate(
            Transaction(
                id=transaction_id or new_id(),
                date=date,
                amount=amount,
                description=description or "",
                type=TransactionType(type),
                account_id=account_id,
                category_id=category_id or None,
                transfer_account_id=transfer_account_id or None,
                attachment=attachment or None,
            )
        )

    def validate(self, txn: Transaction) -> Transaction:
        """Check a transaction against the ledger invariants.

        The family id is always re-derived from the category; a supplied
        family id that disagrees with it is rejected. Amount signs are
        normalized: EXPENSE and TRANSFER negative, INCOME positive.

        Returns:
            The normalized transaction

        Raises:
            ValidationError: If a ledger invariant is violated
            NotFoundError: If the account or category doesn't exist
        """
        if not is_canonical_date(txn.date):
            raise ValidationError(f"Transaction date '{txn.date}' is not in YYYY-MM-DD form")

        if self.index.account(txn.account_id) is None:
            raise NotFoundError(account_not_found(txn.account_id))

        if txn.type == TransactionType.TRANSFER:
            if not txn.transfer_account_id:
                raise ValidationError("Transfer requires a destination account")
            if txn.transfer_account_id == txn.account_id:
                raise ValidationError("Transfer destination must differ from its source account")
            if self.index.account(txn.transfer_account_id) is None:
                raise NotFoundError(account_not_found(txn.transfer_account_id))
            if txn.category_id or txn.family_id:
                raise ValidationError("Transfers cannot carry a category or family")
            return dataclasses.replace(txn, amount=-abs(txn.amount))

        if txn.transfer_account_id:
            raise ValidationError(
                f"{txn.type.value.title()} transactions cannot have a transfer destination"
            )
        if not txn.category_id:
            raise ValidationError(f"{txn.type.value.title()} transactions require a category")
        category = self.index.category(txn.category_id)
        if category is None:
            raise NotFoundError(category_not_found(txn.category_id))
        if txn.family_id and txn.family_id != category.family_id:
            raise ValidationError(
                f"Family {txn.family_id} does not match category {category.id} "
                f"(belongs to {category.family_id})"
            )

        amount = abs(txn.amount)
        if txn.type == TransactionType.EXPENSE:
            amount = -amount
        return dataclasses.replace(txn, family_id=category.family_id, amount=amount)

    def add(self, transactions: Sequence[Transaction], txn: Transaction) -> tuple[Transaction, ...]:
        """Validate and prepend a new transaction.

        Raises:
            ValidationError: If the id is already in use or an invariant fails
        """
        txn = self.validate(txn)
        if any(existing.id == txn.id for existing in transactions):
            raise ValidationError(f"Transaction id '{txn.id}' already exists")
        return (txn,) + tuple(transactions)

    def replace(
        self, transactions: Sequence[Transaction], txn: Transaction
    ) -> tuple[Transaction, ...]:
        """Replace the transaction with the same id, re-validating it.

        The family is re-derived from the (possibly new) category.

        Raises:
            NotFoundError: If no transaction has that id
        """
        txn = self.validate(dataclasses.replace(txn, family_id=None))
        self.require(transactions, txn.id)
        return tuple(txn if existing.id == txn.id else existing for existing in transactions)

    def remove(
        self, transactions: Sequence[Transaction], transaction_id: str
    ) -> tuple[Transaction, ...]:
        """Remove one transaction.

        Raises:
            NotFoundError: If no transaction has that id
        """
        self.require(transactions, transaction_id)
        return tuple(txn for txn in transactions if txn.id != transaction_id)

    def duplicate(
        self,
        transactions: Sequence[Transaction],
        transaction_id: str,
        date: Optional[str] = None,
        copy_attachment: bool = False,
    ) -> tuple[tuple[Transaction, ...], Transaction]:
        """Copy a transaction under a new id and prepend the copy.

        The attachment is only carried over when explicitly requested.

        Returns:
            Tuple of (new transaction list, the copy)
        """
        original = self.require(transactions, transaction_id)
        copy = dataclasses.replace(
            original,
            id=new_id(),
            date=date or original.date,
            attachment=original.attachment if copy_attachment else None,
        )
        return self.add(transactions, copy), copy

    def delete_year(self, transactions: Sequence[Transaction], year: str) -> tuple[Transaction, ...]:
        """Remove every transaction dated in the given year."""
        if len(year) != 4 or not year.isdigit():
            raise ValidationError(f"Invalid year '{year}'")
        kept = tuple(txn for txn in transactions if txn.year != year)
        logger.info("Deleted %d transactions from %s", len(transactions) - len(kept), year)
        return kept

    def delete_selection(
        self, transactions: Sequence[Transaction], transaction_ids: Iterable[str]
    ) -> tuple[Transaction, ...]:
        """Remove the selected transactions; unknown ids are ignored."""
        selected = set(transaction_ids)
        return tuple(txn for txn in transactions if txn.id not in selected)

    def purge(self, transactions: Sequence[Transaction]) -> tuple[Transaction, ...]:
        """Remove every transaction of the ledger."""
        logger.info("Purged %d transactions", len(transactions))
        return ()

    @staticmethod
    def require(transactions: Sequence[Transaction], transaction_id: str) -> Transaction:
        for txn in transactions:
            if txn.id == transaction_id:
                return txn
        raise NotFoundError(transaction_not_found(transaction_id))
