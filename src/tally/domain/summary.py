"""Balance and rollup domain service."""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Sequence

from tally.domain.entities import (
    UNBOUNDED,
    CategoryTotal,
    FamilyRollup,
    LedgerSummary,
    Nature,
    PeriodWindow,
    Transaction,
    TransactionType,
)
from tally.domain.reference import ReferenceIndex

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class SummaryService:
    """Service computing balances, period totals and family rollups."""

    def __init__(self, index: ReferenceIndex):
        """Initialize summary service.

        Args:
            index: Reference index for the ledger being summarized
        """
        self.index = index

    def summarize(
        self,
        transactions: Sequence[Transaction],
        window: PeriodWindow = UNBOUNDED,
    ) -> LedgerSummary:
        """Build balances, period totals and both rollups.

        Args:
            transactions: Full transaction list, not just the window subset
            window: Period window for income/expense totals and rollups

        Returns:
            LedgerSummary
        """
        summary = self.compute_balances(transactions, window)
        return LedgerSummary(
            balances=summary.balances,
            global_balance=summary.global_balance,
            period_income=summary.period_income,
            period_expense=summary.period_expense,
            incomes=self.build_rollup(transactions, Nature.INCOME, window),
            expenses=self.build_rollup(transactions, Nature.EXPENSE, window),
        )

    def compute_balances(
        self,
        transactions: Sequence[Transaction],
        window: PeriodWindow = UNBOUNDED,
    ) -> LedgerSummary:
        """Compute per-account balances and period totals in a single pass.

        Legs pointing at unknown accounts are dropped. Transfers move the
        magnitude of their amount from source to destination and never count
        toward period income or expense.
        """
        balances: dict[str, Decimal] = {
            account.id: account.initial_balance for account in self.index.accounts
        }
        period_income = ZERO
        period_expense = ZERO
        dropped_legs = 0

        for txn in transactions:
            if txn.type == TransactionType.TRANSFER:
                magnitude = abs(txn.amount)
                legs = ((txn.account_id, -magnitude), (txn.transfer_account_id, magnitude))
            else:
                legs = ((txn.account_id, txn.amount),)

            for account_id, effect in legs:
                if account_id in balances:
                    balances[account_id] += effect
                else:
                    dropped_legs += 1

            if window.contains(txn.date):
                if txn.type == TransactionType.INCOME:
                    period_income += txn.amount
                elif txn.type == TransactionType.EXPENSE:
                    period_expense += txn.amount

        if dropped_legs:
            logger.debug("Dropped %d legs referencing unknown accounts", dropped_legs)

        return LedgerSummary(
            balances=balances,
            global_balance=sum(balances.values(), ZERO),
            period_income=period_income,
            period_expense=period_expense,
        )

    def build_rollup(
        self,
        transactions: Sequence[Transaction],
        nature: Nature,
        window: PeriodWindow = UNBOUNDED,
    ) -> tuple[FamilyRollup, ...]:
        """Build the family -> category breakdown for one nature.

        Every family of the nature and every category of each family is
        listed, zero totals included. Categories within a family and the
        families themselves are ordered by descending absolute total; ties
        keep reference-list order. Transactions whose category is unknown
        are left out.
        """
        category_totals: dict[str, Decimal] = defaultdict(lambda: ZERO)

        for txn in transactions:
            if not txn.category_id or not window.contains(txn.date):
                continue
            category = self.index.category(txn.category_id)
            if category is None:
                continue
            category_totals[category.id] += txn.amount

        rollups = []
        for family in self.index.families_of_nature(nature):
            lines = [
                CategoryTotal(category=category, total=category_totals.get(category.id, ZERO))
                for category in self.index.categories_in(family.id)
            ]
            lines.sort(key=lambda line: abs(line.total), reverse=True)
            rollups.append(
                FamilyRollup(
                    family=family,
                    total=sum((line.total for line in lines), ZERO),
                    categories=tuple(lines),
                )
            )

        rollups.sort(key=lambda rollup: abs(rollup.total), reverse=True)
        return tuple(rollups)
