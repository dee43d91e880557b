"""Statement import domain service.

Pasted or file-derived statement text goes through three steps:

1. ``parse_statement`` splits lines and fields and normalizes dates and
   amounts. Malformed lines are reported as ``SkippedLine`` records and
   never abort the batch.
2. ``StatementImportService.stage`` turns parsed rows into proposed
   transactions for one target account, suggesting categories and
   flagging likely duplicates of existing ledger entries.
3. ``StatementImportService.commit`` moves every assigned row into the
   ledger and keeps the rest staged for correction.

The session is a plain immutable value owned by the caller; each step
returns a new session.
"""

import dataclasses
import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Sequence

from tally.domain.entities import (
    AMOUNT_TOLERANCE,
    Category,
    ProposedTransaction,
    Transaction,
    TransactionType,
)
from tally.domain.errors import (
    DomainError,
    NotFoundError,
    ValidationError,
    account_not_found,
    category_not_found,
)
from tally.domain.reference import ReferenceIndex
from tally.domain.transaction import TransactionService, new_id
from tally.utils.amount_parser import parse_amount
from tally.utils.date_parser import normalize_statement_date

logger = logging.getLogger(__name__)

_PRIMARY_DELIMITERS = re.compile(r"[;\t]")


class ImportState(str, Enum):
    RAW_INPUT = "RAW_INPUT"
    PARSED_ROWS = "PARSED_ROWS"
    STAGED_PROPOSALS = "STAGED_PROPOSALS"
    PARTIAL_COMMIT = "PARTIAL_COMMIT"
    FULL_COMMIT = "FULL_COMMIT"
    DISCARDED = "DISCARDED"


@dataclass(frozen=True)
class ParsedRow:
    """Statement line after field assignment and normalization."""

    line_number: int
    date: str
    description: str
    amount: Decimal


@dataclass(frozen=True)
class SkippedLine:
    """Statement line left out of the proposals, with the reason."""

    line_number: int
    text: str
    reason: str


@dataclass(frozen=True)
class RejectedRow:
    """Assigned row that failed validation on commit and stays staged."""

    row: ProposedTransaction
    reason: str


@dataclass(frozen=True)
class ParseResult:
    rows: tuple[ParsedRow, ...] = ()
    skipped: tuple[SkippedLine, ...] = ()
    state: ImportState = ImportState.PARSED_ROWS


@dataclass(frozen=True)
class ImportSession:
    """Staging area for one statement import."""

    account_id: str
    rows: tuple[ProposedTransaction, ...] = ()
    skipped: tuple[SkippedLine, ...] = ()
    state: ImportState = ImportState.STAGED_PROPOSALS
    committed_count: int = 0
    discarded_count: int = 0

    @property
    def is_closed(self) -> bool:
        return self.state in (ImportState.FULL_COMMIT, ImportState.DISCARDED)

    @property
    def assigned(self) -> tuple[ProposedTransaction, ...]:
        return tuple(row for row in self.rows if row.is_assigned)

    @property
    def pending(self) -> tuple[ProposedTransaction, ...]:
        return tuple(row for row in self.rows if not row.is_assigned)

    @property
    def duplicates(self) -> tuple[ProposedTransaction, ...]:
        return tuple(row for row in self.rows if row.is_duplicate_candidate)

    def row(self, row_id: str) -> ProposedTransaction:
        for row in self.rows:
            if row.id == row_id:
                return row
        raise NotFoundError(f"Staged row {row_id} not found")


@dataclass(frozen=True)
class CommitResult:
    """Outcome of a commit: the new ledger and what is still pending."""

    transactions: tuple[Transaction, ...]
    committed: tuple[Transaction, ...]
    session: ImportSession
    rejected: tuple[RejectedRow, ...] = ()

    @property
    def state(self) -> ImportState:
        return self.session.state

    @property
    def committed_count(self) -> int:
        return len(self.committed)

    @property
    def pending(self) -> tuple[ProposedTransaction, ...]:
        return self.session.rows


def split_fields(line: str) -> list[str]:
    """Split a line on ``;`` or tab, falling back to ``,``."""
    fields = [field.strip() for field in _PRIMARY_DELIMITERS.split(line)]
    if len(fields) < 2:
        fields = [field.strip() for field in line.split(",")]
    return fields


def parse_statement(text: str) -> ParseResult:
    """Parse raw statement text into normalized rows.

    The first field is the date, the second the description and the last
    the amount, however many columns sit in between. Blank lines are
    ignored; every other unusable line is reported in ``skipped``. A
    leading byte-order mark is dropped.
    """
    text = (text or "").removeprefix("\ufeff")
    rows: list[ParsedRow] = []
    skipped: list[SkippedLine] = []

    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue

        fields = split_fields(line)
        if len(fields) < 2:
            skipped.append(SkippedLine(line_number, line, "Too few fields"))
            continue

        try:
            txn_date = normalize_statement_date(fields[0])
        except ValueError as e:
            skipped.append(SkippedLine(line_number, line, str(e)))
            continue

        try:
            amount = parse_amount(fields[-1])
        except ValueError as e:
            skipped.append(SkippedLine(line_number, line, str(e)))
            continue

        rows.append(ParsedRow(line_number, txn_date, fields[1], amount))

    for line in skipped:
        logger.debug("Skipped line %d: %s", line.line_number, line.reason)

    return ParseResult(rows=tuple(rows), skipped=tuple(skipped))


def _duplicate_key(account_id: str, date: str, description: str) -> tuple[str, str, str]:
    return (account_id, date, (description or "").casefold())


class DuplicateIndex:
    """Existing ledger entries keyed by account, date and description."""

    def __init__(self, transactions: Iterable[Transaction]):
        self._amounts: dict[tuple[str, str, str], list[Decimal]] = defaultdict(list)
        for txn in transactions:
            self._amounts[_duplicate_key(txn.account_id, txn.date, txn.description)].append(
                txn.amount
            )

    def matches(self, account_id: str, date: str, description: str, amount: Decimal) -> bool:
        candidates = self._amounts.get(_duplicate_key(account_id, date, description), ())
        return any(abs(existing - amount) < AMOUNT_TOLERANCE for existing in candidates)


class StatementImportService:
    """Service staging and committing statement imports."""

    def __init__(self, index: ReferenceIndex):
        """Initialize statement import service.

        Args:
            index: Reference index for account and category lookups
        """
        self.index = index
        self.transaction_service = TransactionService(index)

    def suggest_category(
        self, description: str, transactions: Sequence[Transaction]
    ) -> Optional[Category]:
        """Suggest a category for a statement description.

        History first: the first categorized ledger entry whose description
        contains the new one. Otherwise the first active category whose
        name appears in the description.
        """
        needle = (description or "").casefold()
        if not needle:
            return None

        for txn in transactions:
            if txn.category_id and needle in (txn.description or "").casefold():
                category = self.index.category(txn.category_id)
                if category is not None:
                    return category

        for category in self.index.active_categories():
            name = category.name.casefold()
            if name and name in needle:
                return category

        return None

    def stage(
        self, text: str, account_id: str, transactions: Sequence[Transaction]
    ) -> ImportSession:
        """Parse statement text into proposals for one target account.

        Args:
            text: Raw delimited statement text
            account_id: Account the statement belongs to
            transactions: Current ledger, for suggestions and duplicate checks

        Returns:
            ImportSession in the STAGED_PROPOSALS state

        Raises:
            NotFoundError: If the target account doesn't exist
        """
        if self.index.account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))

        parsed = parse_statement(text)
        duplicates = DuplicateIndex(transactions)

        rows = []
        for parsed_row in parsed.rows:
            row = ProposedTransaction(
                id=new_id(),
                date=parsed_row.date,
                amount=parsed_row.amount,
                description=parsed_row.description,
                type=TransactionType.EXPENSE if parsed_row.amount < 0 else TransactionType.INCOME,
                account_id=account_id,
                is_duplicate_candidate=duplicates.matches(
                    account_id, parsed_row.date, parsed_row.description, parsed_row.amount
                ),
                line_number=parsed_row.line_number,
            )
            suggestion = self.suggest_category(row.description, transactions)
            if suggestion is not None:
                row = row.evolve(category_id=suggestion.id, family_id=suggestion.family_id)
            rows.append(row)

        session = ImportSession(account_id=account_id, rows=tuple(rows), skipped=parsed.skipped)
        logger.info(
            "Staged %d rows for account %s (%d skipped, %d possible duplicates)",
            len(session.rows),
            account_id,
            len(session.skipped),
            len(session.duplicates),
        )
        return session

    def assign_category(
        self, session: ImportSession, row_id: str, category_id: str
    ) -> ImportSession:
        """Assign a category to a staged row.

        The row becomes EXPENSE or INCOME again according to its sign, so
        this also undoes an earlier transfer reclassification.
        """
        self._require_open(session)
        category = self.index.category(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        row = session.row(row_id)
        return self._replace_row(
            session,
            row.evolve(
                type=TransactionType.EXPENSE if row.amount < 0 else TransactionType.INCOME,
                category_id=category.id,
                family_id=category.family_id,
                transfer_account_id=None,
            ),
        )

    def mark_transfer(
        self, session: ImportSession, row_id: str, counterpart_account_id: str
    ) -> ImportSession:
        """Reclassify a staged row as a transfer with another account.

        Negative rows leave the target account; positive rows arrive into
        it and are turned around on commit.
        """
        self._require_open(session)
        row = session.row(row_id)
        if self.index.account(counterpart_account_id) is None:
            raise NotFoundError(account_not_found(counterpart_account_id))
        if counterpart_account_id == row.account_id:
            raise ValidationError("Transfer destination must differ from its source account")
        return self._replace_row(
            session,
            row.evolve(
                type=TransactionType.TRANSFER,
                category_id=None,
                family_id=None,
                transfer_account_id=counterpart_account_id,
            ),
        )

    def reassign_account(
        self,
        session: ImportSession,
        row_id: str,
        account_id: str,
        transactions: Sequence[Transaction],
    ) -> ImportSession:
        """Move a staged row to another account and recheck duplicates there."""
        self._require_open(session)
        if self.index.account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        row = session.row(row_id)
        if row.type == TransactionType.TRANSFER and row.transfer_account_id == account_id:
            raise ValidationError("Transfer destination must differ from its source account")
        duplicates = DuplicateIndex(transactions)
        return self._replace_row(
            session,
            row.evolve(
                account_id=account_id,
                is_duplicate_candidate=duplicates.matches(
                    account_id, row.date, row.description, row.amount
                ),
            ),
        )

    def update_description(
        self,
        session: ImportSession,
        row_id: str,
        description: str,
        transactions: Sequence[Transaction],
    ) -> ImportSession:
        """Edit a staged row's description and recheck duplicates."""
        self._require_open(session)
        row = session.row(row_id)
        duplicates = DuplicateIndex(transactions)
        return self._replace_row(
            session,
            row.evolve(
                description=description,
                is_duplicate_candidate=duplicates.matches(
                    row.account_id, row.date, description, row.amount
                ),
            ),
        )

    def discard_rows(self, session: ImportSession, row_ids: Iterable[str]) -> ImportSession:
        """Drop selected rows from the staging area."""
        self._require_open(session)
        selected = set(row_ids)
        kept = tuple(row for row in session.rows if row.id not in selected)
        return self._with_rows(session, kept, discarded=len(session.rows) - len(kept))

    def discard_duplicates(self, session: ImportSession) -> ImportSession:
        """Drop every row flagged as a duplicate candidate."""
        return self.discard_rows(session, [row.id for row in session.duplicates])

    def discard(self, session: ImportSession) -> ImportSession:
        """Abandon the import, dropping all remaining rows."""
        self._require_open(session)
        logger.info("Discarded import session with %d rows", len(session.rows))
        return dataclasses.replace(
            session,
            rows=(),
            state=ImportState.DISCARDED,
            discarded_count=session.discarded_count + len(session.rows),
        )

    def commit(
        self, session: ImportSession, transactions: Sequence[Transaction]
    ) -> CommitResult:
        """Commit every assigned row; keep unassigned rows staged.

        Committed rows are prepended to the ledger in staged order. An
        assigned row that fails validation, for example because its account
        was deleted after staging, is not committed: it stays staged and is
        reported in ``rejected``.

        Returns:
            CommitResult; its session holds the unassigned and rejected rows
            and is PARTIAL_COMMIT while any remain, FULL_COMMIT otherwise

        Raises:
            ValidationError: If the session is closed or a committed id is
                already in the ledger
        """
        self._require_open(session)
        committed: list[Transaction] = []
        rejected: list[RejectedRow] = []
        for row in session.assigned:
            try:
                committed.append(self.transaction_service.validate(self._to_ledger_entry(row)))
            except DomainError as e:
                logger.info("Row on line %d rejected: %s", row.line_number, e)
                rejected.append(RejectedRow(row, str(e)))

        existing_ids = {txn.id for txn in transactions}
        for txn in committed:
            if txn.id in existing_ids:
                raise ValidationError(f"Transaction id '{txn.id}' already exists")

        committed_ids = {txn.id for txn in committed}
        pending = tuple(row for row in session.rows if row.id not in committed_ids)
        remaining = dataclasses.replace(
            session,
            rows=pending,
            state=ImportState.PARTIAL_COMMIT if pending else ImportState.FULL_COMMIT,
            committed_count=session.committed_count + len(committed),
        )
        logger.info(
            "Committed %d imported transactions, %d still pending (%d rejected)",
            len(committed),
            len(pending),
            len(rejected),
        )
        return CommitResult(
            transactions=tuple(committed) + tuple(transactions),
            committed=tuple(committed),
            session=remaining,
            rejected=tuple(rejected),
        )

    @staticmethod
    def export_pending(session: ImportSession) -> str:
        """Render unassigned rows as ``;``-delimited text that can be re-imported."""
        return StatementImportService.export_rows(session.pending)

    @staticmethod
    def export_rows(rows: Iterable[ProposedTransaction]) -> str:
        lines = []
        for row in rows:
            description = re.sub(r"[;\t\r\n]+", " ", row.description)
            lines.append(f"{row.date};{description};{row.amount:.2f}")
        return "\n".join(lines)

    def _to_ledger_entry(self, row: ProposedTransaction) -> Transaction:
        txn = row.to_transaction()
        if txn.type == TransactionType.TRANSFER and row.amount > 0:
            # Money arriving into the target account: the counterpart is the source
            return dataclasses.replace(
                txn,
                account_id=row.transfer_account_id,
                transfer_account_id=row.account_id,
                amount=-row.amount,
            )
        return txn

    def _replace_row(self, session: ImportSession, updated: ProposedTransaction) -> ImportSession:
        rows = tuple(updated if row.id == updated.id else row for row in session.rows)
        return dataclasses.replace(session, rows=rows)

    def _with_rows(
        self, session: ImportSession, rows: tuple[ProposedTransaction, ...], discarded: int
    ) -> ImportSession:
        state = session.state
        if not rows and session.committed_count:
            state = ImportState.FULL_COMMIT
        elif not rows:
            state = ImportState.DISCARDED
        return dataclasses.replace(
            session,
            rows=rows,
            state=state,
            discarded_count=session.discarded_count + discarded,
        )

    @staticmethod
    def _require_open(session: ImportSession) -> None:
        if session.is_closed:
            raise ValidationError(f"Import session is closed ({session.state.value})")
