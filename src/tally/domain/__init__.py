"""Domain layer for tally application."""

from tally.domain.reference import ReferenceIndex
from tally.domain.period import resolve_period
from tally.domain.summary import SummaryService
from tally.domain.query import TransactionQuery, run_query
from tally.domain.statement_import import StatementImportService
from tally.domain.transaction import TransactionService

__all__ = [
    "ReferenceIndex",
    "resolve_period",
    "SummaryService",
    "TransactionQuery",
    "run_query",
    "StatementImportService",
    "TransactionService",
]
