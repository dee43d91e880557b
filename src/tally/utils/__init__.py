"""Utility functions for tally."""

from tally.utils.date_parser import parse_date, normalize_statement_date
from tally.utils.amount_parser import parse_amount
from tally.utils.account_resolver import resolve_account, resolve_category

__all__ = [
    "parse_date",
    "normalize_statement_date",
    "parse_amount",
    "resolve_account",
    "resolve_category",
]
