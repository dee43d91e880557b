"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, making it easy to change when
the database schema changes.
"""

from decimal import Decimal

from tally.domain import entities as domain
from tally.database.models import (
    Account as ORMAccount,
    AccountGroup as ORMAccountGroup,
    Category as ORMCategory,
    Family as ORMFamily,
    Transaction as ORMTransaction,
)


def _to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def account_group_to_domain(orm_group: ORMAccountGroup) -> domain.AccountGroup:
    """Convert SQLAlchemy AccountGroup model to domain AccountGroup entity."""
    return domain.AccountGroup(id=orm_group.id, name=orm_group.name)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        initial_balance=_to_decimal(orm_account.initial_balance or 0),
        group_id=orm_account.group_id,
        active=bool(orm_account.active) if orm_account.active is not None else True,
    )


def family_to_domain(orm_family: ORMFamily) -> domain.Family:
    """Convert SQLAlchemy Family model to domain Family entity."""
    return domain.Family(
        id=orm_family.id,
        name=orm_family.name,
        nature=domain.Nature(orm_family.nature),
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        family_id=orm_category.family_id,
        active=bool(orm_category.active) if orm_category.active is not None else True,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        date=orm_transaction.date,
        amount=_to_decimal(orm_transaction.amount),
        description=orm_transaction.description or "",
        type=domain.TransactionType(orm_transaction.type),
        account_id=orm_transaction.account_id,
        category_id=orm_transaction.category_id,
        family_id=orm_transaction.family_id,
        transfer_account_id=orm_transaction.transfer_account_id,
        attachment=orm_transaction.attachment,
    )


def transaction_to_orm(transaction: domain.Transaction) -> ORMTransaction:
    """Convert a domain Transaction entity into a new SQLAlchemy row."""
    orm_transaction = ORMTransaction(id=transaction.id)
    apply_transaction(orm_transaction, transaction)
    return orm_transaction


def apply_transaction(orm_transaction: ORMTransaction, transaction: domain.Transaction) -> None:
    """Copy every mutable field of a domain transaction onto a row."""
    orm_transaction.date = transaction.date
    orm_transaction.amount = transaction.amount
    orm_transaction.description = transaction.description
    orm_transaction.type = transaction.type.value
    orm_transaction.account_id = transaction.account_id
    orm_transaction.category_id = transaction.category_id
    orm_transaction.family_id = transaction.family_id
    orm_transaction.transfer_account_id = transaction.transfer_account_id
    orm_transaction.attachment = transaction.attachment
