"""Ledger storage backed by an SQLAlchemy session."""

import logging
from typing import Iterable, Optional, Sequence
from decimal import Decimal
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tally.database.base import Database
from tally.database.models import (
    Account,
    AccountGroup,
    Category,
    Family,
    Transaction,
    create_session_factory,
)
from tally.database.mappers import (
    account_group_to_domain,
    account_to_domain,
    apply_transaction,
    category_to_domain,
    family_to_domain,
    transaction_to_domain,
    transaction_to_orm,
)
from tally.domain.entities import (
    Account as DomainAccount,
    AccountGroup as DomainAccountGroup,
    Category as DomainCategory,
    Family as DomainFamily,
    Nature,
    Transaction as DomainTransaction,
)
from tally.domain.errors import (
    ConflictError,
    NotFoundError,
    account_not_found,
    category_not_found,
    transaction_not_found,
)
from tally.domain.transaction import new_id

logger = logging.getLogger(__name__)


class SQLAlchemyDatabase(Database):
    """Stores the ledger through SQLAlchemy; any URL the ORM accepts will do."""

    def __init__(self, database_url: str):
        """Bind to a database URL.

        Args:
            database_url: Engine URL such as 'sqlite:///ledger.db'
        """
        self.database_url = database_url
        self.session_factory = create_session_factory(database_url)
        self._session: Optional[Session] = None

    def _get_session(self) -> Session:
        """Return the open session, opening one on first use."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    def _commit(self, conflict_message: str) -> None:
        """Commit the session, translating integrity failures into ConflictError."""
        session = self._get_session()
        try:
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise ConflictError(conflict_message) from e

    def connect(self) -> None:
        """Sessions open lazily, nothing to do here."""
        pass

    def disconnect(self) -> None:
        """Close the current session, if any."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def initialize_schema(self) -> None:
        """Tables are created with the session factory."""
        pass

    # Account group operations
    def create_account_group(self, name: str) -> str:
        """Create an account group. Returns group ID."""
        session = self._get_session()
        group = AccountGroup(id=new_id(), name=name)
        session.add(group)
        self._commit(f"Account group '{name}' could not be created")
        return group.id

    def list_account_groups(self) -> list[DomainAccountGroup]:
        """List account groups in creation order."""
        session = self._get_session()
        groups = session.query(AccountGroup).order_by(AccountGroup.seq).all()
        return [account_group_to_domain(group) for group in groups]

    # Account operations
    def create_account(
        self,
        name: str,
        initial_balance: Decimal = Decimal("0"),
        group_id: Optional[str] = None,
    ) -> str:
        """Insert an account and return its ID."""
        session = self._get_session()
        account = Account(
            id=new_id(), name=name, initial_balance=initial_balance, group_id=group_id, active=True
        )
        session.add(account)
        self._commit(f"Account with name '{name}' already exists")
        return account.id

    def _get_orm_account(self, account_id: str) -> Account:
        session = self._get_session()
        account = session.query(Account).filter(Account.id == account_id).first()
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def get_account(self, account_id: str) -> Optional[DomainAccount]:
        """Get account by ID."""
        session = self._get_session()
        account = session.query(Account).filter(Account.id == account_id).first()
        if account is None:
            return None
        return account_to_domain(account)

    def list_accounts(self) -> list[DomainAccount]:
        """List all accounts in creation order."""
        session = self._get_session()
        accounts = session.query(Account).order_by(Account.seq).all()
        return [account_to_domain(acc) for acc in accounts]

    def update_account(
        self,
        account_id: str,
        name: Optional[str] = None,
        initial_balance: Optional[Decimal] = None,
        active: Optional[bool] = None,
    ) -> None:
        """Update the provided account fields."""
        account = self._get_orm_account(account_id)
        if name is not None:
            account.name = name
        if initial_balance is not None:
            account.initial_balance = initial_balance
        if active is not None:
            account.active = active
        self._commit(f"Account with name '{name}' already exists")

    def delete_account(self, account_id: str) -> None:
        """Delete an account."""
        account = self._get_orm_account(account_id)
        session = self._get_session()
        session.delete(account)
        session.commit()

    # Family operations
    def create_family(self, name: str, nature: Nature) -> str:
        """Create a family. Returns family ID."""
        session = self._get_session()
        family = Family(id=new_id(), name=name, nature=Nature(nature).value)
        session.add(family)
        self._commit(f"Family '{name}' could not be created")
        return family.id

    def get_family(self, family_id: str) -> Optional[DomainFamily]:
        """Get family by ID."""
        session = self._get_session()
        family = session.query(Family).filter(Family.id == family_id).first()
        if family is None:
            return None
        return family_to_domain(family)

    def list_families(self) -> list[DomainFamily]:
        """List families in creation order."""
        session = self._get_session()
        families = session.query(Family).order_by(Family.seq).all()
        return [family_to_domain(family) for family in families]

    # Category operations
    def create_category(self, name: str, family_id: str) -> str:
        """Insert a category under a family and return its ID."""
        session = self._get_session()
        category = Category(id=new_id(), name=name, family_id=family_id, active=True)
        session.add(category)
        self._commit(f"Category '{name}' could not be created")
        return category.id

    def _get_orm_category(self, category_id: str) -> Category:
        session = self._get_session()
        category = session.query(Category).filter(Category.id == category_id).first()
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        return category

    def get_category(self, category_id: str) -> Optional[DomainCategory]:
        """Get category by ID."""
        session = self._get_session()
        category = session.query(Category).filter(Category.id == category_id).first()
        if category is None:
            return None
        return category_to_domain(category)

    def list_categories(self, family_id: Optional[str] = None) -> list[DomainCategory]:
        """List categories in creation order, optionally for one family."""
        session = self._get_session()
        query = session.query(Category)
        if family_id is not None:
            query = query.filter(Category.family_id == family_id)
        return [category_to_domain(cat) for cat in query.order_by(Category.seq).all()]

    def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> None:
        """Update the provided category fields."""
        category = self._get_orm_category(category_id)
        if name is not None:
            category.name = name
        if active is not None:
            category.active = active
        self._commit(f"Category {category_id} could not be updated")

    def delete_category(self, category_id: str) -> None:
        """Delete a category."""
        category = self._get_orm_category(category_id)
        session = self._get_session()
        session.delete(category)
        session.commit()

    # Transaction operations
    def prepend_transactions(self, transactions: Sequence[DomainTransaction]) -> None:
        """Insert transactions at the front of the ledger, keeping their order.

        Rows are flushed last-to-first so the first transaction gets the
        highest sequence number and is read first.
        """
        session = self._get_session()
        try:
            for txn in reversed(list(transactions)):
                session.add(transaction_to_orm(txn))
                session.flush()
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise ConflictError("One or more transaction ids already exist") from e
        logger.debug("Stored %d transactions", len(transactions))

    def get_transaction(self, transaction_id: str) -> Optional[DomainTransaction]:
        """Look up one stored transaction."""
        session = self._get_session()
        txn = session.query(Transaction).filter(Transaction.id == transaction_id).first()
        if txn is None:
            return None
        return transaction_to_domain(txn)

    def list_transactions(self) -> list[DomainTransaction]:
        """List all transactions in ledger order (newest first)."""
        session = self._get_session()
        rows = session.query(Transaction).order_by(Transaction.seq.desc()).all()
        return [transaction_to_domain(row) for row in rows]

    def replace_transaction(self, transaction: DomainTransaction) -> None:
        """Overwrite the stored transaction with the same ID."""
        session = self._get_session()
        row = session.query(Transaction).filter(Transaction.id == transaction.id).first()
        if row is None:
            raise NotFoundError(transaction_not_found(transaction.id))
        apply_transaction(row, transaction)
        session.commit()

    def delete_transactions(self, transaction_ids: Iterable[str]) -> int:
        """Delete transactions by ID. Returns the number deleted."""
        ids = list(transaction_ids)
        if not ids:
            return 0
        session = self._get_session()
        deleted = (
            session.query(Transaction)
            .filter(Transaction.id.in_(ids))
            .delete(synchronize_session=False)
        )
        session.commit()
        return deleted
