"""Abstract database interface."""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from tally.domain.entities import (
    Account,
    AccountGroup,
    Category,
    Family,
    Ledger,
    Nature,
    Transaction,
)


class Database(ABC):
    """Abstract database interface for tally."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account group operations
    @abstractmethod
    def create_account_group(self, name: str) -> str:
        """Create an account group. Returns group ID."""
        pass

    @abstractmethod
    def list_account_groups(self) -> list[AccountGroup]:
        """List account groups in creation order."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        initial_balance: Decimal = Decimal("0"),
        group_id: Optional[str] = None,
    ) -> str:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """List all accounts in creation order."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: str,
        name: Optional[str] = None,
        initial_balance: Optional[Decimal] = None,
        active: Optional[bool] = None,
    ) -> None:
        """Update the provided account fields."""
        pass

    @abstractmethod
    def delete_account(self, account_id: str) -> None:
        """Delete an account."""
        pass

    # Family operations
    @abstractmethod
    def create_family(self, name: str, nature: Nature) -> str:
        """Create a family. Returns family ID."""
        pass

    @abstractmethod
    def get_family(self, family_id: str) -> Optional[Family]:
        """Get family by ID."""
        pass

    @abstractmethod
    def list_families(self) -> list[Family]:
        """List families in creation order."""
        pass

    # Category operations
    @abstractmethod
    def create_category(self, name: str, family_id: str) -> str:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: str) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def list_categories(self, family_id: Optional[str] = None) -> list[Category]:
        """List categories in creation order, optionally for one family."""
        pass

    @abstractmethod
    def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> None:
        """Update the provided category fields."""
        pass

    @abstractmethod
    def delete_category(self, category_id: str) -> None:
        """Delete a category."""
        pass

    # Transaction operations
    @abstractmethod
    def prepend_transactions(self, transactions: Sequence[Transaction]) -> None:
        """Insert transactions at the front of the ledger, keeping their order."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(self) -> list[Transaction]:
        """List all transactions in ledger order (newest first)."""
        pass

    @abstractmethod
    def replace_transaction(self, transaction: Transaction) -> None:
        """Overwrite the stored transaction with the same ID."""
        pass

    @abstractmethod
    def delete_transactions(self, transaction_ids: Iterable[str]) -> int:
        """Delete transactions by ID. Returns the number deleted."""
        pass

    def load_ledger(self) -> Ledger:
        """Load an immutable snapshot of reference data and transactions."""
        return Ledger(
            accounts=tuple(self.list_accounts()),
            families=tuple(self.list_families()),
            categories=tuple(self.list_categories()),
            groups=tuple(self.list_account_groups()),
            transactions=tuple(self.list_transactions()),
        )
