"""Account domain service."""

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from tally.domain.entities import Account as AccountEntity, AccountGroup
from tally.domain.errors import ConflictError, NotFoundError, account_not_found
from tally.domain.reference import account_usage_count, ensure_account_deletable

if TYPE_CHECKING:
    from tally.database.base import Database


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: "Database"):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        name: str,
        initial_balance: Decimal = Decimal("0"),
        group_name: Optional[str] = None,
    ) -> str:
        """Create a new account.

        Args:
            name: Account name
            initial_balance: Opening balance
            group_name: Optional account group; created when missing

        Returns:
            Account ID

        Raises:
            ConflictError: If account name already exists
        """
        for acc in self.db.list_accounts():
            if acc.name.casefold() == name.casefold():
                raise ConflictError(f"Account with name '{name}' already exists")

        group_id = None
        if group_name:
            group_id = self.get_or_create_group(group_name).id

        return self.db.create_account(name=name, initial_balance=initial_balance, group_id=group_id)

    def get_or_create_group(self, name: str) -> AccountGroup:
        """Return the account group with that name, creating it if needed."""
        for group in self.db.list_account_groups():
            if group.name.casefold() == name.casefold():
                return group
        group_id = self.db.create_account_group(name)
        return AccountGroup(id=group_id, name=name)

    def get_account(self, account_id: str) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def list_accounts(self, include_archived: bool = True) -> list[AccountEntity]:
        """List accounts.

        Args:
            include_archived: If False, only active accounts are returned

        Returns:
            List of account entities
        """
        accounts = self.db.list_accounts()
        if include_archived:
            return accounts
        return [acc for acc in accounts if acc.active]

    def set_active(self, account_id: str, active: bool) -> None:
        """Archive or restore an account.

        Archived accounts keep their history but are hidden from new entries.
        """
        self.require_account(account_id)
        self.db.update_account(account_id, active=active)

    def usage_count(self, account_id: str) -> int:
        """Count transactions using the account as source or destination."""
        self.require_account(account_id)
        return account_usage_count(self.db.list_transactions(), account_id)

    def delete_account(self, account_id: str) -> None:
        """Delete an account.

        Raises:
            NotFoundError: If account not found
            DependencyError: If transactions still reference the account
        """
        self.require_account(account_id)
        ensure_account_deletable(self.db.list_transactions(), account_id)
        self.db.delete_account(account_id)

    def require_account(self, account_id: str) -> AccountEntity:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account
