"""Tests for account service and commands."""

from decimal import Decimal

import pytest
from tally.cli.main import cli
from tally.domain.entities import Transaction, TransactionType
from tally.domain.errors import ConflictError, DependencyError, NotFoundError


def _transfer(source, destination):
    return Transaction(
        id="t1",
        date="2024-03-01",
        amount=Decimal("-10"),
        description="Move",
        type=TransactionType.TRANSFER,
        account_id=source,
        transfer_account_id=destination,
    )


class TestAccountService:
    """Tests for AccountService."""

    def test_create_and_get(self, account_service):
        account_id = account_service.create_account("Checking", initial_balance=Decimal("25.00"))
        account = account_service.get_account(account_id)
        assert account.name == "Checking"
        assert account.initial_balance == Decimal("25.00")

    def test_duplicate_name_is_case_insensitive(self, account_service):
        account_service.create_account("Checking")
        with pytest.raises(ConflictError, match="already exists"):
            account_service.create_account("checking")

    def test_group_is_created_once(self, account_service, temp_db):
        a = account_service.create_account("Card A", group_name="Cards")
        b = account_service.create_account("Card B", group_name="cards")
        assert len(temp_db.list_account_groups()) == 1
        assert account_service.get_account(a).group_id == account_service.get_account(b).group_id

    def test_archive_and_restore(self, account_service, sample_accounts):
        account_service.set_active(sample_accounts["Savings"], False)
        assert [a.name for a in account_service.list_accounts(include_archived=False)] == ["Checking"]
        account_service.set_active(sample_accounts["Savings"], True)
        assert len(account_service.list_accounts(include_archived=False)) == 2

    def test_unknown_account(self, account_service):
        with pytest.raises(NotFoundError):
            account_service.set_active("missing", False)
        with pytest.raises(NotFoundError):
            account_service.delete_account("missing")

    def test_delete_blocked_by_transfer_destination(self, account_service, sample_accounts, temp_db):
        temp_db.prepend_transactions([_transfer(sample_accounts["Checking"], sample_accounts["Savings"])])
        assert account_service.usage_count(sample_accounts["Savings"]) == 1
        with pytest.raises(DependencyError):
            account_service.delete_account(sample_accounts["Savings"])

    def test_delete_unused_account(self, account_service, sample_accounts):
        account_service.delete_account(sample_accounts["Savings"])
        assert account_service.get_account(sample_accounts["Savings"]) is None


def test_account_create(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "create", "Checking", "--group", "Bank"]
    )
    assert result.exit_code == 0
    assert "Created account 'Checking'" in result.output
    assert "ID:" in result.output


def test_account_create_duplicate(cli_runner, temp_db):
    """Test creating duplicate account name fails."""
    result1 = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "create", "Checking"])
    assert result1.exit_code == 0

    result2 = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "create", "Checking"])
    assert result2.exit_code == 1
    assert "already exists" in result2.output.lower()


def test_account_create_bad_balance(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "create", "X", "--initial-balance", "abc"]
    )
    assert result.exit_code == 1
    assert "Invalid amount" in result.output


def test_account_list_empty(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])
    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_account_list_shows_balances(cli_runner, temp_db, sample_accounts):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])
    assert result.exit_code == 0
    assert "Checking" in result.output
    assert "1,000.00" in result.output


def test_account_archive_hides_from_active_list(cli_runner, temp_db, sample_accounts):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "archive", "Savings"])
    assert result.exit_code == 0
    assert "Archived account 'Savings'" in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list", "--active-only"])
    assert "Savings" not in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])
    assert "(archived)" in result.output


def test_account_delete_in_use(cli_runner, temp_db, sample_accounts):
    temp_db.prepend_transactions([_transfer(sample_accounts["Checking"], sample_accounts["Savings"])])

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "usage", "Savings"])
    assert "used by 1 transaction(s)" in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "delete", "Savings"])
    assert result.exit_code == 1
    assert "Cannot delete account" in result.output


def test_account_delete_unknown(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "delete", "Nope"])
    assert result.exit_code == 1
    assert "not found" in result.output
