"""Tests for the transaction write path and transaction commands."""

import dataclasses
from decimal import Decimal

import pytest

from tally.cli.main import cli
from tally.domain.entities import TransactionType
from tally.domain.errors import NotFoundError, ValidationError
from tally.domain.transaction import TransactionService


@pytest.fixture
def service(reference):
    return TransactionService(reference)


def test_build_expense_derives_family_and_sign(service):
    txn = service.build_transaction(
        date="2024-03-01",
        amount=Decimal("45.10"),
        description="Market",
        type=TransactionType.EXPENSE,
        account_id="checking",
        category_id="groceries",
    )
    assert txn.family_id == "food"
    assert txn.amount == Decimal("-45.10")
    assert txn.transfer_account_id is None
    assert len(txn.id) == 32


def test_build_income_is_positive(service):
    txn = service.build_transaction(
        "2024-03-01", Decimal("-2000"), "Salary", TransactionType.INCOME, "checking", "salary"
    )
    assert txn.amount == Decimal("2000")
    assert txn.family_id == "work"


def test_build_transfer(service):
    txn = service.build_transaction(
        "2024-03-01",
        Decimal("300"),
        "Move",
        TransactionType.TRANSFER,
        "checking",
        transfer_account_id="savings",
    )
    assert txn.amount == Decimal("-300")
    assert txn.category_id is None
    assert txn.family_id is None


def test_transfer_requires_destination(service, make_txn):
    with pytest.raises(ValidationError, match="destination"):
        service.validate(make_txn(-10, type=TransactionType.TRANSFER))


def test_transfer_destination_must_differ(service, make_txn):
    txn = make_txn(-10, type=TransactionType.TRANSFER, transfer_account_id="checking")
    with pytest.raises(ValidationError):
        service.validate(txn)


def test_transfer_rejects_category(service, make_txn):
    txn = make_txn(
        -10, type=TransactionType.TRANSFER, transfer_account_id="savings", category_id="rent"
    )
    with pytest.raises(ValidationError):
        service.validate(txn)


def test_expense_requires_category(service, make_txn):
    txn = dataclasses.replace(make_txn(-10), category_id=None, family_id=None)
    with pytest.raises(ValidationError, match="require a category"):
        service.validate(txn)


def test_family_mismatch_is_rejected(service, make_txn):
    txn = dataclasses.replace(make_txn(-10, category_id="rent"), family_id="food")
    with pytest.raises(ValidationError, match="does not match"):
        service.validate(txn)


def test_missing_family_is_filled_in(service, make_txn):
    txn = dataclasses.replace(make_txn(-10, category_id="rent"), family_id=None)
    assert service.validate(txn).family_id == "housing"


def test_unknown_references_raise_not_found(service, make_txn):
    with pytest.raises(NotFoundError):
        service.validate(make_txn(-10, account_id="ghost"))
    with pytest.raises(NotFoundError):
        service.validate(make_txn(-10, category_id="ghost"))
    with pytest.raises(NotFoundError):
        service.validate(make_txn(-10, type=TransactionType.TRANSFER, transfer_account_id="ghost"))


@pytest.mark.parametrize("date", ["2024-3-1", "01/03/2024", "2024-02-30", ""])
def test_non_canonical_date_is_rejected(service, make_txn, date):
    with pytest.raises(ValidationError):
        service.validate(make_txn(-10, date=date))


def test_add_prepends(service, make_txn):
    existing = (make_txn(-1),)
    new = make_txn(-2)
    result = service.add(existing, new)
    assert [t.id for t in result] == [new.id, existing[0].id]


def test_add_rejects_duplicate_id(service, make_txn):
    txn = make_txn(-1, id="same")
    with pytest.raises(ValidationError, match="already exists"):
        service.add([txn], make_txn(-2, id="same"))


def test_replace_revalidates_and_rederives_family(service, make_txn):
    original = make_txn(-10, category_id="groceries")
    changed = dataclasses.replace(original, category_id="rent", family_id=None)
    result = service.replace([original], changed)
    assert result[0].family_id == "housing"


def test_replace_rederives_family_when_category_changes(service, make_txn):
    original = make_txn(-10, category_id="groceries")
    assert original.family_id == "food"
    result = service.replace([original], dataclasses.replace(original, category_id="rent"))
    assert result[0].family_id == "housing"
    assert result[0].category_id == "rent"


def test_replace_category_with_transfer_drops_family(service, make_txn):
    original = make_txn(-10, category_id="groceries")
    changed = dataclasses.replace(
        original,
        type=TransactionType.TRANSFER,
        category_id=None,
        transfer_account_id="savings",
    )
    result = service.replace([original], changed)
    assert result[0].family_id is None
    assert result[0].transfer_account_id == "savings"


def test_replace_unknown_id(service, make_txn):
    with pytest.raises(NotFoundError):
        service.replace([], make_txn(-1))


def test_remove(service, make_txn):
    a, b = make_txn(-1), make_txn(-2)
    assert service.remove([a, b], a.id) == (b,)
    with pytest.raises(NotFoundError):
        service.remove([b], a.id)


def test_duplicate_gets_new_id_and_drops_attachment(service, make_txn):
    original = make_txn(-10, attachment="receipt")
    transactions, copy = service.duplicate([original], original.id, date="2024-04-01")
    assert copy.id != original.id
    assert copy.date == "2024-04-01"
    assert copy.attachment is None
    assert transactions[0] == copy


def test_duplicate_can_copy_attachment(service, make_txn):
    original = make_txn(-10, attachment="receipt")
    _, copy = service.duplicate([original], original.id, copy_attachment=True)
    assert copy.attachment == "receipt"
    assert copy.date == original.date


def test_delete_year(service, make_txn):
    transactions = [make_txn(-1, date="2023-12-31"), make_txn(-2, date="2024-01-01")]
    assert [t.date for t in service.delete_year(transactions, "2023")] == ["2024-01-01"]
    with pytest.raises(ValidationError):
        service.delete_year(transactions, "23")


def test_delete_selection_and_purge(service, make_txn):
    a, b, c = make_txn(-1), make_txn(-2), make_txn(-3)
    assert service.delete_selection([a, b, c], [a.id, c.id, "unknown"]) == (b,)
    assert service.purge([a, b, c]) == ()


# CLI


def _setup(cli_runner, db_path):
    for args in (
        ["init-categories"],
        ["account", "create", "Checking", "--initial-balance", "1.000,00"],
        ["account", "create", "Savings"],
    ):
        result = cli_runner.invoke(cli, ["--db-path", db_path, *args])
        assert result.exit_code == 0, result.output


def test_add_expense_command(cli_runner, temp_db):
    _setup(cli_runner, temp_db.database_path)
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "add", "--account", "checking", "--date", "2024-03-05",
            "--amount", "45,90", "--category", "Groceries", "--description", "Market",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Type: expense" in result.output
    assert "Amount: -45.90" in result.output

    temp_db.disconnect()
    txn = temp_db.list_transactions()[0]
    assert txn.amount == Decimal("-45.90")
    assert txn.date == "2024-03-05"


def test_add_transfer_command(cli_runner, temp_db):
    _setup(cli_runner, temp_db.database_path)
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "add", "--account", "Checking", "--amount", "200", "--to", "Savings"],
    )
    assert result.exit_code == 0, result.output
    assert "Type: transfer" in result.output


def test_add_requires_category_or_destination(cli_runner, temp_db):
    _setup(cli_runner, temp_db.database_path)
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "add", "--account", "Checking", "--amount", "5"]
    )
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_add_transfer_to_same_account_fails(cli_runner, temp_db):
    _setup(cli_runner, temp_db.database_path)
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "add", "--account", "Checking", "--amount", "5", "--to", "Checking"],
    )
    assert result.exit_code == 1
    assert "must differ" in result.output


def _add(cli_runner, db_path, *args):
    result = cli_runner.invoke(cli, ["--db-path", db_path, "add", *args])
    assert result.exit_code == 0, result.output


def test_list_with_or_filters(cli_runner, temp_db):
    db_path = temp_db.database_path
    _setup(cli_runner, db_path)
    _add(cli_runner, db_path, "--account", "Checking", "--date", "2024-03-01", "--amount", "10", "--category", "Groceries", "--description", "Market")
    _add(cli_runner, db_path, "--account", "Savings", "--date", "2024-03-02", "--amount", "20", "--category", "Fuel", "--description", "Gas station")
    _add(cli_runner, db_path, "--account", "Checking", "--date", "2024-03-03", "--amount", "30", "--category", "Restaurants", "--description", "Dinner")

    result = cli_runner.invoke(
        cli,
        [
            "--db-path", db_path, "transaction", "list",
            "--entry", "category:Groceries", "--exit", "account:Savings",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "2 transaction(s)" in result.output
    assert "Market" in result.output
    assert "Gas station" in result.output
    assert "Dinner" not in result.output


def test_list_rejects_bad_filter(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "list", "--entry", "Groceries"]
    )
    assert result.exit_code == 1
    assert "account:NAME or category:NAME" in result.output


def test_list_rejects_non_finite_amount_filter(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "list", "--amount", ">nan"]
    )
    assert result.exit_code == 1
    assert "Error: Invalid amount filter value 'nan'" in result.output


def test_list_empty(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "transaction", "list"])
    assert result.exit_code == 0
    assert "No transactions found" in result.output


def test_duplicate_and_delete_commands(cli_runner, temp_db):
    db_path = temp_db.database_path
    _setup(cli_runner, db_path)
    _add(cli_runner, db_path, "--account", "Checking", "--date", "2024-03-01", "--amount", "10", "--category", "Groceries")

    temp_db.disconnect()
    original = temp_db.list_transactions()[0]

    result = cli_runner.invoke(
        cli, ["--db-path", db_path, "transaction", "duplicate", original.id[:8], "--date", "2024-04-01"]
    )
    assert result.exit_code == 0, result.output
    temp_db.disconnect()
    assert len(temp_db.list_transactions()) == 2

    result = cli_runner.invoke(
        cli, ["--db-path", db_path, "transaction", "delete", original.id], input="n\n"
    )
    assert "Deletion cancelled" in result.output

    result = cli_runner.invoke(
        cli, ["--db-path", db_path, "transaction", "delete", original.id], input="y\n"
    )
    assert result.exit_code == 0, result.output
    assert "Deleted 1 transaction(s)" in result.output
    temp_db.disconnect()
    assert [t.date for t in temp_db.list_transactions()] == ["2024-04-01"]


def test_delete_unknown_transaction(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "delete", "deadbeef", "--yes"]
    )
    assert result.exit_code == 1
    assert "not found" in result.output


def test_purge_by_year(cli_runner, temp_db):
    db_path = temp_db.database_path
    _setup(cli_runner, db_path)
    _add(cli_runner, db_path, "--account", "Checking", "--date", "2023-06-01", "--amount", "1", "--category", "Fuel")
    _add(cli_runner, db_path, "--account", "Checking", "--date", "2024-06-01", "--amount", "2", "--category", "Fuel")

    result = cli_runner.invoke(cli, ["--db-path", db_path, "transaction", "purge", "--year", "2023", "--yes"])
    assert result.exit_code == 0, result.output
    assert "Deleted 1 transaction(s)" in result.output

    temp_db.disconnect()
    assert [t.date for t in temp_db.list_transactions()] == ["2024-06-01"]


def test_purge_requires_scope(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "transaction", "purge"])
    assert result.exit_code == 1
