"""Tests for family/category service and commands."""

from decimal import Decimal

import pytest
from tally.cli.main import cli
from tally.domain.entities import Nature, Transaction, TransactionType
from tally.domain.errors import ConflictError, DependencyError, NotFoundError


class TestCategoryService:
    """Tests for CategoryService."""

    def test_create_family_and_category(self, category_service):
        family_id = category_service.create_family("Housing", Nature.EXPENSE)
        category_id = category_service.create_category("Rent", family_id)
        (category,) = category_service.list_categories(family_id=family_id)
        assert category.id == category_id
        assert category_service.get_family_by_name("housing").id == family_id

    def test_duplicate_family_name(self, category_service):
        category_service.create_family("Housing", Nature.EXPENSE)
        with pytest.raises(ConflictError):
            category_service.create_family("HOUSING", Nature.INCOME)

    def test_duplicate_category_name_within_family(self, category_service):
        housing = category_service.create_family("Housing", Nature.EXPENSE)
        travel = category_service.create_family("Travel", Nature.EXPENSE)
        category_service.create_category("Other", housing)
        category_service.create_category("Other", travel)
        with pytest.raises(ConflictError):
            category_service.create_category("other", housing)

    def test_category_requires_existing_family(self, category_service):
        with pytest.raises(NotFoundError):
            category_service.create_category("Rent", "missing")

    def test_family_tree(self, category_service, sample_categories):
        tree = category_service.get_family_tree()
        assert [family.name for family, _ in tree] == [
            "Housing",
            "Food",
            "Vehicle",
            "Work Income",
            "Investments",
        ]
        housing_categories = [c.name for c in tree[0][1]]
        assert housing_categories == ["Rent/Mortgage", "Electricity & Gas"]

    def test_archive(self, category_service, sample_categories):
        category_service.set_active(sample_categories["Fuel"], False)
        assert category_service.require_category(sample_categories["Fuel"]).active is False

    def test_delete_blocked_while_in_use(self, category_service, sample_categories, sample_accounts, temp_db):
        temp_db.prepend_transactions(
            [
                Transaction(
                    id="t1",
                    date="2024-03-01",
                    amount=Decimal("-10"),
                    description="",
                    type=TransactionType.EXPENSE,
                    account_id=sample_accounts["Checking"],
                    category_id=sample_categories["Fuel"],
                    family_id=sample_categories["Vehicle"],
                )
            ]
        )
        assert category_service.usage_count(sample_categories["Fuel"]) == 1
        with pytest.raises(DependencyError):
            category_service.delete_category(sample_categories["Fuel"])
        category_service.delete_category(sample_categories["Maintenance"])
        assert len(category_service.list_categories(family_id=sample_categories["Vehicle"])) == 1


def test_init_categories(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "init-categories"])
    assert result.exit_code == 0
    assert "Successfully created 13 families and categories" in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "init-categories"])
    assert "Families already exist" in result.output


def test_init_categories_force_skips_existing(cli_runner, temp_db):
    cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "init-categories"])
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "init-categories", "--force"])
    assert result.exit_code == 0
    assert "with 8 errors" in result.output


def test_family_and_category_commands(cli_runner, temp_db):
    db_path = temp_db.database_path
    result = cli_runner.invoke(cli, ["--db-path", db_path, "family", "create", "Pets", "--nature", "expense"])
    assert result.exit_code == 0, result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "category", "create", "Vet", "--family", "pets"])
    assert result.exit_code == 0, result.output
    assert "Created category 'Vet' in 'Pets'" in result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "family", "list"])
    assert "Pets" in result.output
    assert "EXPENSE" in result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "category", "archive", "Vet"])
    assert result.exit_code == 0

    result = cli_runner.invoke(cli, ["--db-path", db_path, "category", "list"])
    assert "Vet (archived)" in result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "category", "usage", "Vet"])
    assert "used by 0 transaction(s)" in result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "category", "delete", "Vet"])
    assert result.exit_code == 0
    assert "Deleted category 'Vet'" in result.output


def test_category_create_unknown_family(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "category", "create", "Vet", "--family", "Nope"]
    )
    assert result.exit_code == 1
    assert "Family 'Nope' not found" in result.output


def test_family_create_requires_valid_nature(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "family", "create", "Moves", "--nature", "transfer"]
    )
    assert result.exit_code == 2
