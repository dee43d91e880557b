"""Shared pytest fixtures for tally tests."""

import tempfile
import os
from decimal import Decimal
import pytest

from tally.database.factories import create_sqlite_database
from tally.domain.account import AccountService
from tally.domain.category import CategoryService
from tally.domain.entities import (
    Account,
    AccountGroup,
    Category,
    Family,
    Nature,
    Transaction,
    TransactionType,
)
from tally.domain.reference import ReferenceIndex


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for CLI tests
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def sample_accounts(account_service):
    """Create Checking and Savings accounts; returns name -> id."""
    return {
        "Checking": account_service.create_account("Checking", initial_balance=Decimal("1000")),
        "Savings": account_service.create_account("Savings", initial_balance=Decimal("500")),
    }


@pytest.fixture
def sample_categories(category_service):
    """Create the default families and categories; returns name -> id."""
    from tally.cli.commands.init_categories import INITIAL_FAMILIES

    ids = {}
    for family_name, nature, category_names in INITIAL_FAMILIES:
        family_id = category_service.create_family(family_name, nature)
        ids[family_name] = family_id
        for category_name in category_names:
            ids[category_name] = category_service.create_category(category_name, family_id)
    return ids


@pytest.fixture
def reference():
    """In-memory reference data shared by the engine tests."""
    return ReferenceIndex.build(
        accounts=[
            Account(id="checking", name="Checking", initial_balance=Decimal("1000.00"), group_id="bank"),
            Account(id="savings", name="Savings", initial_balance=Decimal("500.00"), group_id="bank"),
            Account(id="cash", name="Cash"),
            Account(id="old", name="Old Card", active=False),
        ],
        families=[
            Family(id="housing", name="Housing", nature=Nature.EXPENSE),
            Family(id="food", name="Food", nature=Nature.EXPENSE),
            Family(id="work", name="Work Income", nature=Nature.INCOME),
            Family(id="invest", name="Investments", nature=Nature.INCOME),
        ],
        categories=[
            Category(id="rent", name="Rent", family_id="housing"),
            Category(id="power", name="Electricity", family_id="housing"),
            Category(id="groceries", name="Groceries", family_id="food"),
            Category(id="restaurants", name="Restaurants", family_id="food"),
            Category(id="salary", name="Salary", family_id="work"),
            Category(id="dividends", name="Dividends", family_id="invest"),
            Category(id="lottery", name="Lottery", family_id="invest", active=False),
        ],
        groups=[AccountGroup(id="bank", name="Bank")],
    )


@pytest.fixture
def make_txn():
    """Factory for ledger entries with sensible defaults."""
    counter = iter(range(1, 100000))
    families = {
        "rent": "housing",
        "power": "housing",
        "groceries": "food",
        "restaurants": "food",
        "salary": "work",
        "dividends": "invest",
        "lottery": "invest",
    }

    def _make(
        amount,
        type=TransactionType.EXPENSE,
        date="2024-03-15",
        account_id="checking",
        category_id=None,
        transfer_account_id=None,
        description="",
        attachment=None,
        id=None,
    ):
        if category_id is None and type == TransactionType.EXPENSE:
            category_id = "groceries"
        if category_id is None and type == TransactionType.INCOME:
            category_id = "salary"
        return Transaction(
            id=id or f"t{next(counter)}",
            date=date,
            amount=Decimal(str(amount)),
            description=description,
            type=type,
            account_id=account_id,
            category_id=category_id,
            family_id=families.get(category_id) if category_id else None,
            transfer_account_id=transfer_account_id,
            attachment=attachment,
        )

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
