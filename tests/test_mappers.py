"""Tests for database mappers."""

from decimal import Decimal

from tally.database.models import (
    Account as ORMAccount,
    Category as ORMCategory,
    Family as ORMFamily,
    Transaction as ORMTransaction,
)
from tally.database.mappers import (
    account_to_domain,
    apply_transaction,
    category_to_domain,
    family_to_domain,
    transaction_to_domain,
    transaction_to_orm,
)
from tally.domain.entities import Account, Nature, Transaction, TransactionType


class TestAccountMapper:
    """Tests for Account mapper."""

    def test_account_to_domain(self):
        orm_account = ORMAccount(id="a1", name="Checking", initial_balance=Decimal("10.00"), active=True)
        account = account_to_domain(orm_account)
        assert account == Account(id="a1", name="Checking", initial_balance=Decimal("10.00"))

    def test_account_defaults_for_unflushed_row(self):
        account = account_to_domain(ORMAccount(id="a1", name="Checking"))
        assert account.initial_balance == Decimal("0")
        assert account.active is True


class TestFamilyAndCategoryMapper:
    """Tests for Family and Category mappers."""

    def test_family_nature_becomes_enum(self):
        family = family_to_domain(ORMFamily(id="f1", name="Food", nature="EXPENSE"))
        assert family.nature is Nature.EXPENSE

    def test_category_to_domain(self):
        category = category_to_domain(ORMCategory(id="c1", name="Groceries", family_id="f1", active=False))
        assert category.family_id == "f1"
        assert category.active is False


class TestTransactionMapper:
    """Tests for Transaction mapper."""

    def _domain(self, **changes):
        values = dict(
            id="t1",
            date="2024-03-01",
            amount=Decimal("-12.50"),
            description="Market",
            type=TransactionType.EXPENSE,
            account_id="a1",
            category_id="c1",
            family_id="f1",
        )
        values.update(changes)
        return Transaction(**values)

    def test_round_trip(self):
        txn = self._domain(attachment="receipt")
        assert transaction_to_domain(transaction_to_orm(txn)) == txn

    def test_type_is_stored_as_string(self):
        orm = transaction_to_orm(self._domain(type=TransactionType.INCOME))
        assert orm.type == "INCOME"

    def test_float_amounts_become_decimals(self):
        orm = transaction_to_orm(self._domain())
        orm.amount = 12.5
        assert transaction_to_domain(orm).amount == Decimal("12.5")

    def test_apply_transaction_overwrites_fields(self):
        orm = transaction_to_orm(self._domain())
        apply_transaction(
            orm,
            self._domain(
                type=TransactionType.TRANSFER,
                category_id=None,
                family_id=None,
                transfer_account_id="a2",
            ),
        )
        assert orm.id == "t1"
        assert orm.type == "TRANSFER"
        assert orm.category_id is None
        assert orm.transfer_account_id == "a2"

    def test_missing_description_becomes_empty(self):
        orm = transaction_to_orm(self._domain())
        orm.description = None
        assert transaction_to_domain(orm).description == ""
