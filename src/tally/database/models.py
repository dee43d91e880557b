"""SQLAlchemy models for tally database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Numeric,
    Boolean,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class AccountGroup(Base):
    """Account group model."""

    __tablename__ = "account_groups"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    accounts = relationship("Account", back_populates="group")


class Account(Base):
    """Account model."""

    __tablename__ = "accounts"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False)
    name = Column(String, unique=True, nullable=False)
    initial_balance = Column(Numeric(12, 2), nullable=False, default=0)
    group_id = Column(String, ForeignKey("account_groups.id"), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    group = relationship("AccountGroup", back_populates="accounts")


class Family(Base):
    """Family model: the INCOME or EXPENSE parent of categories."""

    __tablename__ = "families"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    nature = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    categories = relationship("Category", back_populates="family")


class Category(Base):
    """Category model."""

    __tablename__ = "categories"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    family_id = Column(String, ForeignKey("families.id"), nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    family = relationship("Family", back_populates="categories")


class Transaction(Base):
    """Transaction model.

    ``seq`` grows with every insert; the ledger is read newest-first.
    """

    __tablename__ = "transactions"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False)
    date = Column(String(10), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=False, default="")
    type = Column(String, nullable=False)
    account_id = Column(String, ForeignKey("accounts.id"), nullable=False)
    category_id = Column(String, ForeignKey("categories.id"), nullable=True)
    family_id = Column(String, ForeignKey("families.id"), nullable=True)
    transfer_account_id = Column(String, ForeignKey("accounts.id"), nullable=True)
    attachment = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    account = relationship("Account", foreign_keys=[account_id])
    transfer_account = relationship("Account", foreign_keys=[transfer_account_id])
    category = relationship("Category")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
