"""SQLAlchemy ORM models for the personal finance ledger"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Category(Base):
    """User-defined spending category"""

    __tablename__ = "category"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(Text, nullable=False)
    color = Column(String(16), nullable=True)
    icon = Column(String(32), nullable=True)
    user_id = Column(Text, nullable=True, index=True)

    rules = relationship("CategoryRule", back_populates="category", cascade="all, delete-orphan")


class CategoryRule(Base):
    """Keyword rule: descriptions containing the keyword get the category"""

    __tablename__ = "category_rule"

    id = Column(String(36), primary_key=True, default=_uuid)
    keyword = Column(Text, nullable=False)
    category_id = Column(String(36), ForeignKey("category.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Text, nullable=True, index=True)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    category = relationship("Category", back_populates="rules", lazy="joined")


class Installment(Base):
    """Financing record owning N monthly installment transactions"""

    __tablename__ = "installment"

    id = Column(String(36), primary_key=True, default=_uuid)
    description = Column(Text, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    total_installments = Column(Integer, nullable=False)
    installment_amount = Column(Numeric(12, 2), nullable=False)
    start_date = Column(DateTime, nullable=False)
    origin = Column(Text, nullable=False)
    user_id = Column(Text, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    transactions = relationship("Transaction", back_populates="installment")


class Transaction(Base):
    """Persisted ledger transaction; amount is signed (negative = expense)"""

    __tablename__ = "transaction"

    id = Column(String(36), primary_key=True, default=_uuid)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(DateTime, nullable=False)
    type = Column(String(16), nullable=False, default="EXPENSE")
    origin = Column(Text, nullable=False)
    category_id = Column(String(36), ForeignKey("category.id", ondelete="SET NULL"), nullable=True)
    is_fixed = Column(Boolean, nullable=False, default=False)
    is_installment = Column(Boolean, nullable=False, default=False)
    current_installment = Column(Integer, nullable=True)
    total_installments = Column(Integer, nullable=True)
    installment_id = Column(String(36), ForeignKey("installment.id", ondelete="CASCADE"), nullable=True)
    transaction_kind = Column(String(32), nullable=True)
    user_id = Column(Text, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    category = relationship("Category")
    installment = relationship("Installment", back_populates="transactions")


class BillPayment(Base):
    """One decision to pay part of a card bill for an origin and month"""

    __tablename__ = "bill_payment"

    id = Column(String(36), primary_key=True, default=_uuid)
    bill_month = Column(Integer, nullable=False)
    bill_year = Column(Integer, nullable=False)
    origin = Column(Text, nullable=False)
    total_bill_amount = Column(Numeric(12, 2), nullable=False)
    amount_paid = Column(Numeric(12, 2), nullable=False)
    amount_carried = Column(Numeric(12, 2), nullable=False)
    payment_type = Column(String(16), nullable=False)
    interest_rate = Column(Numeric(8, 4), nullable=True)
    interest_amount = Column(Numeric(12, 2), nullable=True)
    entry_transaction_id = Column(String(36), nullable=True)
    carryover_transaction_id = Column(String(36), nullable=True)
    installment_id = Column(String(36), ForeignKey("installment.id", ondelete="SET NULL"), nullable=True)
    linked_transaction_id = Column(String(36), nullable=True)
    user_id = Column(Text, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    installment = relationship("Installment")
