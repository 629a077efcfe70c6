"""
Ledger Persistence

SQLAlchemy models for transactions, installments, bill payments and
category rules.
"""

from .models import (
    Base,
    BillPayment,
    Category,
    CategoryRule,
    Installment,
    Transaction,
)

__all__ = [
    "Base",
    "BillPayment",
    "Category",
    "CategoryRule",
    "Installment",
    "Transaction",
]
