"""
Billing Store

Persistence operations over transactions, installments and bill payments.
Every write commits on its own: an import or a bill payment generation is
a sequence of independent row writes, not one atomic unit.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from ledger.models import BillPayment, Installment, Transaction

from .exceptions import RecordNotFoundError


logger = logging.getLogger(__name__)


class BillingStore:
    """Create/update/delete/find over the billing entities of one session."""

    def __init__(self, session: Session):
        self.session = session

    def _save(self, record):
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    # Transactions

    def create_transaction(self, **fields) -> Transaction:
        return self._save(Transaction(**fields))

    def get_transaction(self, transaction_id: str, user_id: str | None = None) -> Transaction | None:
        query = self.session.query(Transaction).filter(Transaction.id == transaction_id)
        if user_id is not None:
            query = query.filter(Transaction.user_id == user_id)
        return query.first()

    def delete_transaction(self, transaction_id: str) -> None:
        """Hard delete a transaction.

        Raises:
            RecordNotFoundError: If the transaction does not exist
        """
        transaction = self.get_transaction(transaction_id)
        if transaction is None:
            raise RecordNotFoundError("Transaction", transaction_id)
        self.session.delete(transaction)
        self.session.commit()

    def delete_installment_transactions(self, installment_id: str, user_id: str) -> int:
        """Delete every transaction generated for an installment plan."""
        count = (
            self.session.query(Transaction)
            .filter(Transaction.installment_id == installment_id, Transaction.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return count

    def soft_delete_transaction(self, transaction_id: str, user_id: str) -> Transaction:
        """Mark a transaction deleted without removing the row.

        Raises:
            RecordNotFoundError: If the transaction does not exist for the user
        """
        transaction = self.get_transaction(transaction_id, user_id)
        if transaction is None:
            raise RecordNotFoundError("Transaction", transaction_id)
        transaction.deleted_at = datetime.now(timezone.utc)
        return self._save(transaction)

    # Installments

    def create_installment(self, **fields) -> Installment:
        return self._save(Installment(**fields))

    def get_installment(self, installment_id: str) -> Installment | None:
        return self.session.query(Installment).filter(Installment.id == installment_id).first()

    def delete_installment(self, installment_id: str) -> None:
        """Hard delete an installment plan.

        Raises:
            RecordNotFoundError: If the installment does not exist
        """
        installment = self.get_installment(installment_id)
        if installment is None:
            raise RecordNotFoundError("Installment", installment_id)
        self.session.delete(installment)
        self.session.commit()

    # Bill payments

    def create_bill_payment(self, **fields) -> BillPayment:
        return self._save(BillPayment(**fields))

    def get_bill_payment(self, bill_payment_id: str, user_id: str) -> BillPayment | None:
        return (
            self.session.query(BillPayment)
            .filter(BillPayment.id == bill_payment_id, BillPayment.user_id == user_id)
            .first()
        )

    def find_bill_payment_for_bill(
        self,
        user_id: str,
        origin: str,
        bill_month: int,
        bill_year: int
    ) -> BillPayment | None:
        """Existing payment for the same origin and bill month, if any."""
        return (
            self.session.query(BillPayment)
            .filter(
                BillPayment.user_id == user_id,
                BillPayment.origin == origin,
                BillPayment.bill_month == bill_month,
                BillPayment.bill_year == bill_year,
            )
            .first()
        )

    def list_bill_payments(
        self,
        user_id: str,
        bill_month: int | None = None,
        bill_year: int | None = None,
        origin: str | None = None
    ) -> list[BillPayment]:
        query = self.session.query(BillPayment).filter(BillPayment.user_id == user_id)
        if bill_month is not None:
            query = query.filter(BillPayment.bill_month == bill_month)
        if bill_year is not None:
            query = query.filter(BillPayment.bill_year == bill_year)
        if origin:
            query = query.filter(BillPayment.origin == origin)
        return query.order_by(BillPayment.bill_year.desc(), BillPayment.bill_month.desc()).all()

    def find_unlinked_bill_payments(
        self,
        user_id: str,
        origin: str,
        bill_month: int,
        bill_year: int,
        min_carried: Decimal,
        max_carried: Decimal
    ) -> list[BillPayment]:
        """Unlinked payments for a bill whose carried amount lies in range,
        most recently created first."""
        return (
            self.session.query(BillPayment)
            .filter(
                BillPayment.user_id == user_id,
                BillPayment.origin == origin,
                BillPayment.bill_month == bill_month,
                BillPayment.bill_year == bill_year,
                BillPayment.linked_transaction_id.is_(None),
                BillPayment.amount_carried >= min_carried,
                BillPayment.amount_carried <= max_carried,
            )
            .order_by(BillPayment.created_at.desc())
            .all()
        )

    def update_bill_payment(self, bill_payment: BillPayment, **fields) -> BillPayment:
        for name, value in fields.items():
            setattr(bill_payment, name, value)
        return self._save(bill_payment)

    def delete_bill_payment(self, bill_payment: BillPayment) -> None:
        bill_payment_id = bill_payment.id
        self.session.delete(bill_payment)
        self.session.commit()
        logger.info(f"Deleted bill payment {bill_payment_id}")
