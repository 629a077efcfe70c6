"""
Bill Payment Service

Create, read, update and delete bill payments together with the
transactions generated for them.
"""

import logging
from decimal import Decimal

from ledger.models import BillPayment
from statement_import.normalizers import to_cents

from .exceptions import (
    BillPaymentNotFoundError,
    BillPaymentValidationError,
    DuplicateBillPaymentError,
)
from .payment_generator import (
    BillPaymentGenerator,
    BillPaymentRequest,
    PaymentType,
    validate_payment_request,
)
from .store import BillingStore


logger = logging.getLogger(__name__)


def _interest_for(amount_carried: Decimal, interest_rate) -> Decimal | None:
    if not interest_rate:
        return None
    return to_cents(Decimal(str(amount_carried)) * Decimal(str(interest_rate)) / 100)


class BillPaymentService:
    """Bill payment lifecycle for one user session."""

    def __init__(self, store: BillingStore, generator: BillPaymentGenerator | None = None):
        self.store = store
        self.generator = generator or BillPaymentGenerator(store)

    def list_payments(self, user_id: str, bill_month: int | None = None,
                      bill_year: int | None = None, origin: str | None = None) -> list[BillPayment]:
        return self.store.list_bill_payments(user_id, bill_month, bill_year, origin)

    def get(self, bill_payment_id: str, user_id: str) -> BillPayment:
        bill_payment = self.store.get_bill_payment(bill_payment_id, user_id)
        if bill_payment is None:
            raise BillPaymentNotFoundError(bill_payment_id)
        return bill_payment

    def create(self, request: BillPaymentRequest) -> BillPayment:
        """Validate a payment decision, generate its transactions and store it.

        Raises:
            BillPaymentValidationError: If the request is invalid
            DuplicateBillPaymentError: If the bill already has a payment
        """
        validate_payment_request(request)

        existing = self.store.find_bill_payment_for_bill(
            request.user_id, request.origin, request.bill_month, request.bill_year
        )
        if existing is not None:
            raise DuplicateBillPaymentError(request.bill_month, request.bill_year, request.origin)

        generated = self.generator.generate_bill_payment_transactions(request)

        bill_payment = self.store.create_bill_payment(
            bill_month=request.bill_month,
            bill_year=request.bill_year,
            origin=request.origin,
            total_bill_amount=to_cents(request.total_bill_amount),
            amount_paid=to_cents(request.amount_paid),
            amount_carried=generated.amount_carried,
            payment_type=PaymentType(request.payment_type).value,
            interest_rate=request.interest_rate or None,
            interest_amount=generated.interest_amount if request.interest_rate else None,
            entry_transaction_id=generated.entry_transaction_id,
            carryover_transaction_id=generated.carryover_transaction_id,
            installment_id=generated.installment_id,
            user_id=request.user_id,
        )

        logger.info(
            f"Created {bill_payment.payment_type} bill payment {bill_payment.id} "
            f"for {request.bill_label} ({request.origin})"
        )
        return bill_payment

    def update(self, bill_payment_id: str, user_id: str, changes: dict) -> BillPayment:
        """Apply edits and recompute the derived amounts.

        Args:
            bill_payment_id: Bill payment to edit
            user_id: Owner
            changes: Subset of interest_rate, amount_paid, payment_type,
                installments that the caller supplied

        Raises:
            BillPaymentNotFoundError: If the bill payment does not exist
            BillPaymentValidationError: If an edit is invalid or nothing changes
        """
        bill_payment = self.get(bill_payment_id, user_id)
        updates = {}

        if "interest_rate" in changes:
            interest_rate = changes["interest_rate"]
            updates["interest_rate"] = interest_rate
            updates["interest_amount"] = _interest_for(bill_payment.amount_carried, interest_rate)

        if changes.get("amount_paid") is not None:
            amount_paid = Decimal(str(changes["amount_paid"]))
            if amount_paid >= bill_payment.total_bill_amount:
                raise BillPaymentValidationError(
                    "amountPaid deve ser menor que totalBillAmount para pagamento parcial"
                )

            amount_carried = to_cents(bill_payment.total_bill_amount - amount_paid)
            updates["amount_paid"] = to_cents(amount_paid)
            updates["amount_carried"] = amount_carried

            current_rate = changes["interest_rate"] if "interest_rate" in changes else bill_payment.interest_rate
            if current_rate:
                updates["interest_amount"] = _interest_for(amount_carried, current_rate)

        if changes.get("payment_type") is not None:
            payment_type = changes["payment_type"]
            if payment_type not in (PaymentType.PARTIAL, PaymentType.FINANCED):
                raise BillPaymentValidationError("paymentType deve ser 'PARTIAL' ou 'FINANCED'")

            installments = changes.get("installments")
            if payment_type == PaymentType.FINANCED and (not installments or installments < 2):
                raise BillPaymentValidationError(
                    "Para parcelamento, o numero de parcelas deve ser pelo menos 2"
                )
            updates["payment_type"] = PaymentType(payment_type).value

        if not updates:
            raise BillPaymentValidationError("Nenhum campo valido para atualizar")

        return self.store.update_bill_payment(bill_payment, **updates)

    def delete(self, bill_payment_id: str, user_id: str) -> None:
        """Delete a bill payment and everything generated for it.

        Raises:
            BillPaymentNotFoundError: If the bill payment does not exist
        """
        bill_payment = self.get(bill_payment_id, user_id)
        self.generator.delete_bill_payment_transactions(bill_payment_id, user_id)
        self.store.delete_bill_payment(bill_payment)
