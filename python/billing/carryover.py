"""
Carryover Reconciler

Links a "saldo anterior"/"rotativo" line from a newly imported statement
to the bill payment that predicted it, and measures the interest the bank
actually charged on the carried balance.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

import yaml

from ledger.models import BillPayment, Transaction
from statement_import.classifiers import is_carryover_transaction

from .exceptions import RecordNotFoundError
from .payment_generator import BillPaymentGenerator
from .store import BillingStore


logger = logging.getLogger(__name__)


TWO_PLACES = Decimal("0.01")


@dataclass
class InterestCalculation:
    """Realized interest on a carried balance."""

    rate: Decimal
    amount: Decimal


@dataclass
class CarryoverLink:
    """A carryover line linked to its bill payment."""

    transaction_id: str
    bill_payment_id: str
    bill_month: int
    bill_year: int
    expected_amount: Decimal
    actual_amount: Decimal
    interest: InterestCalculation

    def to_dict(self) -> dict:
        return {
            "transactionId": self.transaction_id,
            "billPaymentId": self.bill_payment_id,
            "billMonth": self.bill_month,
            "billYear": self.bill_year,
            "expectedAmount": float(self.expected_amount),
            "actualAmount": float(self.actual_amount),
            "interestRate": float(self.interest.rate),
            "interestAmount": float(self.interest.amount),
        }


def get_previous_month(month: int, year: int) -> tuple[int, int]:
    if month == 1:
        return 12, year - 1
    return month - 1, year


def calculate_interest(expected_amount, actual_amount) -> InterestCalculation:
    """Interest implied by the difference between expected and actual carryover.

    Signs are ignored. A negative result means the carried balance came in
    smaller than expected, e.g. after an extra payment.

    Args:
        expected_amount: Amount carried per the bill payment
        actual_amount: Amount on the imported statement line

    Returns:
        InterestCalculation with rate (percent) and amount, both to 2 places
    """
    expected = abs(Decimal(str(expected_amount)))
    actual = abs(Decimal(str(actual_amount)))

    interest_amount = actual - expected
    rate = interest_amount / expected * 100 if expected > 0 else Decimal("0")

    return InterestCalculation(
        rate=rate.quantize(TWO_PLACES, rounding=ROUND_HALF_UP),
        amount=interest_amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP),
    )


class CarryoverReconciler:
    """Matches imported carryover lines against unlinked bill payments."""

    AMOUNT_TOLERANCE_PERCENT = 0.5

    def __init__(
        self,
        store: BillingStore,
        generator: BillPaymentGenerator | None = None,
        config_dir: Path | str | None = None
    ):
        """Initialize reconciler.

        Args:
            store: Persistence for bill payments and transactions
            generator: Used to soft-delete superseded carryover placeholders
            config_dir: Path to configuration directory
        """
        self.store = store
        self.config_dir = Path(config_dir) if config_dir else Path(__file__).parent.parent.parent / "config"
        self.generator = generator or BillPaymentGenerator(store, self.config_dir)
        self._load_config()

    def _load_config(self) -> None:
        config_file = self.config_dir / "reconciliation_rules.yaml"
        if config_file.exists():
            with open(config_file) as f:
                config = yaml.safe_load(f) or {}
                self.AMOUNT_TOLERANCE_PERCENT = config.get("amount_tolerance_percent", 0.5)

    def find_matching_bill_payment(
        self,
        origin: str,
        month: int,
        year: int,
        amount,
        user_id: str
    ) -> BillPayment | None:
        """Find the bill payment a carryover line belongs to.

        Only payments for the month before the import date, for the same
        origin and not yet linked are considered, and the carried amount must
        lie within the tolerance band around the imported amount.

        Args:
            origin: Origin of the imported statement
            month: Month of the imported line
            year: Year of the imported line
            amount: Imported amount (sign ignored)
            user_id: Owner

        Returns:
            Most recently created matching BillPayment, or None
        """
        previous_month, previous_year = get_previous_month(month, year)

        magnitude = abs(Decimal(str(amount)))
        tolerance = Decimal(str(self.AMOUNT_TOLERANCE_PERCENT))
        min_carried = magnitude * (1 - tolerance)
        max_carried = magnitude * (1 + tolerance)

        matches = self.store.find_unlinked_bill_payments(
            user_id=user_id,
            origin=origin,
            bill_month=previous_month,
            bill_year=previous_year,
            min_carried=min_carried,
            max_carried=max_carried,
        )

        if not matches:
            return None

        if len(matches) > 1:
            logger.warning(
                f"{len(matches)} bill payments match carryover of {magnitude} "
                f"for {origin} {previous_month}/{previous_year}; using most recent"
            )

        return matches[0]

    def link(self, transaction: Transaction, bill_payment: BillPayment) -> CarryoverLink:
        """Link an imported carryover transaction to its bill payment.

        Records the realized interest on the bill payment and soft-deletes
        the placeholder carryover generated for it, if any.
        """
        interest = calculate_interest(bill_payment.amount_carried, transaction.amount)
        placeholder_id = bill_payment.carryover_transaction_id

        # Placeholder goes first: a failure here must leave the payment unlinked
        if placeholder_id and placeholder_id != transaction.id:
            try:
                self.generator.soft_delete_carryover_transaction(placeholder_id, bill_payment.user_id)
            except RecordNotFoundError:
                logger.warning(f"Carryover placeholder {placeholder_id} no longer exists")

        self.store.update_bill_payment(
            bill_payment,
            linked_transaction_id=transaction.id,
            interest_rate=interest.rate,
            interest_amount=interest.amount,
        )

        logger.info(
            f"Linked carryover {transaction.id} to bill payment {bill_payment.id} "
            f"(interest {interest.amount}, {interest.rate}%)"
        )

        return CarryoverLink(
            transaction_id=transaction.id,
            bill_payment_id=bill_payment.id,
            bill_month=bill_payment.bill_month,
            bill_year=bill_payment.bill_year,
            expected_amount=Decimal(str(bill_payment.amount_carried)),
            actual_amount=abs(Decimal(str(transaction.amount))),
            interest=interest,
        )

    def reconcile(self, transaction: Transaction) -> CarryoverLink | None:
        """Try to link a freshly persisted transaction.

        Returns:
            CarryoverLink, or None when the line is not a carryover or no
            bill payment matches
        """
        if not is_carryover_transaction(transaction.description):
            return None

        txn_date = transaction.date
        if isinstance(txn_date, datetime):
            txn_date = txn_date.date()
        elif not isinstance(txn_date, date):
            return None

        bill_payment = self.find_matching_bill_payment(
            origin=transaction.origin,
            month=txn_date.month,
            year=txn_date.year,
            amount=transaction.amount,
            user_id=transaction.user_id,
        )

        if bill_payment is None:
            logger.info(f"No bill payment matches carryover '{transaction.description}'")
            return None

        return self.link(transaction, bill_payment)
