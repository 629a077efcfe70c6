"""
Bill Payment Generator

Synthesizes the transactions and installment records that follow from a
decision to pay a credit card bill partially (remainder rolls into next
month's bill) or to finance the remainder in monthly installments.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path

import yaml

from statement_import.normalizers import Money, to_cents

from .exceptions import (
    BillPaymentNotFoundError,
    BillPaymentValidationError,
    RecordNotFoundError,
)
from .store import BillingStore


logger = logging.getLogger(__name__)


MONTH_NAMES = [
    "Janeiro", "Fevereiro", "Marco", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]


class PaymentType(str, Enum):
    """How the unpaid part of a bill is handled."""
    PARTIAL = "PARTIAL"
    FINANCED = "FINANCED"


@dataclass
class BillPaymentRequest:
    """A user's decision on how to pay one bill."""

    bill_month: int
    bill_year: int
    origin: str
    total_bill_amount: Decimal
    amount_paid: Decimal
    payment_type: PaymentType | str
    user_id: str
    installments: int | None = None
    interest_rate: Decimal | None = None
    category_id: str | None = None

    @property
    def amount_carried(self) -> Decimal:
        return to_cents(Decimal(str(self.total_bill_amount)) - Decimal(str(self.amount_paid)))

    @property
    def bill_label(self) -> str:
        return format_bill_label(self.bill_month, self.bill_year)


@dataclass
class PartialPaymentResult:
    entry_transaction_id: str
    carryover_transaction_id: str
    amount_carried: Decimal
    interest_amount: Decimal


@dataclass
class FinancedPaymentResult:
    entry_transaction_id: str
    installment_id: str
    installment_transaction_ids: list[str] = field(default_factory=list)
    amount_carried: Decimal = Decimal("0")
    installment_amount: Decimal = Decimal("0")
    interest_amount: Decimal = Decimal("0")


@dataclass
class GeneratedTransactions:
    """Ids and amounts to store on the BillPayment record."""

    entry_transaction_id: str
    amount_carried: Decimal
    interest_amount: Decimal
    carryover_transaction_id: str | None = None
    installment_id: str | None = None


@dataclass
class InstallmentCalculation:
    installment_amount: Decimal
    total_with_interest: Decimal
    interest_amount: Decimal


def format_bill_label(month: int, year: int) -> str:
    """Human label of a bill, e.g. "Janeiro/2026"."""
    return f"{MONTH_NAMES[month - 1]}/{year}"


def next_month(month: int, year: int) -> tuple[int, int]:
    if month == 12:
        return 1, year + 1
    return month + 1, year


def create_date_for_month(month: int, year: int, day: int = 15, hour: int = 12) -> datetime:
    """Date of a generated transaction.

    Day 15 at noon keeps timezone conversions from moving the transaction
    into a neighbouring month or day.
    """
    return datetime(year, month, day, hour, 0, 0)


def _has_interest(interest_rate) -> bool:
    return interest_rate is not None and Decimal(str(interest_rate)) > 0


def calculate_installment_with_interest(
    principal: Decimal,
    installments: int,
    interest_rate: Decimal | None
) -> InstallmentCalculation:
    """Split a financed amount with simple (non-compounding) interest.

    Args:
        principal: Amount being financed
        installments: Number of monthly installments
        interest_rate: Total interest over the whole plan, in percent

    Returns:
        InstallmentCalculation
    """
    principal = Decimal(str(principal))

    if not _has_interest(interest_rate):
        return InstallmentCalculation(
            installment_amount=to_cents(principal / installments),
            total_with_interest=to_cents(principal),
            interest_amount=Decimal("0.00"),
        )

    total_with_interest = principal * (1 + Decimal(str(interest_rate)) / 100)
    return InstallmentCalculation(
        installment_amount=to_cents(total_with_interest / installments),
        total_with_interest=to_cents(total_with_interest),
        interest_amount=to_cents(total_with_interest - principal),
    )


def validate_payment_request(request: BillPaymentRequest) -> None:
    """Check a new bill payment before anything is generated.

    Raises:
        BillPaymentValidationError: With a message describing the problem
    """
    if request.bill_month < 1 or request.bill_month > 12:
        raise BillPaymentValidationError("billMonth deve estar entre 1 e 12")

    if request.payment_type not in (PaymentType.PARTIAL, PaymentType.FINANCED):
        raise BillPaymentValidationError("paymentType deve ser 'PARTIAL' ou 'FINANCED'")

    if Decimal(str(request.amount_paid)) >= Decimal(str(request.total_bill_amount)):
        raise BillPaymentValidationError(
            "amountPaid deve ser menor que totalBillAmount para pagamento parcial"
        )

    if request.payment_type == PaymentType.FINANCED and (
        not request.installments or request.installments < 2
    ):
        raise BillPaymentValidationError(
            "Para parcelamento, o numero de parcelas deve ser pelo menos 2"
        )


class BillPaymentGenerator:
    """Writes the transactions derived from bill payment decisions."""

    GENERATED_DAY = 15
    GENERATED_HOUR = 12

    def __init__(self, store: BillingStore, config_dir: Path | str | None = None):
        """Initialize generator.

        Args:
            store: Persistence for transactions, installments and payments
            config_dir: Path to configuration directory
        """
        self.store = store
        self.config_dir = Path(config_dir) if config_dir else Path(__file__).parent.parent.parent / "config"
        self._load_config()

    def _load_config(self) -> None:
        config_file = self.config_dir / "reconciliation_rules.yaml"
        if config_file.exists():
            with open(config_file) as f:
                config = yaml.safe_load(f) or {}
                self.GENERATED_DAY = config.get("generated_day", 15)
                self.GENERATED_HOUR = config.get("generated_hour", 12)

    def _date_for(self, month: int, year: int) -> datetime:
        return create_date_for_month(month, year, self.GENERATED_DAY, self.GENERATED_HOUR)

    def _create_expense(self, request: BillPaymentRequest, description: str,
                        amount: Decimal, when: datetime, **extra):
        return self.store.create_transaction(
            description=description,
            amount=Money.expense(amount).signed(),
            date=when,
            type="EXPENSE",
            origin=request.origin,
            category_id=request.category_id or None,
            is_fixed=False,
            is_installment=extra.pop("is_installment", False),
            user_id=request.user_id,
            **extra,
        )

    def generate_partial_payment_transactions(self, request: BillPaymentRequest) -> PartialPaymentResult:
        """Record the paid part in the bill month and the carried balance,
        plus interest, in the following month.

        Args:
            request: Bill payment decision

        Returns:
            PartialPaymentResult
        """
        amount_carried = request.amount_carried
        label = request.bill_label
        following_month, following_year = next_month(request.bill_month, request.bill_year)

        interest_amount = Decimal("0.00")
        if _has_interest(request.interest_rate):
            interest_amount = to_cents(amount_carried * Decimal(str(request.interest_rate)) / 100)
        carryover_amount = amount_carried + interest_amount

        entry = self._create_expense(
            request,
            f"Pagamento Fatura {label} - {request.origin}",
            request.amount_paid,
            self._date_for(request.bill_month, request.bill_year),
        )

        carryover = self._create_expense(
            request,
            f"Saldo Anterior Fatura {label} - {request.origin}",
            carryover_amount,
            self._date_for(following_month, following_year),
        )

        logger.info(
            f"Generated partial payment for {label} ({request.origin}): "
            f"carried {amount_carried}, interest {interest_amount}"
        )

        return PartialPaymentResult(
            entry_transaction_id=entry.id,
            carryover_transaction_id=carryover.id,
            amount_carried=amount_carried,
            interest_amount=interest_amount,
        )

    def generate_financed_payment_transactions(self, request: BillPaymentRequest) -> FinancedPaymentResult:
        """Record the down payment and split the remainder into monthly
        installments starting the month after the bill.

        Args:
            request: Bill payment decision with ``installments`` set

        Returns:
            FinancedPaymentResult
        """
        installments = request.installments
        amount_carried = request.amount_carried
        label = request.bill_label

        calculation = calculate_installment_with_interest(
            amount_carried, installments, request.interest_rate
        )

        entry = self._create_expense(
            request,
            f"Entrada Financiamento Fatura {label} - {request.origin}",
            request.amount_paid,
            self._date_for(request.bill_month, request.bill_year),
        )

        month, year = next_month(request.bill_month, request.bill_year)
        description = f"Financiamento Fatura {label} - {request.origin}"

        installment = self.store.create_installment(
            description=description,
            total_amount=amount_carried + calculation.interest_amount,
            total_installments=installments,
            installment_amount=calculation.installment_amount,
            start_date=create_date_for_month(month, year, day=1, hour=self.GENERATED_HOUR),
            origin=request.origin,
            user_id=request.user_id,
        )

        transaction_ids = []
        for i in range(installments):
            transaction = self._create_expense(
                request,
                f"{description} ({i + 1}/{installments})",
                calculation.installment_amount,
                self._date_for(month, year),
                is_installment=True,
                installment_id=installment.id,
                current_installment=i + 1,
                total_installments=installments,
            )
            transaction_ids.append(transaction.id)
            month, year = next_month(month, year)

        logger.info(
            f"Generated financing for {label} ({request.origin}): "
            f"{installments}x {calculation.installment_amount}"
        )

        return FinancedPaymentResult(
            entry_transaction_id=entry.id,
            installment_id=installment.id,
            installment_transaction_ids=transaction_ids,
            amount_carried=amount_carried,
            installment_amount=calculation.installment_amount,
            interest_amount=calculation.interest_amount,
        )

    def generate_bill_payment_transactions(self, request: BillPaymentRequest) -> GeneratedTransactions:
        """Generate transactions for either payment type.

        Raises:
            BillPaymentValidationError: Unknown payment type, or FINANCED
                without at least one installment
        """
        if request.payment_type == PaymentType.PARTIAL:
            partial = self.generate_partial_payment_transactions(request)
            return GeneratedTransactions(
                entry_transaction_id=partial.entry_transaction_id,
                carryover_transaction_id=partial.carryover_transaction_id,
                amount_carried=partial.amount_carried,
                interest_amount=partial.interest_amount,
            )

        if request.payment_type == PaymentType.FINANCED:
            if not request.installments or request.installments < 1:
                raise BillPaymentValidationError("Numero de parcelas e obrigatorio para financiamento")

            financed = self.generate_financed_payment_transactions(request)
            return GeneratedTransactions(
                entry_transaction_id=financed.entry_transaction_id,
                installment_id=financed.installment_id,
                amount_carried=financed.amount_carried,
                interest_amount=financed.interest_amount,
            )

        raise BillPaymentValidationError(f"Tipo de pagamento invalido: {request.payment_type}")

    def delete_bill_payment_transactions(self, bill_payment_id: str, user_id: str) -> None:
        """Delete everything generated for a bill payment.

        Rows that are already gone are skipped, so repeating the call is safe.

        Raises:
            BillPaymentNotFoundError: If the bill payment does not exist for the user
        """
        bill_payment = self.store.get_bill_payment(bill_payment_id, user_id)
        if bill_payment is None:
            raise BillPaymentNotFoundError(bill_payment_id)

        for transaction_id in (bill_payment.entry_transaction_id, bill_payment.carryover_transaction_id):
            if not transaction_id:
                continue
            try:
                self.store.delete_transaction(transaction_id)
            except RecordNotFoundError:
                logger.debug(f"Transaction {transaction_id} already deleted")

        if bill_payment.installment_id:
            self.store.delete_installment_transactions(bill_payment.installment_id, user_id)
            try:
                self.store.delete_installment(bill_payment.installment_id)
            except RecordNotFoundError:
                logger.debug(f"Installment {bill_payment.installment_id} already deleted")

    def soft_delete_carryover_transaction(self, carryover_transaction_id: str, user_id: str) -> None:
        """Hide a placeholder carryover once the real statement line is imported."""
        self.store.soft_delete_transaction(carryover_transaction_id, user_id)
        logger.info(f"Soft-deleted carryover placeholder {carryover_transaction_id}")
