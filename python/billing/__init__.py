"""
Bill Payments Module

Generates transactions for partially paid or financed credit card bills
and reconciles carried balances against later statement imports.
"""

from .carryover import (
    CarryoverLink,
    CarryoverReconciler,
    InterestCalculation,
    calculate_interest,
    get_previous_month,
)
from .exceptions import (
    BillingError,
    BillPaymentNotFoundError,
    BillPaymentValidationError,
    DuplicateBillPaymentError,
    RecordNotFoundError,
)
from .import_service import ImportResult, StatementImportService
from .payment_generator import (
    BillPaymentGenerator,
    BillPaymentRequest,
    PaymentType,
    calculate_installment_with_interest,
    create_date_for_month,
    validate_payment_request,
)
from .service import BillPaymentService
from .store import BillingStore

__all__ = [
    "BillingError",
    "BillingStore",
    "BillPaymentGenerator",
    "BillPaymentNotFoundError",
    "BillPaymentRequest",
    "BillPaymentService",
    "BillPaymentValidationError",
    "CarryoverLink",
    "CarryoverReconciler",
    "DuplicateBillPaymentError",
    "ImportResult",
    "InterestCalculation",
    "PaymentType",
    "RecordNotFoundError",
    "StatementImportService",
    "calculate_installment_with_interest",
    "calculate_interest",
    "create_date_for_month",
    "get_previous_month",
    "validate_payment_request",
]
