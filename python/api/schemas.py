"""
API Schemas

Request and response models. JSON uses camelCase field names.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from statement_import.normalizers import parse_date_string


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Import

class ImportTransactionIn(CamelModel):
    """A reviewed statement line to persist."""

    description: str = Field(min_length=1)
    amount: Decimal
    txn_date: date = Field(alias="date")
    type: Literal["INCOME", "EXPENSE", "TRANSFER"] = "EXPENSE"
    category_id: str | None = None
    suggested_category_id: str | None = None
    is_installment: bool = False
    current_installment: int | None = None
    total_installments: int | None = None
    transaction_kind: str | None = None

    @field_validator("txn_date", mode="before")
    @classmethod
    def parse_date(cls, value):
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            parsed = parse_date_string(value)
            if parsed is None:
                raise ValueError(f"Invalid date: {value}")
            return parsed
        return value


class ImportRequest(CamelModel):
    transactions: list[ImportTransactionIn]
    origin: str | None = None


class LinkedCarryover(CamelModel):
    transaction_id: str
    bill_payment_id: str
    bill_month: int
    bill_year: int
    expected_amount: float
    actual_amount: float
    interest_rate: float
    interest_amount: float


class ImportResponse(CamelModel):
    message: str
    count: int
    carryover_linked_count: int
    linked_carryovers: list[LinkedCarryover]


class CandidateTransaction(CamelModel):
    """A parsed statement line offered for review before import."""

    description: str
    amount: float
    txn_date: date = Field(alias="date")
    type: str
    category_id: str | None = None
    suggested_category_id: str | None = None
    is_installment: bool = False
    current_installment: int | None = None
    total_installments: int | None = None
    is_recurring: bool = False
    recurring_name: str | None = None
    transaction_kind: str | None = None
    special_type: str | None = None
    special_type_warning: str | None = None
    confidence: float | None = None
    selected: bool = True


class CSVParseResponse(CamelModel):
    transactions: list[CandidateTransaction]
    origin: str
    count: int


class OCRParseRequest(CamelModel):
    """Text already extracted by the OCR engine."""

    text: str
    confidence: float = Field(default=0, ge=0, le=100)


class OCRParseResponse(CamelModel):
    transactions: list[CandidateTransaction]
    origin: str
    confidence: float
    is_credit_card: bool
    invoice_due_date: date | None = None


# Bill payments

class BillPaymentCreate(CamelModel):
    bill_month: int
    bill_year: int
    origin: str = Field(min_length=1)
    total_bill_amount: Decimal
    amount_paid: Decimal
    payment_type: str
    installments: int | None = None
    interest_rate: Decimal | None = None
    category_id: str | None = None


class BillPaymentUpdate(CamelModel):
    interest_rate: Decimal | None = None
    amount_paid: Decimal | None = None
    payment_type: str | None = None
    installments: int | None = None


class InstallmentOut(CamelModel):
    id: str
    description: str
    total_amount: float
    total_installments: int
    installment_amount: float
    start_date: datetime
    origin: str


class BillPaymentOut(CamelModel):
    id: str
    bill_month: int
    bill_year: int
    origin: str
    total_bill_amount: float
    amount_paid: float
    amount_carried: float
    payment_type: str
    interest_rate: float | None = None
    interest_amount: float | None = None
    entry_transaction_id: str | None = None
    carryover_transaction_id: str | None = None
    installment_id: str | None = None
    linked_transaction_id: str | None = None
    installment: InstallmentOut | None = None
    created_at: datetime
    updated_at: datetime


# Category rules

class CategoryOut(CamelModel):
    id: str
    name: str
    color: str | None = None
    icon: str | None = None


class CategoryRuleCreate(CamelModel):
    keyword: str = Field(min_length=1)
    category_id: str


class CategoryRuleOut(CamelModel):
    id: str
    keyword: str
    category_id: str
    category: CategoryOut | None = None
