"""
Base CSV Parser Module

Shared row handling for Brazilian bank/card CSV exports.
"""

import csv
import logging
import unicodedata
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from io import StringIO
from pathlib import Path
from typing import Any, Callable

from ..classifiers import detect_installment
from ..normalizers import Money, parse_brl_amount, parse_date_string

logger = logging.getLogger(__name__)

# suggest_category(description, user_id) -> category or None
CategorySuggester = Callable[[str, str | None], Any]


class UnrecognizedFormatError(ValueError):
    """Raised when no known CSV dialect matches the file headers."""


class TransactionType(Enum):
    """Transaction type as stored."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


@dataclass
class NormalizedTransaction:
    """A statement line ready to be imported, not yet persisted."""

    description: str
    money: Money
    date: date
    type: TransactionType = TransactionType.EXPENSE
    is_installment: bool = False
    current_installment: int | None = None
    total_installments: int | None = None
    suggested_category_id: str | None = None
    transaction_kind: str | None = None
    confidence: float | None = None
    is_recurring: bool = False
    recurring_name: str | None = None
    special_type: str | None = None
    special_type_warning: str | None = None

    @property
    def amount(self) -> Decimal:
        """Signed amount (negative = expense)."""
        return self.money.signed()

    @property
    def dedup_key(self) -> tuple:
        return (self.date, self.description, self.amount)

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "amount": float(self.amount),
            "date": self.date.isoformat(),
            "type": self.type.value,
            "isInstallment": self.is_installment,
            "currentInstallment": self.current_installment,
            "totalInstallments": self.total_installments,
            "suggestedCategoryId": self.suggested_category_id,
            "transactionKind": self.transaction_kind,
            "confidence": self.confidence,
            "isRecurring": self.is_recurring,
            "recurringName": self.recurring_name,
            "specialType": self.special_type,
            "specialTypeWarning": self.special_type_warning,
        }


@dataclass
class ParseResult:
    """Result of parsing a statement."""

    bank: str
    origin: str | None = None
    transactions: list[NormalizedTransaction] = field(default_factory=list)
    summary: dict = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    @property
    def total_expenses(self) -> Decimal:
        return sum(
            (t.money.magnitude for t in self.transactions if t.money.is_expense),
            Decimal("0")
        )


def normalize_header(header: str) -> str:
    """Lowercase a header and strip accents ("Descrição" -> "descricao")."""
    decomposed = unicodedata.normalize("NFD", header or "")
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.lower().strip()


def detect_delimiter(content: str) -> str:
    """Choose between ',' and ';' by counting them on the header line."""
    header_line = content.split("\n", 1)[0]
    return ";" if header_line.count(";") > header_line.count(",") else ","


class BaseCSVParser:
    """Base class for bank CSV parsers.

    Subclasses declare which header keywords locate the date, description
    and amount columns. Every row is treated as a card expense.
    """

    BANK_NAME: str = "Unknown"
    BANK_CODE: str = "unknown"

    COLUMN_KEYWORDS: dict[str, list[str]] = {
        "date": ["data"],
        "description": ["descricao"],
        "amount": ["valor"],
    }

    def __init__(
        self,
        category_lookup: CategorySuggester | None = None,
        user_id: str | None = None,
        encoding: str = "utf-8"
    ):
        """Initialize the parser.

        Args:
            category_lookup: Optional suggest_category(description, user_id)
            user_id: User whose category rules apply
            encoding: File encoding
        """
        self.category_lookup = category_lookup
        self.user_id = user_id
        self.encoding = encoding

    def parse_file(self, file_path: Path | str) -> ParseResult:
        """Parse a CSV file.

        Args:
            file_path: Path to the CSV file

        Returns:
            ParseResult object
        """
        with open(file_path, encoding=self.encoding) as f:
            content = f.read()

        return self.parse_content(content)

    def parse_content(self, content: str) -> ParseResult:
        """Parse CSV content string.

        Args:
            content: CSV content as string

        Returns:
            ParseResult object
        """
        result = ParseResult(bank=self.BANK_CODE)

        content = self._preprocess_content(content)
        reader = csv.DictReader(StringIO(content), delimiter=detect_delimiter(content))

        for row_num, row in enumerate(reader, start=2):
            transaction = self._parse_row(row)
            if transaction:
                result.transactions.append(transaction)
            else:
                result.warnings.append(f"Row {row_num}: skipped")

        self._post_process(result)
        return result

    def _preprocess_content(self, content: str) -> str:
        """Preprocess CSV content before parsing.

        Override in subclasses to handle bank-specific preprocessing.
        """
        # Remove BOM if present
        if content.startswith('\ufeff'):
            content = content[1:]

        return content.replace('\r\n', '\n').replace('\r', '\n')

    def _find_column(self, row: dict[str, str], field_name: str) -> str | None:
        """Find the first column whose header contains one of the field keywords."""
        keywords = self.COLUMN_KEYWORDS.get(field_name, [])
        for header in row.keys():
            if header is None:
                continue
            normalized = normalize_header(header)
            if any(keyword in normalized for keyword in keywords):
                return header
        return None

    def _parse_row(self, row: dict[str, str]) -> NormalizedTransaction | None:
        """Parse a single CSV row into a transaction.

        Args:
            row: Dictionary of column name -> value

        Returns:
            NormalizedTransaction or None if the row should be skipped
        """
        date_col = self._find_column(row, "date")
        desc_col = self._find_column(row, "description")
        amount_col = self._find_column(row, "amount")

        if not date_col or not desc_col or not amount_col:
            return None

        date_str = (row.get(date_col) or "").strip()
        description = (row.get(desc_col) or "").strip()
        amount_str = (row.get(amount_col) or "").strip()

        if not date_str or not description or not amount_str:
            return None

        amount = parse_brl_amount(amount_str)
        if amount == 0:
            return None

        txn_date = parse_date_string(date_str)
        if txn_date is None:
            return None

        installment = detect_installment(description)

        suggested_category_id = None
        if self.category_lookup:
            category = self.category_lookup(description, self.user_id)
            suggested_category_id = getattr(category, "id", None)

        # Card statement rows are always expenses at this stage
        return NormalizedTransaction(
            description=description,
            money=Money.expense(amount),
            date=txn_date,
            type=TransactionType.EXPENSE,
            is_installment=installment.is_installment,
            current_installment=installment.current_installment,
            total_installments=installment.total_installments,
            suggested_category_id=suggested_category_id,
        )

    def _post_process(self, result: ParseResult) -> None:
        """Post-process parsed transactions."""
        result.summary = {
            "total_transactions": result.transaction_count,
            "total_expenses": float(result.total_expenses),
        }
