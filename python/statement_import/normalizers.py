"""
Amount and Date Normalizers

Parses Brazilian currency strings and the date encodings found on bank and
credit card statements into Decimal and date values.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum


CENTS = Decimal("0.01")

MONTH_ABBREV = {
    "jan": 1, "fev": 2, "mar": 3, "abr": 4, "mai": 5, "jun": 6,
    "jul": 7, "ago": 8, "set": 9, "out": 10, "nov": 11, "dez": 12,
}

MONTH_FULL = {
    "janeiro": 1, "fevereiro": 2, "marco": 3, "março": 3, "abril": 4,
    "maio": 5, "junho": 6, "julho": 7, "agosto": 8, "setembro": 9,
    "outubro": 10, "novembro": 11, "dezembro": 12,
}

# Formats tried for whole-cell dates (CSV columns)
DATE_FORMATS = [
    "%d/%m/%Y",
    "%d/%m/%y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%Y-%m-%d",
]

_NUMERIC_DATE = re.compile(r'^(\d{1,2})[/\-.](\d{1,2})(?:[/\-.](\d{2}|\d{4}))?$')


class Direction(Enum):
    """Which way money moved."""
    INCOME = "income"
    EXPENSE = "expense"


@dataclass(frozen=True)
class Money:
    """A non-negative magnitude tagged with its direction.

    Signed decimals only appear at the persistence boundary through
    ``signed()``: expenses are negative, income positive.
    """

    magnitude: Decimal
    direction: Direction

    def __post_init__(self):
        if self.magnitude < 0:
            raise ValueError(f"Money magnitude must be non-negative: {self.magnitude}")

    @classmethod
    def expense(cls, value: Decimal | int | str) -> "Money":
        return cls(magnitude=to_cents(abs(Decimal(str(value)))), direction=Direction.EXPENSE)

    @classmethod
    def income(cls, value: Decimal | int | str) -> "Money":
        return cls(magnitude=to_cents(abs(Decimal(str(value)))), direction=Direction.INCOME)

    @classmethod
    def from_signed(cls, value: Decimal) -> "Money":
        if value < 0:
            return cls.expense(value)
        return cls.income(value)

    @property
    def is_expense(self) -> bool:
        return self.direction == Direction.EXPENSE

    def signed(self) -> Decimal:
        """Signed decimal for storage (negative = expense)."""
        return -self.magnitude if self.is_expense else self.magnitude


def to_cents(value: Decimal | int | float | str) -> Decimal:
    """Round a value to currency minor-unit precision."""
    return Decimal(str(value)).quantize(CENTS)


def parse_brl_amount(amount_str: str | None) -> Decimal:
    """Parse a Brazilian formatted amount such as "R$ 1.234,56 D".

    '.' is the thousands separator and ',' the decimal separator. The result
    is positive unless the string carries a minus sign or a trailing D.

    Args:
        amount_str: Raw amount text

    Returns:
        Signed Decimal, or Decimal("0") when the text is not an amount
    """
    if not amount_str or not amount_str.strip():
        return Decimal("0")

    cleaned = re.sub(r'R\$?|\$', '', amount_str).strip()

    is_negative = "-" in cleaned or cleaned.upper().endswith("D")

    cleaned = re.sub(r'[-+CDcd\s]', '', cleaned)
    cleaned = cleaned.replace('.', '').replace(',', '.')

    if not re.fullmatch(r'\d+(?:\.\d+)?', cleaned):
        return Decimal("0")

    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")

    value = to_cents(abs(value))
    return -value if is_negative else value


def infer_year(month: int, reference: date | None = None) -> int:
    """Pick the year of a year-less date relative to a reference date.

    A month later than the reference month belongs to the previous year:
    a June invoice listing "13 ago" is August of last year.

    Args:
        month: Month of the transaction (1-12)
        reference: Invoice due date, or today when not available

    Returns:
        Inferred year
    """
    reference = reference or date.today()
    if month > reference.month:
        return reference.year - 1
    return reference.year


def build_date(day: int, month: int, year: int | None = None,
               reference: date | None = None) -> date | None:
    """Build a date from parts, returning None for impossible combinations.

    Args:
        day: Day of month
        month: Month (1-12)
        year: Four or two digit year; None to infer from the reference
        reference: Reference date used for year inference

    Returns:
        date or None
    """
    if day < 1 or day > 31 or month < 1 or month > 12:
        return None

    if year is None:
        year = infer_year(month, reference)
    elif year < 100:
        year = 2000 + year

    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_numeric_date(day: str, month: str, year: str | None = None,
                       reference: date | None = None) -> date | None:
    """Parse DD/MM/YYYY, DD/MM/YY or DD/MM from already split tokens."""
    return build_date(
        int(day),
        int(month),
        int(year) if year else None,
        reference
    )


def parse_abbrev_date(day: str, month_abbrev: str,
                      reference: date | None = None) -> date | None:
    """Parse an invoice date such as "13 ago"; the year is always inferred."""
    month = MONTH_ABBREV.get(month_abbrev.lower()[:3])
    if month is None:
        return None
    return build_date(int(day), month, None, reference)


def parse_full_month_date(day: str, month_name: str,
                          year: str | None = None) -> date | None:
    """Parse "10 de junho" style dates; a missing year means the current year."""
    month = MONTH_FULL.get(month_name.lower())
    if month is None:
        return None
    return build_date(int(day), month, int(year) if year else date.today().year)


def parse_date_string(date_str: str | None, reference: date | None = None) -> date | None:
    """Parse a whole date cell from a CSV export.

    Args:
        date_str: Date text (DD/MM/YYYY, DD/MM/YY, DD/MM or ISO)
        reference: Reference date for year-less values

    Returns:
        date or None when the text is not a valid date
    """
    if not date_str:
        return None

    date_str = date_str.strip()

    match = _NUMERIC_DATE.match(date_str)
    if match:
        return parse_numeric_date(match.group(1), match.group(2), match.group(3), reference)

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(date_str[:10], fmt).date()
        except ValueError:
            continue

    return None
