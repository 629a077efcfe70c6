"""
OCR Statement Parser

Turns free OCR text of a bank statement or credit card invoice into
transactions. Text recognition happens upstream; this module only reads
the recognized text.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date

from .csv_parsers.base import NormalizedTransaction, ParseResult
from .line_extractors import (
    C6StatementLineExtractor,
    GenericLineExtractor,
    LineContext,
    LineExtractor,
)
from .normalizers import MONTH_FULL, parse_full_month_date, parse_numeric_date


logger = logging.getLogger(__name__)


DEFAULT_BANK_LABEL = "Extrato Bancario"

# Checked in order; the first bank with a matching pattern wins
BANK_PATTERNS = {
    "Extrato C6": [r'C6\s*BANK', r'BANCO\s*C6', r'C6\s*S\.?A'],
    "Extrato Itau": [r'ITAU', r'ITAÚ', r'BANCO\s*ITAU', r'ITAUUNIBANCO'],
    "Extrato BTG": [r'BTG\s*PACTUAL', r'BANCO\s*BTG', r'BTG\s*BANK'],
    "Extrato Nubank": [r'NUBANK', r'NU\s*PAGAMENTOS'],
    "Extrato Bradesco": [r'BRADESCO', r'BCO\s*BRADESCO'],
    "Extrato Santander": [r'SANTANDER', r'BCO\s*SANTANDER'],
    "Extrato BB": [r'BANCO\s*DO\s*BRASIL', r'\bBB\s*S\.?A\b'],
    "Extrato Caixa": [r'CAIXA\s*ECON', r'\bCEF\b', r'CAIXA\s*FED'],
}

# A document is an invoice when at least two of these appear
CREDIT_CARD_PATTERNS = [
    re.compile(r'fatura\s*(?:do\s*)?cart[aã]o', re.IGNORECASE),
    re.compile(r'valor\s*m[ií]nimo', re.IGNORECASE),
    re.compile(r'total\s*(?:da\s*)?fatura', re.IGNORECASE),
    re.compile(r'pagamento\s*m[ií]nimo', re.IGNORECASE),
    re.compile(r'limite\s*(?:de\s*)?cr[eé]dito', re.IGNORECASE),
    re.compile(r'vencimento', re.IGNORECASE),
]
MIN_CREDIT_CARD_MARKERS = 2

_FULL_MONTHS = "|".join(MONTH_FULL)

INVOICE_DATE_PATTERNS = [
    re.compile(r'vencimento[:\s]*(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})', re.IGNORECASE),
    re.compile(
        r'vencimento[:\s]*(\d{1,2})\s*(?:de\s*)?(' + _FULL_MONTHS + r')(?:\s*(?:de\s*)?(\d{4}))?',
        re.IGNORECASE
    ),
    re.compile(r'data\s*(?:de\s*)?vencimento[:\s]*(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})', re.IGNORECASE),
]

BALANCE_LINE_PATTERN = re.compile(r'^Saldo\s+do\s+dia', re.IGNORECASE)
MIN_LINE_LENGTH = 6


@dataclass
class StatementParseResult:
    """Result of parsing OCR statement text."""

    bank: str
    transactions: list[NormalizedTransaction] = field(default_factory=list)
    average_confidence: float = 0.0
    is_credit_card: bool = False
    invoice_due_date: date | None = None

    def to_parse_result(self) -> ParseResult:
        return ParseResult(
            bank=self.bank,
            transactions=self.transactions,
            summary={
                "average_confidence": self.average_confidence,
                "is_credit_card": self.is_credit_card,
            },
        )


def detect_bank(text: str) -> str:
    """Label the document by the first bank whose name appears in it."""
    for bank, patterns in BANK_PATTERNS.items():
        for pattern in patterns:
            if re.search(pattern, text, re.IGNORECASE):
                return bank
    return DEFAULT_BANK_LABEL


def is_credit_card_invoice(text: str) -> bool:
    matches = sum(1 for pattern in CREDIT_CARD_PATTERNS if pattern.search(text))
    return matches >= MIN_CREDIT_CARD_MARKERS


def extract_invoice_due_date(text: str) -> date | None:
    """Find the invoice due date, used as reference for year-less dates.

    Args:
        text: Full OCR text

    Returns:
        Due date, or None when no pattern yields a valid date
    """
    for pattern in INVOICE_DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue

        day, month, year = match.groups()
        if month.isdigit():
            parsed = parse_numeric_date(day, month, year)
        else:
            parsed = parse_full_month_date(day, month, year)

        if parsed:
            return parsed

    return None


def is_c6_statement(text: str) -> bool:
    return C6StatementLineExtractor().applies_to(text)


class StatementParser:
    """Parse OCR text line by line with a prioritized list of extractors.

    Args:
        extractors: Extractors in priority order; defaults to the C6
            statement grammar followed by the generic extractor
        today: Reference date for year inference when the document has no
            invoice due date
    """

    def __init__(
        self,
        extractors: list[LineExtractor] | None = None,
        today: date | None = None
    ):
        self.extractors = extractors or [C6StatementLineExtractor(), GenericLineExtractor()]
        self.today = today

    def parse(self, text: str, ocr_confidence: float) -> StatementParseResult:
        bank = detect_bank(text)
        is_credit_card = is_credit_card_invoice(text)
        invoice_due_date = extract_invoice_due_date(text) if is_credit_card else None

        context = LineContext(
            confidence=ocr_confidence,
            is_credit_card=is_credit_card,
            invoice_due_date=invoice_due_date,
            today=self.today,
        )

        active = [e for e in self.extractors if e.applies_to(text)]

        transactions = []
        for raw_line in text.split("\n"):
            line = raw_line.strip()
            if len(line) < MIN_LINE_LENGTH or BALANCE_LINE_PATTERN.match(line):
                continue

            for extractor in active:
                txn = extractor.try_extract(line, context)
                if txn is not None:
                    transactions.append(txn)
                    break

        unique = []
        seen = set()
        for txn in transactions:
            if txn.dedup_key in seen:
                continue
            seen.add(txn.dedup_key)
            unique.append(txn)

        unique.sort(key=lambda t: t.date)

        average_confidence = (
            sum(t.confidence for t in unique) / len(unique) if unique else 0.0
        )

        logger.info(
            f"Parsed {len(unique)} transactions from {bank} "
            f"(credit_card={is_credit_card}, extractors={[e.name for e in active]})"
        )

        return StatementParseResult(
            bank=bank,
            transactions=unique,
            average_confidence=average_confidence,
            is_credit_card=is_credit_card,
            invoice_due_date=invoice_due_date,
        )


def parse_statement_text(
    text: str,
    ocr_confidence: float,
    today: date | None = None
) -> StatementParseResult:
    """Parse OCR statement text into transactions.

    Args:
        text: Recognized text of the statement
        ocr_confidence: Recognition confidence (0-100), copied to each line
        today: Reference date override for year inference

    Returns:
        StatementParseResult with deduplicated, date-sorted transactions
    """
    return StatementParser(today=today).parse(text, ocr_confidence)
