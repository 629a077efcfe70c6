"""
Statement Line Extractors

Each extractor turns one line of OCR text into a transaction, or declines.
Extractors are tried in a fixed priority order, bank-specific grammars
first; supporting a new bank format means adding a new extractor.
"""

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from .classifiers import detect_transaction_kind
from .csv_parsers.base import NormalizedTransaction, TransactionType
from .normalizers import (
    MONTH_ABBREV,
    Money,
    infer_year,
    parse_abbrev_date,
    parse_brl_amount,
    parse_numeric_date,
)


_MONTHS = "|".join(MONTH_ABBREV)

# Brazilian amounts: 1.234,56 / 1234,56 / R$ 1.234,56 / -R$ 15,00 / 15,00 D
AMOUNT_PATTERN = re.compile(
    r'-?(?:R\$\s*)?-?(?:\d{1,3}(?:\.\d{3})+|\d+),\d{2}(?:\s?[CD]\b|[+-](?!\d))?'
)

# Tried in order: DD/MM/YYYY, DD/MM/YY, DD/MM
DATE_PATTERNS = [
    re.compile(r'(?<!\d)(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4})(?!\d)'),
    re.compile(r'(?<!\d)(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2})(?!\d)'),
    re.compile(r'(?<!\d)(\d{1,2})[/\-.](\d{1,2})(?![\d,])'),
]

# "13 ago NETFLIX" or "□ 19 set Parcelamento de Fatura" on card invoices
CREDIT_CARD_LINE_DATE_PATTERN = re.compile(
    r'^\s*[□●○•\-*]?\s*(\d{1,2})\s+(' + _MONTHS + r')\b', re.IGNORECASE
)

# Same format left at the start of a description after the line date was removed
DESCRIPTION_DATE_PATTERN = re.compile(r'^(\d{1,2})\s+(' + _MONTHS + r')\b', re.IGNORECASE)

# C6 account statement: "02/01 02/01 Saída PIX Pix enviado para VICTOR -R$ 156,00"
C6_LINE_PATTERN = re.compile(
    r'^(\d{1,2}/\d{1,2})\s+(\d{1,2}/\d{1,2})\s+'
    r'(Sa[íi]da PIX|Entrada PIX|Outros gastos|Pagamento|Transfer[êe]ncia)\s+(.+)$',
    re.IGNORECASE
)

C6_HEADER_PATTERNS = [
    re.compile(r'C6\s*BANK', re.IGNORECASE),
    re.compile(r'BANCO\s*C6', re.IGNORECASE),
    re.compile(r'Ag[êe]ncia:\s*1\s*•?\s*Conta:', re.IGNORECASE),
    re.compile(r'Extrato\s+Per[íi]odo', re.IGNORECASE),
]

C6_COLUMN_HEADER_PATTERNS = [
    re.compile(r'Data\s+(?:de\s+)?lan[çc]amento\s*Data\s+cont[áa]bil', re.IGNORECASE),
    re.compile(r'lan[çc]amento\s*cont[áa]bil\s*Tipo', re.IGNORECASE),
]

# Explicit credit markers count as income even on card invoices
CREDIT_INDICATORS = [
    re.compile(r'\sC\s*$', re.IGNORECASE),
    re.compile(r'ESTORNO', re.IGNORECASE),
    re.compile(r'DEVOLU[CÇ][AÃ]O', re.IGNORECASE),
    re.compile(r'REEMBOLSO', re.IGNORECASE),
    re.compile(r'CASHBACK', re.IGNORECASE),
]

DEBIT_INDICATORS = [
    re.compile(r'\sD\s*$', re.IGNORECASE),
    re.compile(r'DEBITO', re.IGNORECASE),
    re.compile(r'PIX\s*(?:ENVIADO|ENV)', re.IGNORECASE),
    re.compile(r'TED\s*(?:ENVIADO|ENV)', re.IGNORECASE),
    re.compile(r'SAQUE', re.IGNORECASE),
    re.compile(r'TARIFA', re.IGNORECASE),
    re.compile(r'IOF', re.IGNORECASE),
    re.compile(r'PAGTO?', re.IGNORECASE),
    re.compile(r'BOLETO', re.IGNORECASE),
    re.compile(r'COMPRA', re.IGNORECASE),
    re.compile(r'TRANSF(?:ERENCIA)?\s*ENV', re.IGNORECASE),
]

# Only meaningful on account statements; ignored for card invoices
BANK_INCOME_INDICATORS = [
    re.compile(r'CREDITO', re.IGNORECASE),
    re.compile(r'PIX\s*(?:RECEBIDO|REC)', re.IGNORECASE),
    re.compile(r'TED\s*(?:RECEBIDO|REC)', re.IGNORECASE),
    re.compile(r'DEPOSITO', re.IGNORECASE),
    re.compile(r'RENDIMENTO', re.IGNORECASE),
    re.compile(r'JUROS\s*CRED', re.IGNORECASE),
    re.compile(r'TRANSF(?:ERENCIA)?\s*REC', re.IGNORECASE),
    re.compile(r'CR[EÉ]DITO\s*(?:REF|REFINANCIAMENTO)?', re.IGNORECASE),
    re.compile(r'PAGAMENTO\s*ANTECIPADO', re.IGNORECASE),
]

FALLBACK_DESCRIPTION = "Transacao"


@dataclass
class LineContext:
    """Document-level facts shared by every line of one statement."""

    confidence: float
    is_credit_card: bool = False
    invoice_due_date: date | None = None
    today: date | None = None

    @property
    def reference_date(self) -> date:
        """Date that year-less transaction dates are resolved against."""
        return self.invoice_due_date or self.today or date.today()


def find_amounts(text: str) -> list[tuple[Decimal, re.Match]]:
    """All non-zero currency-shaped tokens on a line, in order."""
    amounts = []
    for match in AMOUNT_PATTERN.finditer(text):
        amount = parse_brl_amount(match.group(0))
        if amount != 0:
            amounts.append((amount, match))
    return amounts


def clean_description(description: str) -> str:
    """Drop bullets, collapse whitespace and trim separators."""
    description = re.sub(r'^[□●○•\-*\s]+', '', description)
    description = re.sub(r'\s+', ' ', description)
    return description.strip(" :-").strip()


def detect_transaction_type(
    description: str,
    amount: Decimal,
    raw_line: str = "",
    is_credit_card: bool = False
) -> TransactionType:
    """Decide INCOME vs EXPENSE for a statement line.

    Args:
        description: Cleaned description
        amount: Signed amount parsed from the line
        raw_line: Full OCR line (keeps the C/D suffix)
        is_credit_card: Whether the document is a card invoice

    Returns:
        TransactionType.INCOME or TransactionType.EXPENSE
    """
    def matches(patterns):
        return any(p.search(description) or p.search(raw_line) for p in patterns)

    if matches(CREDIT_INDICATORS):
        return TransactionType.INCOME

    if matches(DEBIT_INDICATORS):
        return TransactionType.EXPENSE

    if is_credit_card:
        # Purchases are expenses on invoices
        return TransactionType.EXPENSE

    if matches(BANK_INCOME_INDICATORS):
        return TransactionType.INCOME

    return TransactionType.INCOME if amount >= 0 else TransactionType.EXPENSE


def _money_for(type_: TransactionType, amount: Decimal) -> Money:
    if type_ == TransactionType.EXPENSE:
        return Money.expense(amount)
    return Money.income(amount)


class LineExtractor:
    """Turns a statement line into a transaction."""

    name = "base"

    def applies_to(self, text: str) -> bool:
        """Whether this extractor should be tried for the given document."""
        return True

    def try_extract(self, line: str, context: LineContext) -> NormalizedTransaction | None:
        raise NotImplementedError


class C6StatementLineExtractor(LineExtractor):
    """C6 account statement rows: launch date, accounting date, type column,
    description and amount."""

    name = "c6_statement"

    def applies_to(self, text: str) -> bool:
        has_header = any(p.search(text) for p in C6_HEADER_PATTERNS)
        has_columns = any(p.search(text) for p in C6_COLUMN_HEADER_PATTERNS)
        has_lines = any(C6_LINE_PATTERN.match(line.strip()) for line in text.splitlines())
        return has_header or has_columns or has_lines

    def try_extract(self, line: str, context: LineContext) -> NormalizedTransaction | None:
        match = C6_LINE_PATTERN.match(line)
        if not match:
            return None

        _, accounting_date, type_column, rest = match.groups()

        # The second date is the accounting date
        day, month = accounting_date.split("/")
        txn_date = parse_numeric_date(day, month, None, context.reference_date)
        if txn_date is None:
            return None

        amounts = find_amounts(rest)
        if not amounts:
            return None

        amount, amount_match = amounts[-1]

        description = clean_description(rest[:amount_match.start()])
        if len(description) < 2:
            description = type_column

        upper_type = type_column.upper()
        if "ENTRADA" in upper_type or "RECEBIDO" in upper_type:
            type_ = TransactionType.INCOME
        elif any(token in upper_type for token in ("SAÍDA", "SAIDA", "PAGAMENTO", "OUTROS GASTOS")):
            type_ = TransactionType.EXPENSE
        else:
            type_ = TransactionType.INCOME if amount >= 0 else TransactionType.EXPENSE

        transaction_kind = None
        if "PIX" in upper_type:
            transaction_kind = "PIX RECEBIDO" if "ENTRADA" in upper_type else "PIX ENVIADO"
        elif "PAGAMENTO" in upper_type:
            transaction_kind = "BOLETO"

        return NormalizedTransaction(
            description=description,
            money=_money_for(type_, amount),
            date=txn_date,
            type=type_,
            transaction_kind=transaction_kind,
            confidence=context.confidence,
        )


class GenericLineExtractor(LineExtractor):
    """Fallback for unknown layouts: a date somewhere on the line and the
    last currency token as the amount."""

    name = "generic"

    def _find_date(self, line: str, context: LineContext) -> tuple[date | None, str | None]:
        reference = context.reference_date
        for pattern in DATE_PATTERNS:
            match = pattern.search(line)
            if not match:
                continue
            groups = match.groups()
            year = groups[2] if len(groups) == 3 else None
            parsed = parse_numeric_date(groups[0], groups[1], year, reference)
            if parsed:
                return parsed, match.group(0)

        if context.is_credit_card:
            match = CREDIT_CARD_LINE_DATE_PATTERN.search(line)
            if match:
                parsed = parse_abbrev_date(match.group(1), match.group(2), reference)
                if parsed:
                    return parsed, match.group(0)

        return None, None

    def try_extract(self, line: str, context: LineContext) -> NormalizedTransaction | None:
        txn_date, date_text = self._find_date(line, context)
        if txn_date is None:
            return None

        amounts = find_amounts(line)
        if not amounts:
            return None

        # Statements print the amount after the description
        amount = amounts[-1][0]

        description = line.replace(date_text, "", 1)
        description = AMOUNT_PATTERN.sub("", description)
        description = clean_description(description)

        # A card line may still start with its own "DD mes" date
        nested_reference = context.invoice_due_date or txn_date
        nested = DESCRIPTION_DATE_PATTERN.match(description)
        if nested:
            nested_date = parse_abbrev_date(nested.group(1), nested.group(2), nested_reference)
            if nested_date:
                txn_date = nested_date
                description = description[nested.end():].strip()

        if len(description) < 3:
            description = FALLBACK_DESCRIPTION

        type_ = detect_transaction_type(description, amount, line, context.is_credit_card)

        return NormalizedTransaction(
            description=description,
            money=_money_for(type_, amount),
            date=txn_date,
            type=type_,
            transaction_kind=detect_transaction_kind(description),
            confidence=context.confidence,
        )
