"""
CSV Dialect Detection

Picks the bank dialect from the header row and dispatches to its parser.
"""

import csv
import logging
from io import StringIO

from .base import (
    BaseCSVParser,
    CategorySuggester,
    NormalizedTransaction,
    ParseResult,
    UnrecognizedFormatError,
    detect_delimiter,
    normalize_header,
)
from .btg import BTGParser
from .c6 import C6Parser
from .itau import ItauParser

logger = logging.getLogger(__name__)

UNRECOGNIZED_FORMAT_MESSAGE = (
    "Formato de arquivo nao reconhecido. "
    "Por favor, use um arquivo CSV do C6, Itau ou BTG."
)

PARSERS: dict[str, type[BaseCSVParser]] = {
    "c6": C6Parser,
    "itau": ItauParser,
    "btg": BTGParser,
}


def detect_dialect(headers: list[str]) -> str:
    """Detect the bank dialect from CSV headers.

    Args:
        headers: Header row

    Returns:
        'c6', 'itau', 'btg' or 'unknown'
    """
    header_str = ",".join(normalize_header(h) for h in headers if h)

    if "data" in header_str and "descricao" in header_str and "valor" in header_str:
        if "c6" in header_str or "categoria" in header_str:
            return "c6"

    if "data" in header_str and "lancamento" in header_str and "valor" in header_str:
        return "itau"

    if "data" in header_str and "historico" in header_str and "valor" in header_str:
        return "btg"

    # Anything with a date and an amount is read like a C6 file
    if "data" in header_str and "valor" in header_str:
        return "c6"

    return "unknown"


def detect_bank_from_content(content: str) -> str:
    """Suggest an origin label for an uploaded CSV file."""
    lower_content = content.lower()

    if "c6 bank" in lower_content or "c6bank" in lower_content:
        return "Cartao C6"

    if "itau" in lower_content or "itaú" in lower_content:
        return "Cartao Itau"

    if "btg" in lower_content:
        return "Cartao BTG"

    return "Importacao CSV"


def detect_and_parse(
    content: str,
    category_lookup: CategorySuggester | None = None,
    user_id: str | None = None
) -> ParseResult:
    """Detect the dialect and parse content.

    Args:
        content: CSV content string
        category_lookup: Optional suggest_category(description, user_id)
        user_id: User whose category rules apply

    Returns:
        ParseResult from the matching parser

    Raises:
        UnrecognizedFormatError: If the headers match no known dialect
    """
    if content.startswith('\ufeff'):
        content = content[1:]

    reader = csv.reader(StringIO(content), delimiter=detect_delimiter(content))
    headers = next(reader, [])
    has_rows = any(any(cell.strip() for cell in row) for row in reader)

    if not has_rows:
        return ParseResult(bank="unknown")

    dialect = detect_dialect(headers)
    if dialect == "unknown":
        logger.warning(f"Unrecognized CSV headers: {headers}")
        raise UnrecognizedFormatError(UNRECOGNIZED_FORMAT_MESSAGE)

    parser = PARSERS[dialect](category_lookup=category_lookup, user_id=user_id)
    return parser.parse_content(content)


def parse_csv(
    file_content: str,
    bank_origin_label: str,
    category_lookup: CategorySuggester | None = None,
    user_id: str | None = None
) -> list[NormalizedTransaction]:
    """Parse a card statement CSV into import candidates.

    Args:
        file_content: CSV text
        bank_origin_label: Origin the transactions will be imported under
        category_lookup: Optional suggest_category(description, user_id)
        user_id: User whose category rules apply

    Returns:
        Normalized transactions; empty when the file has no data rows

    Raises:
        UnrecognizedFormatError: If the headers match no known dialect
    """
    result = detect_and_parse(file_content, category_lookup, user_id)
    result.origin = bank_origin_label

    logger.info(
        f"Parsed {result.transaction_count} transactions from {result.bank} CSV "
        f"for origin {bank_origin_label} ({len(result.warnings)} rows skipped)"
    )
    return result.transactions
