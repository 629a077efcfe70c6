"""
Statement Import Module

Parses Brazilian bank and credit card statements (CSV exports and OCR
text) into normalized transactions and classifies their descriptions.
"""

from .categorizer import CategoryRuleLookup, RulesCache, SuggestedCategory
from .classifiers import (
    detect_installment,
    detect_recurring_transaction,
    detect_special_transaction,
    detect_transaction_kind,
    detect_transfer,
    is_carryover_transaction,
    suggest_category_for_statement,
)
from .csv_parsers import (
    NormalizedTransaction,
    ParseResult,
    TransactionType,
    UnrecognizedFormatError,
    detect_and_parse,
    detect_bank_from_content,
    parse_csv,
)
from .normalizers import Direction, Money, parse_brl_amount
from .statement_parser import StatementParser, StatementParseResult, parse_statement_text

__all__ = [
    "CategoryRuleLookup",
    "Direction",
    "Money",
    "NormalizedTransaction",
    "ParseResult",
    "RulesCache",
    "StatementParseResult",
    "StatementParser",
    "SuggestedCategory",
    "TransactionType",
    "UnrecognizedFormatError",
    "detect_and_parse",
    "detect_bank_from_content",
    "detect_installment",
    "detect_recurring_transaction",
    "detect_special_transaction",
    "detect_transaction_kind",
    "detect_transfer",
    "is_carryover_transaction",
    "parse_brl_amount",
    "parse_csv",
    "parse_statement_text",
    "suggest_category_for_statement",
]
