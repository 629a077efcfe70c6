"""
Bank-specific CSV parsers for card statements.
"""

from .base import (
    BaseCSVParser,
    NormalizedTransaction,
    ParseResult,
    TransactionType,
    UnrecognizedFormatError,
)
from .c6 import C6Parser
from .itau import ItauParser
from .btg import BTGParser
from .generic import detect_and_parse, detect_bank_from_content, detect_dialect, parse_csv

__all__ = [
    "BaseCSVParser",
    "NormalizedTransaction",
    "ParseResult",
    "TransactionType",
    "UnrecognizedFormatError",
    "C6Parser",
    "ItauParser",
    "BTGParser",
    "detect_and_parse",
    "detect_bank_from_content",
    "detect_dialect",
    "parse_csv",
]
