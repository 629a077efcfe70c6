"""
Itaú CSV Parser

Parses Itaú exports, which name the description column "lançamento".
"""

from .base import BaseCSVParser


class ItauParser(BaseCSVParser):
    """Parser for Itaú CSV exports."""

    BANK_NAME = "Itaú"
    BANK_CODE = "itau"

    COLUMN_KEYWORDS = {
        "date": ["data"],
        "description": ["lancamento", "descricao"],
        "amount": ["valor"],
    }
