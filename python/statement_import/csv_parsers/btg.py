"""
BTG Pactual CSV Parser

Parses BTG exports, which name the description column "histórico".
"""

from .base import BaseCSVParser


class BTGParser(BaseCSVParser):
    """Parser for BTG Pactual CSV exports."""

    BANK_NAME = "BTG Pactual"
    BANK_CODE = "btg"

    COLUMN_KEYWORDS = {
        "date": ["data"],
        "description": ["historico", "descricao"],
        "amount": ["valor"],
    }
