"""
C6 Bank CSV Parser

Parses C6 credit card exports ("Data de compra;Nome no cartão;Final do
Cartão;Categoria;Descrição;Parcela;Valor (em R$)").
"""

from .base import BaseCSVParser


class C6Parser(BaseCSVParser):
    """Parser for C6 Bank card CSV exports."""

    BANK_NAME = "C6 Bank"
    BANK_CODE = "c6"

    COLUMN_KEYWORDS = {
        "date": ["data"],
        "description": ["descricao", "estabelecimento"],
        "amount": ["valor"],
    }
