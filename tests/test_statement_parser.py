"""
Statement Parser Tests

Tests for OCR text parsing of bank statements and credit card invoices.
"""

import pytest
from datetime import date
from decimal import Decimal
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from statement_import.csv_parsers import TransactionType
from statement_import.line_extractors import (
    GenericLineExtractor,
    LineContext,
    LineExtractor,
    detect_transaction_type,
    find_amounts,
)
from statement_import.normalizers import Money
from statement_import.csv_parsers.base import NormalizedTransaction
from statement_import.statement_parser import (
    DEFAULT_BANK_LABEL,
    StatementParser,
    detect_bank,
    extract_invoice_due_date,
    is_c6_statement,
    is_credit_card_invoice,
    parse_statement_text,
)


C6_STATEMENT = "\n".join([
    "C6 BANK",
    "Extrato Período 01/01/2026 a 31/01/2026",
    "02/01 02/01 Saída PIX Pix enviado para VICTOR -R$ 156,00",
    "03/01 03/01 Entrada PIX Pix recebido de ANA R$ 500,00",
    "05/01 05/01 Pagamento Boleto ENEL R$ 200,00",
    "Saldo do dia 03/01 R$ 1.000,00",
])

GENERIC_STATEMENT = "\n".join([
    "Extrato de conta corrente",
    "15/01/2026 PIX RECEBIDO JOAO 1.500,00",
    "16/01/2026 TARIFA PACOTE 25,00 D",
    "ok",
])


class TestCreditCardInvoice:
    """Tests for invoice text with year-less dates."""

    def test_invoice_lines(self, invoice_text):
        result = parse_statement_text(invoice_text, 92.5)

        assert result.bank == "Extrato C6"
        assert result.is_credit_card is True
        assert result.invoice_due_date == date(2026, 6, 10)

        dates = [t.date for t in result.transactions]
        assert dates == [date(2025, 8, 13), date(2026, 5, 2), date(2026, 5, 20)]

    def test_later_month_goes_to_previous_year(self, invoice_text):
        netflix = parse_statement_text(invoice_text, 90).transactions[0]

        assert netflix.description == "NETFLIX.COM"
        assert netflix.amount == Decimal("-55.90")
        assert netflix.type == TransactionType.EXPENSE

    def test_refund_is_income(self, invoice_text):
        refund = parse_statement_text(invoice_text, 90).transactions[-1]

        assert refund.description == "ESTORNO LOJA XYZ"
        assert refund.amount == Decimal("30.00")
        assert refund.type == TransactionType.INCOME

    def test_confidence_copied_to_lines(self, invoice_text):
        result = parse_statement_text(invoice_text, 88.0)

        assert all(t.confidence == 88.0 for t in result.transactions)
        assert result.average_confidence == 88.0

    def test_duplicate_lines_collapsed(self, invoice_text):
        doubled = invoice_text + "\n02 mai IFOOD *RESTAURANTE 45,90"
        result = parse_statement_text(doubled, 90)

        assert len(result.transactions) == 3


class TestC6Statement:
    """Tests for the C6 account statement grammar."""

    def test_detection(self):
        assert is_c6_statement(C6_STATEMENT) is True
        assert is_c6_statement(GENERIC_STATEMENT) is False

    def test_lines(self):
        result = parse_statement_text(C6_STATEMENT, 95, today=date(2026, 3, 20))

        assert result.is_credit_card is False
        assert len(result.transactions) == 3

        sent, received, boleto = result.transactions

        assert sent.date == date(2026, 1, 2)
        assert sent.description == "Pix enviado para VICTOR"
        assert sent.amount == Decimal("-156.00")
        assert sent.transaction_kind == "PIX ENVIADO"

        assert received.type == TransactionType.INCOME
        assert received.amount == Decimal("500.00")
        assert received.transaction_kind == "PIX RECEBIDO"

        assert boleto.type == TransactionType.EXPENSE
        assert boleto.amount == Decimal("-200.00")
        assert boleto.transaction_kind == "BOLETO"

    def test_year_inferred_from_today(self):
        """Test a December line read in March belongs to last year."""
        text = "C6 BANK\n20/12 20/12 Saída PIX Pix enviado para JOSE -R$ 10,00"
        result = parse_statement_text(text, 90, today=date(2026, 3, 20))

        assert result.transactions[0].date == date(2025, 12, 20)

    def test_balance_lines_ignored(self):
        result = parse_statement_text(C6_STATEMENT, 95, today=date(2026, 3, 20))

        assert all("Saldo" not in t.description for t in result.transactions)


class TestGenericStatement:
    """Tests for the fallback line extractor."""

    def test_bank_statement_lines(self):
        result = parse_statement_text(GENERIC_STATEMENT, 80)

        assert result.bank == DEFAULT_BANK_LABEL
        assert len(result.transactions) == 2

        pix, fee = result.transactions
        assert pix.description == "PIX RECEBIDO JOAO"
        assert pix.amount == Decimal("1500.00")
        assert pix.type == TransactionType.INCOME
        assert pix.transaction_kind == "PIX RECEBIDO"

        assert fee.description == "TARIFA PACOTE"
        assert fee.amount == Decimal("-25.00")
        assert fee.type == TransactionType.EXPENSE

    def test_line_without_amount_is_skipped(self):
        extractor = GenericLineExtractor()
        context = LineContext(confidence=90, today=date(2026, 3, 20))

        assert extractor.try_extract("15/01/2026 SEM VALOR", context) is None

    def test_abbreviated_date_in_description_wins(self):
        """Test "DD mes" after the numeric date replaces it and leaves the description."""
        extractor = GenericLineExtractor()
        context = LineContext(confidence=90, today=date(2026, 6, 20))

        txn = extractor.try_extract("10/06 13 ago NETFLIX.COM 55,90", context)

        assert txn.date == date(2025, 8, 13)
        assert txn.description == "NETFLIX.COM"

    def test_empty_text(self):
        result = parse_statement_text("", 90)

        assert result.transactions == []
        assert result.average_confidence == 0.0

    def test_custom_extractor_runs_first(self):
        class MarkerExtractor(LineExtractor):
            name = "marker"

            def try_extract(self, line, context):
                if not line.startswith("MARK"):
                    return None
                return NormalizedTransaction(
                    description=line,
                    money=Money.expense("1"),
                    date=date(2026, 1, 1),
                    confidence=context.confidence,
                )

        parser = StatementParser(extractors=[MarkerExtractor(), GenericLineExtractor()])
        result = parser.parse("MARK 15/01/2026 ITEM 9,99\n16/01/2026 OUTRO ITEM 5,00", 70)

        assert [t.description for t in result.transactions] == [
            "MARK 15/01/2026 ITEM 9,99",
            "OUTRO ITEM",
        ]

    def test_to_parse_result(self, invoice_text):
        parse_result = parse_statement_text(invoice_text, 90).to_parse_result()

        assert parse_result.bank == "Extrato C6"
        assert parse_result.summary["is_credit_card"] is True


class TestDocumentDetection:
    """Tests for bank, invoice and due date detection."""

    @pytest.mark.parametrize("text,bank", [
        ("ITAU UNIBANCO S.A.", "Extrato Itau"),
        ("BTG Pactual", "Extrato BTG"),
        ("Nu Pagamentos S.A.", "Extrato Nubank"),
        ("Banco do Brasil", "Extrato BB"),
        ("CEF agencia 123", "Extrato Caixa"),
        ("ABCEFG", DEFAULT_BANK_LABEL),
    ])
    def test_detect_bank(self, text, bank):
        assert detect_bank(text) == bank

    def test_single_marker_is_not_invoice(self):
        assert is_credit_card_invoice("Fatura de energia") is False

    def test_two_markers_make_an_invoice(self):
        assert is_credit_card_invoice("Fatura do cartao\nVencimento 10/06/2026") is True

    def test_incidental_invoice_words_are_not_invoice(self):
        assert is_credit_card_invoice("Extrato\nTotal da fatura paga 100,00") is False
        assert is_credit_card_invoice("PAGTO FATURA CARTAO CREDITO 300,00") is False

    def test_bill_payment_line_keeps_statement_mode(self):
        """Test a card bill payment on an account statement does not flip to invoice mode."""
        text = "\n".join([
            "Extrato conta corrente",
            "05/03/2026 PIX RECEBIDO JOAO 500,00",
            "06/03/2026 PAGTO FATURA CARTAO CREDITO 300,00",
        ])
        result = parse_statement_text(text, 85, today=date(2026, 3, 20))

        assert result.is_credit_card is False
        pix = result.transactions[0]
        assert pix.description == "PIX RECEBIDO JOAO"
        assert pix.type == TransactionType.INCOME
        assert pix.amount == Decimal("500.00")

    def test_due_date_with_month_name(self):
        assert extract_invoice_due_date("Vencimento: 10 de junho de 2026") == date(2026, 6, 10)

    def test_no_due_date(self):
        assert extract_invoice_due_date("sem data") is None


class TestLineHelpers:
    def test_find_amounts(self):
        amounts = [amount for amount, _ in find_amounts("R$ 1.234,56 e -10,00 e 0,00")]

        assert amounts == [Decimal("1234.56"), Decimal("-10.00")]

    @pytest.mark.parametrize("description,amount,is_card,expected", [
        ("ESTORNO COMPRA", Decimal("-10"), True, TransactionType.INCOME),
        ("SAQUE 24H", Decimal("10"), False, TransactionType.EXPENSE),
        ("LOJA", Decimal("10"), True, TransactionType.EXPENSE),
        ("DEPOSITO", Decimal("-10"), False, TransactionType.INCOME),
        ("LOJA", Decimal("-10"), False, TransactionType.EXPENSE),
        ("LOJA", Decimal("10"), False, TransactionType.INCOME),
    ])
    def test_detect_transaction_type(self, description, amount, is_card, expected):
        assert detect_transaction_type(description, amount, description, is_card) == expected
