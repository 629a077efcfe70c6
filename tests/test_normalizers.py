"""
Normalizer Tests

Tests for Brazilian amount parsing, Money and statement date handling.
"""

import pytest
from datetime import date
from decimal import Decimal
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from statement_import.normalizers import (
    Direction,
    Money,
    build_date,
    infer_year,
    parse_abbrev_date,
    parse_brl_amount,
    parse_date_string,
    parse_full_month_date,
)


class TestParseBrlAmount:
    """Tests for Brazilian currency parsing."""

    @pytest.mark.parametrize("raw,expected", [
        ("1.234,56", Decimal("1234.56")),
        ("-1.234,56", Decimal("-1234.56")),
        ("R$ 45,90", Decimal("45.90")),
        ("R$ -45,90", Decimal("-45.90")),
        ("100,00 D", Decimal("-100.00")),
        ("100,00 C", Decimal("100.00")),
        ("1.000.000,00", Decimal("1000000.00")),
        ("0,99", Decimal("0.99")),
    ])
    def test_valid_amounts(self, raw, expected):
        assert parse_brl_amount(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "R$"])
    def test_not_an_amount(self, raw):
        """Test unparseable text yields zero rather than raising."""
        assert parse_brl_amount(raw) == Decimal("0")

    def test_result_is_rounded_to_cents(self):
        assert parse_brl_amount("10,5") == Decimal("10.50")


class TestMoney:
    """Tests for the direction-tagged amount."""

    def test_expense_is_negative_when_signed(self):
        money = Money.expense("45.90")

        assert money.direction == Direction.EXPENSE
        assert money.magnitude == Decimal("45.90")
        assert money.signed() == Decimal("-45.90")

    def test_income_keeps_positive_sign(self):
        money = Money.income(Decimal("-30"))

        assert money.magnitude == Decimal("30.00")
        assert money.signed() == Decimal("30.00")

    def test_from_signed(self):
        assert Money.from_signed(Decimal("-2200.00")).is_expense is True
        assert Money.from_signed(Decimal("0")).direction == Direction.INCOME

    def test_negative_magnitude_rejected(self):
        with pytest.raises(ValueError):
            Money(magnitude=Decimal("-1"), direction=Direction.INCOME)


class TestDates:
    """Tests for date inference and parsing."""

    def test_later_month_belongs_to_previous_year(self):
        """Test an August line on a June invoice is last year's."""
        assert infer_year(8, date(2026, 6, 10)) == 2025

    def test_same_or_earlier_month_keeps_year(self):
        assert infer_year(6, date(2026, 6, 10)) == 2026
        assert infer_year(1, date(2026, 6, 10)) == 2026

    @pytest.mark.parametrize("day,month,year", [
        (31, 2, 2026),
        (0, 5, 2026),
        (15, 13, 2026),
        (32, 1, 2026),
    ])
    def test_invalid_dates_return_none(self, day, month, year):
        assert build_date(day, month, year) is None

    def test_two_digit_year(self):
        assert build_date(10, 1, 26) == date(2026, 1, 10)

    def test_abbrev_date(self):
        assert parse_abbrev_date("13", "ago", date(2026, 6, 10)) == date(2025, 8, 13)
        assert parse_abbrev_date("02", "MAI", date(2026, 6, 10)) == date(2026, 5, 2)
        assert parse_abbrev_date("02", "xyz", date(2026, 6, 10)) is None

    def test_full_month_date(self):
        assert parse_full_month_date("10", "junho", "2026") == date(2026, 6, 10)
        assert parse_full_month_date("10", "Março", "2026") == date(2026, 3, 10)

    @pytest.mark.parametrize("raw,expected", [
        ("10/01/2026", date(2026, 1, 10)),
        ("10/01/26", date(2026, 1, 10)),
        ("10-01-2026", date(2026, 1, 10)),
        ("10.01.2026", date(2026, 1, 10)),
        ("2026-01-10", date(2026, 1, 10)),
        ("2026-01-10T08:30:00", date(2026, 1, 10)),
    ])
    def test_date_string_formats(self, raw, expected):
        assert parse_date_string(raw) == expected

    def test_date_string_without_year(self):
        assert parse_date_string("20/12", date(2026, 3, 20)) == date(2025, 12, 20)

    @pytest.mark.parametrize("raw", [None, "", "31/02/2026", "amanha"])
    def test_invalid_date_strings(self, raw):
        assert parse_date_string(raw) is None
