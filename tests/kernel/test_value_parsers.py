"""
Tests for ledger_kernel.domain.parsers.

Amounts follow the Brazilian convention; dates accept native values,
spreadsheet serials, ISO text and D/M/Y text.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from ledger_kernel.domain.parsers import SPREADSHEET_EPOCH, parse_amount, parse_date


def _pt_br(value: Decimal) -> str:
    """Format a non-negative 2-place Decimal as "1.234,56"."""
    integral, fraction = f"{value:.2f}".split(".")
    groups = []
    while len(integral) > 3:
        groups.insert(0, integral[-3:])
        integral = integral[:-3]
    groups.insert(0, integral)
    return f"{'.'.join(groups)},{fraction}"


class TestParseAmount:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1.234,56", Decimal("1234.56")),
            ("R$ 1.234,56", Decimal("1234.56")),
            ("150", Decimal("150")),
            ("150,5", Decimal("150.5")),
            ("1234.56", Decimal("1234.56")),
            ("1.234.567,89", Decimal("1234567.89")),
            ("-50,00", Decimal("-50.00")),
            ("1.234,56-", Decimal("-1234.56")),
        ],
    )
    def test_locale_strings(self, raw, expected):
        assert parse_amount(raw) == expected

    def test_numbers_pass_through(self):
        assert parse_amount(42) == Decimal("42")
        assert parse_amount(0.1) == Decimal("0.1")
        assert parse_amount(Decimal("9.99")) == Decimal("9.99")

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "-", True, float("nan")])
    def test_unparsable_returns_none(self, raw):
        assert parse_amount(raw) is None

    @given(
        st.decimals(
            min_value=Decimal("0"),
            max_value=Decimal("999999999.99"),
            places=2,
            allow_nan=False,
            allow_infinity=False,
        )
    )
    def test_thousands_dot_decimal_comma_round_trip(self, value):
        assert parse_amount(_pt_br(value)) == value


class TestParseDate:
    def test_native_values(self):
        assert parse_date(date(2025, 1, 31)) == date(2025, 1, 31)
        assert parse_date(datetime(2025, 1, 31, 18, 30)) == date(2025, 1, 31)

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2025-01-31", date(2025, 1, 31)),
            ("2025-01-31T10:00:00Z", date(2025, 1, 31)),
            ("31/01/2025", date(2025, 1, 31)),
            ("31-01-2025", date(2025, 1, 31)),
            ("5/2/25", date(2025, 2, 5)),
            ("31/01/2025 10:15", date(2025, 1, 31)),
        ],
    )
    def test_text_forms(self, raw, expected):
        assert parse_date(raw) == expected

    def test_spreadsheet_serial(self):
        assert parse_date(45688) == date(2025, 1, 31)
        assert parse_date(1) == SPREADSHEET_EPOCH.replace(day=31)

    @pytest.mark.parametrize("raw", [None, "", "not a date", "31/02/2025", 0, False])
    def test_unparsable_returns_none(self, raw):
        assert parse_date(raw) is None

    @given(st.dates(min_value=date(2000, 1, 1), max_value=date(2099, 12, 31)))
    def test_day_month_year_matches_iso(self, value):
        assert parse_date(value.strftime("%d/%m/%Y")) == value
        assert parse_date(value.isoformat()) == value
