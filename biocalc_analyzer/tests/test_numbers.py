"""Unit tests for locale number parsing and display formatting."""

import math

import pytest

from biocalc.utils.formatters import (
    format_currency_brl,
    format_intensity,
    format_locale_number,
    format_number,
    format_percent,
    format_scientific,
)
from biocalc.utils.numbers import finite_or_zero, parse_locale_number, parse_scientific


# ---- Parsing Tests ----

class TestParseLocaleNumber:
    def test_thousands_and_decimal_comma(self):
        """'1.234,56' uses dot grouping and comma decimals."""
        assert parse_locale_number("1.234,56") == pytest.approx(1234.56)

    def test_plain_integer(self):
        assert parse_locale_number("10000000") == 10000000.0

    def test_negative_value(self):
        assert parse_locale_number("-3,5") == pytest.approx(-3.5)

    def test_inner_whitespace_is_removed(self):
        """Whitespace anywhere in the text is ignored."""
        assert parse_locale_number(" 12 , 5 ") == pytest.approx(12.5)

    def test_dot_is_always_grouping(self):
        """A lone dot is a thousands separator, so '0.5' reads as 5."""
        assert parse_locale_number("0.5") == 5.0

    def test_invalid_text_returns_default(self):
        assert parse_locale_number("abc", 7.0) == 7.0

    def test_empty_returns_default(self):
        assert parse_locale_number("", 1.0) == 1.0
        assert parse_locale_number("   ", 1.0) == 1.0

    def test_non_string_returns_default(self):
        """Numbers and None are not parsed."""
        assert parse_locale_number(None, 2.0) == 2.0
        assert parse_locale_number(5, 2.0) == 2.0
        assert parse_locale_number(5.5, 2.0) == 2.0

    def test_non_finite_returns_default(self):
        assert parse_locale_number("inf", 0.0) == 0.0
        assert parse_locale_number("nan", 0.0) == 0.0
        assert parse_locale_number("1e400", 0.0) == 0.0

    def test_underscore_grouping_rejected(self):
        assert parse_locale_number("1_000", 0.0) == 0.0

    def test_second_comma_is_invalid(self):
        assert parse_locale_number("1,2,3", -1.0) == -1.0

    def test_none_default_detects_failure(self):
        assert parse_locale_number("x", None) is None

    def test_scientific_text_parses(self):
        """Autofilled values such as '1,23E-2' read back as numbers."""
        assert parse_locale_number("1,23E-2") == pytest.approx(0.0123)


class TestParseScientific:
    def test_comma_exponent(self):
        assert parse_scientific("1,23E-2") == pytest.approx(0.0123)

    def test_dot_decimal_accepted(self):
        assert parse_scientific("0.5") == pytest.approx(0.5)

    def test_invalid_returns_zero(self):
        assert parse_scientific("n/a") == 0.0
        assert parse_scientific(None) == 0.0
        assert parse_scientific("") == 0.0


class TestFiniteOrZero:
    def test_finite_passthrough(self):
        assert finite_or_zero(1.5) == 1.5

    def test_non_finite_is_zero(self):
        assert finite_or_zero(math.inf) == 0.0
        assert finite_or_zero(-math.inf) == 0.0
        assert finite_or_zero(math.nan) == 0.0
        assert finite_or_zero(None) == 0.0


# ---- Formatting Tests ----

class TestFormatScientific:
    def test_small_value(self):
        """0.0123 renders as the worksheet does: '1,23E-2'."""
        assert format_scientific(0.0123) == "1,23E-2"

    def test_large_value(self):
        assert format_scientific(123456) == "1,23E+5"

    def test_zero(self):
        assert format_scientific(0.0) == "0,00E+0"

    def test_negative(self):
        assert format_scientific(-0.5) == "-5,00E-1"

    def test_non_finite_renders_zero(self):
        assert format_scientific(math.nan) == "0,00E+0"

    def test_reads_back(self):
        assert parse_scientific(format_scientific(0.051)) == pytest.approx(0.051)


class TestDisplayFormatters:
    def test_locale_number(self):
        assert format_locale_number(1234.5) == "1234,50"
        assert format_locale_number(0.126, 2) == "0,13"
        assert format_locale_number(3, 0) == "3"

    def test_grouped_number(self):
        assert format_number(1234.5) == "1.234,5"
        assert format_number(1234567.891, 2) == "1.234.567,89"

    def test_percent(self):
        assert format_percent(42) == "42,0%"

    def test_intensity(self):
        assert format_intensity(0.0867) == "0,0867 kg CO2e/MJ"

    def test_currency(self):
        assert format_currency_brl(1561.4) == "R$ 1.561,40"
