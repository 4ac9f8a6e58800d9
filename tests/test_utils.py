import math

import pytest

from dividend_core.utils import (
    currency_symbol_from,
    display_money,
    format_date_display,
    format_money,
    normalize_header,
    number_from_mixed_string,
    parse_display_date,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2025-08-15", "15/08/2025 00:00"),
        ("2025-08-15 10:30:00", "15/08/2025 10:30"),
        ("2025-08-15 10:30", "15/08/2025 10:30"),
        ("2025-08-15T07:05:59", "15/08/2025 07:05"),
        ("  2025-01-02  ", "02/01/2025 00:00"),
        ("15/08/2025 10:30", "15/08/2025 10:30"),
        ("August 15, 2025", "15/08/2025 00:00"),
        ("2025-08-15T10:30:00+02:00", "15/08/2025 10:30"),
    ],
)
def test_format_date_display(raw, expected):
    assert format_date_display(raw) == expected


def test_format_date_display_rolls_over_invalid_day():
    assert format_date_display("2025-02-30") == "02/03/2025 00:00"


def test_format_date_display_passthrough():
    assert format_date_display("not a date") == "not a date"
    assert format_date_display("now") == "now"
    assert format_date_display(" Today ") == " Today "
    assert format_date_display("") == ""
    assert format_date_display(None) == ""


def test_parse_display_date():
    parsed = parse_display_date("15/08/2025 10:30")
    assert (parsed.year, parsed.month, parsed.day, parsed.hour, parsed.minute) == (2025, 8, 15, 10, 30)
    assert parse_display_date("2025-08-15") is None
    assert parse_display_date("31/02/2025 00:00") is None


def test_number_from_mixed_string():
    assert number_from_mixed_string("5.40") == 5.40
    assert number_from_mixed_string("$1,234.56") == 1234.56
    assert number_from_mixed_string("-3.5 EUR") == -3.5
    assert number_from_mixed_string(12) == 12.0
    # No locale awareness: the comma is simply dropped.
    assert number_from_mixed_string("€ 1.234,56") == pytest.approx(1.23456)


@pytest.mark.parametrize("raw", ["", "€", "n/a", "1.2.3", "-", None])
def test_number_from_mixed_string_nan(raw):
    assert math.isnan(number_from_mixed_string(raw))


def test_normalize_header():
    assert normalize_header("  Ticker   Name ") == "ticker name"
    assert normalize_header("TICKER") == normalize_header(" Ticker ") == normalize_header("ticker")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("EUR", "€"),
        ("euro", "€"),
        ("  'usd' ", "$"),
        ('"GBP"', "£"),
        ("Pound Sterling", "£"),
        ("us  dollar", "$"),
        ("cny", "¥"),
        ("XXX", "XXX"),
        (" Doubloons ", "Doubloons"),
        ("", ""),
    ],
)
def test_currency_symbol_from(raw, expected):
    assert currency_symbol_from(raw) == expected


def test_format_money():
    assert format_money(11.5, "$") == "$ 11.50"
    assert format_money(3, "") == "3.00"


def test_display_money():
    assert display_money("0.46", "EUR") == "€ 0.46"
    assert display_money("$1,000", "") == "1000.00"
    assert display_money("n/a", "EUR") == "n/a"
    assert display_money("", "EUR") == ""
