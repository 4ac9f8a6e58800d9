import pytest

from dividend_core.data import (
    INLINE_SAMPLE_CSV,
    DataLoadError,
    HeaderMap,
    build_header_map,
    load_csv_text,
    load_default_csv_text,
    normalize_row,
    normalize_rows,
    parse_csv,
    records_frame,
)
from dividend_core.models import CanonicalRecord


SAMPLE_HEADERS = INLINE_SAMPLE_CSV.splitlines()[0].split(",")


@pytest.mark.parametrize("header", ["TICKER", " Ticker ", "ticker", "Symbol"])
def test_header_map_is_case_and_space_insensitive(header):
    assert build_header_map([header]).ticker == header


def test_header_map_for_broker_export():
    header_map = build_header_map(SAMPLE_HEADERS)
    assert header_map == HeaderMap(
        ticker="Ticker",
        name="Name",
        shares="No. of shares",
        date="Time",
        value="Total",
        currency="Currency (Total)",
    )


def test_header_map_first_matching_header_in_file_order_wins():
    header_map = build_header_map(["Name", "Ticker Name", "Amount", "Value"])
    assert header_map.name == "Name"
    assert header_map.value == "Amount"
    assert build_header_map(["Ticker Name", "Name"]).name == "Ticker Name"


def test_header_map_currency_total_wins_over_other_currency_columns():
    headers = ["Currency (Price / share)", "Currency", "CURRENCY  (TOTAL)"]
    assert build_header_map(headers).currency == "CURRENCY  (TOTAL)"
    assert build_header_map(headers[:1] + ["Currency (Withholding tax)"]).currency == "Currency (Price / share)"


def test_header_map_missing_fields_are_none():
    assert build_header_map([]) == HeaderMap()


def test_normalize_row_defaults_missing_fields():
    header_map = build_header_map(["Value"])
    assert normalize_row({"Value": "1.00"}, header_map) == CanonicalRecord(value="1.00")


def test_normalize_row_coerces_non_strings():
    header_map = build_header_map(["Ticker", "Shares", "Date", "Value"])
    rec = normalize_row({"Ticker": None, "Shares": 3, "Date": "2025-08-15", "Value": float("nan")}, header_map)
    assert rec == CanonicalRecord(number_of_shares="3", payment_date="15/08/2025 00:00")


def test_normalize_rows_shares_one_header_map():
    rows = [{"Symbol": "AAPL", "Amount": "1"}, {"Symbol": "MSFT"}]
    records = normalize_rows(rows)
    assert [r.ticker for r in records] == ["AAPL", "MSFT"]
    assert [r.value for r in records] == ["1", ""]


def test_parse_csv_skips_malformed_rows():
    result = parse_csv("a,b\n1,2\n3,4,5\n\n6,7\n")
    assert result.headers == ["a", "b"]
    assert result.rows == [{"a": "1", "b": "2"}, {"a": "6", "b": "7"}]
    assert len(result.errors) == 1


def test_parse_csv_pads_short_rows_and_trims_headers():
    result = parse_csv(" Ticker , Value \nAAPL\n")
    assert result.headers == ["Ticker", "Value"]
    assert result.rows == [{"Ticker": "AAPL", "Value": ""}]


def test_parse_csv_trailing_delimiter_keeps_columns_aligned():
    records, errors = load_csv_text("Ticker,Value,Currency\nAAPL,5.40,USD,\nMSFT,6.10,USD,\n")
    assert [r.ticker for r in records] == ["AAPL", "MSFT"]
    assert records[0] == CanonicalRecord(ticker="AAPL", value="5.40", currency="USD")
    assert len(errors) == 1


def test_parse_csv_keeps_values_as_strings():
    result = parse_csv("Ticker,Value\nNA,0010\n")
    assert result.rows == [{"Ticker": "NA", "Value": "0010"}]


def test_parse_csv_without_header_row():
    result = parse_csv("AAPL,1\nMSFT,2\n", header=False)
    assert result.headers == ["0", "1"]
    assert result.rows[1] == {"0": "MSFT", "1": "2"}


def test_parse_csv_empty_input():
    assert parse_csv("").rows == []
    assert parse_csv("  \n\n").rows == []


def test_parse_csv_bytes_with_bom():
    result = parse_csv("\ufeffTicker,Value\nAAPL,1\n".encode("utf-8"))
    assert result.headers == ["Ticker", "Value"]


def test_parse_csv_rejects_undecodable_bytes():
    with pytest.raises(DataLoadError):
        parse_csv(b"\xff\xfe\xfa bad")


def test_load_csv_text_sample():
    records, errors = load_csv_text(INLINE_SAMPLE_CSV)
    assert errors == []
    assert len(records) == 18
    assert records[0] == CanonicalRecord(
        ticker="AAPL",
        ticker_name="Apple Inc",
        number_of_shares="0.2000000000",
        payment_date="15/06/2010 10:30",
        value="0.02",
        currency="EUR",
    )


def test_load_default_csv_text_falls_back_to_inline(tmp_path):
    assert load_default_csv_text(tmp_path / "missing.csv") == INLINE_SAMPLE_CSV


def test_load_default_csv_text_reads_file(tmp_path):
    path = tmp_path / "dividends.csv"
    path.write_text("Ticker,Value\nAAPL,1\n", encoding="utf-8")
    assert load_default_csv_text(path) == "Ticker,Value\nAAPL,1\n"


def test_records_frame_parses_amount_and_date():
    df = records_frame([
        CanonicalRecord(value="$1.50", payment_date="15/08/2025 10:30"),
        CanonicalRecord(value="n/a", payment_date="sometime"),
    ])
    assert df["amount"].iloc[0] == 1.5
    assert df["amount"].isna().iloc[1]
    assert df["paid_at"].iloc[0].month == 8
    assert df["paid_at"].isna().iloc[1]


def test_records_frame_keeps_dates_outside_nanosecond_range():
    df = records_frame([CanonicalRecord(value="1", payment_date="01/01/1500 00:00")])
    assert not df["paid_at"].isna().iloc[0]
    assert df["paid_at"].iloc[0].year == 1500


def test_records_frame_empty():
    df = records_frame([])
    assert df.empty
    assert {"ticker", "amount", "paid_at"}.issubset(df.columns)
