import pytest

from dividend_core.data import load_csv_text
from dividend_core.metrics_overview import EMPTY, compute_overview
from tests.helpers import record


@pytest.fixture
def sample_records(sample_csv):
    records, _ = load_csv_text(sample_csv)
    return records


def test_overview_totals(sample_records, now):
    ov = compute_overview(sample_records, now)
    assert ov["currency_symbol"] == "€"
    assert ov["count"] == 18
    assert ov["first_payment"] == "15/06/2010 10:30"
    assert ov["last_payment"] == "15/10/2025 10:30"
    assert ov["total"] == pytest.approx(3.03)
    assert ov["total_30d"] == pytest.approx(0.46)
    assert ov["total_365d"] == pytest.approx(2.70)
    assert ov["average"] == pytest.approx(3.03 / 18)
    assert ov["average_per_month"] == pytest.approx(0.225)


def test_overview_ticker_cards(sample_records, now):
    ov = compute_overview(sample_records, now)
    assert ov["max_payment"]["amount"] == pytest.approx(0.46)
    assert ov["max_payment"]["ticker"] == "KO"
    assert ov["max_payment"]["payment_date"] == "15/02/2025 10:30"
    assert (ov["most_payments"]["ticker"], ov["most_payments"]["count"]) == ("AAPL", 5)
    assert ov["biggest_payer"]["ticker"] == "KO"
    assert ov["biggest_payer"]["total"] == pytest.approx(1.52)
    assert ov["lowest_payer"]["ticker"] == "V"
    assert ov["lowest_payer"]["total"] == pytest.approx(0.30)


def test_overview_display(sample_records, now):
    display = compute_overview(sample_records, now)["display"]
    assert display["total"] == "€ 3.03"
    assert display["total_30d"] == "€ 0.46"
    assert display["count"] == "18"
    assert display["most_payments"] == "5 payments"
    assert display["lowest_payer"] == "€ 0.30"


def test_overview_empty(now):
    ov = compute_overview([], now)
    assert ov["count"] == 0
    assert ov["total"] == 0.0
    for key in ("first_payment", "last_payment", "max_payment", "most_payments", "biggest_payer", "lowest_payer"):
        assert ov[key] is None
        assert ov["display"][key] == EMPTY
    assert ov["display"]["total"] == EMPTY


def test_overview_ignores_rows_without_amount_or_date(now):
    records = [
        record("A", "2.00", "01/10/2025 00:00"),
        record("B", "n/a", "02/10/2025 00:00"),
        record("C", "5.00", "someday"),
    ]
    ov = compute_overview(records, now)
    assert ov["count"] == 1
    assert ov["total"] == pytest.approx(2.0)
    assert ov["last_payment"] == "02/10/2025 00:00"


def test_overview_zero_totals_have_no_payers(now):
    records = [record("A", "0", "01/10/2025 00:00"), record("B", "0.00", "02/10/2025 00:00")]
    ov = compute_overview(records, now)
    assert ov["count"] == 2
    assert ov["biggest_payer"] is None
    assert ov["lowest_payer"] is None


def test_overview_negative_lowest_is_hidden(now):
    records = [record("A", "5", "01/10/2025 00:00"), record("B", "-1", "02/10/2025 00:00")]
    ov = compute_overview(records, now)
    assert ov["biggest_payer"]["ticker"] == "A"
    assert ov["lowest_payer"] is None


def test_overview_unknown_ticker_label(now):
    ov = compute_overview([record("", "3", "01/10/2025 00:00")], now)
    assert ov["biggest_payer"]["ticker"] == "Unknown"
    assert ov["max_payment"]["ticker"] == ""
