from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, NamedTuple


TICKER = "ticker"
TICKER_NAME = "ticker_name"
NUMBER_OF_SHARES = "number_of_shares"
PAYMENT_DATE = "payment_date"
VALUE = "value"
CURRENCY = "currency"

NUMBER_OF_PAYMENTS = "number_of_payments"
TOTAL_PAYMENTS = "total_payments"
AVERAGE_PAYMENT = "average_payment"

# Column key -> display label, in table order.
REQUIRED_COLUMNS: Dict[str, str] = {
    TICKER: "Ticker",
    TICKER_NAME: "Ticker Name",
    NUMBER_OF_SHARES: "Number of Shares",
    PAYMENT_DATE: "Payment Date",
    VALUE: "Value",
}

SUMMARY_COLUMNS: Dict[str, str] = {
    TICKER: "Ticker",
    TICKER_NAME: "Ticker Name",
    NUMBER_OF_PAYMENTS: "Number of Payments",
    AVERAGE_PAYMENT: "Average Payment",
    TOTAL_PAYMENTS: "Total Payments",
}


@dataclass(frozen=True)
class CanonicalRecord:
    ticker: str = ""
    ticker_name: str = ""
    number_of_shares: str = ""
    payment_date: str = ""
    value: str = ""
    currency: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SummaryRow:
    ticker: str
    ticker_name: str
    number_of_payments: int
    total_payments: str
    average_payment: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SeriesPoint(NamedTuple):
    label: str
    value: float


@dataclass
class TableState:
    """Sort/pagination state for one table.

    `rows` is always a sorted copy of `raw_rows`; `page` is 1-based.
    """

    raw_rows: List[Any] = field(default_factory=list)
    rows: List[Any] = field(default_factory=list)
    sort_key: str = ""
    sort_dir: str = "asc"
    page: int = 1
    page_size: int = 10
