from __future__ import annotations

from datetime import datetime

from dividend_core.models import CanonicalRecord


FIXED_NOW = datetime(2025, 10, 20, 12, 0)

FOUR_TICKER_CSV = """Ticker,Name,Payment Date,Value,Currency
AAPL,Apple Inc,2025-07-15,$5.40,USD
MSFT,Microsoft Corp,2025-08-14,$6.10,USD
V,Visa Inc,2025-09-01,$1.25,USD
KO,Coca-Cola Co,2025-10-01,$12.00,USD
"""


def record(ticker: str = "", value: str = "", payment_date: str = "", **kwargs) -> CanonicalRecord:
    return CanonicalRecord(ticker=ticker, value=value, payment_date=payment_date, **kwargs)
