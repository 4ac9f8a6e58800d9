from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Sequence

import pandas as pd

from dividend_core.aggregation import infer_currency
from dividend_core.data import records_frame
from dividend_core.models import CanonicalRecord
from dividend_core.utils import currency_symbol_from, format_money


EMPTY = "—"
UNKNOWN_TICKER = "Unknown"


def _ticker_card(row: pd.Series) -> Dict[str, Any]:
    return {
        "ticker": str(row["ticker_key"]),
        "ticker_name": str(row["ticker_name"]),
        "count": int(row["payments"]),
        "total": float(row["total"]),
    }


def compute_overview(records: Sequence[CanonicalRecord], now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now()
    symbol = currency_symbol_from(infer_currency(records))
    df = records_frame(records)

    dated = df.dropna(subset=["paid_at"]).sort_values("paid_at", kind="stable")
    first_payment = str(dated.iloc[0]["payment_date"]) if not dated.empty else None
    last_payment = str(dated.iloc[-1]["payment_date"]) if not dated.empty else None

    # Totals only count rows where both the amount and the date parse.
    valid = df.dropna(subset=["amount", "paid_at"])
    count = int(len(valid))
    total = float(valid["amount"].sum()) if count else 0.0
    total_30 = float(valid.loc[valid["paid_at"] >= now - timedelta(days=30), "amount"].sum()) if count else 0.0
    total_365 = float(valid.loc[valid["paid_at"] >= now - timedelta(days=365), "amount"].sum()) if count else 0.0
    average = total / count if count else 0.0
    average_per_month = total_365 / 12

    max_payment = None
    most_payments = None
    biggest_payer = None
    lowest_payer = None
    if count:
        top = valid.loc[valid["amount"].idxmax()]
        max_payment = {
            "amount": float(top["amount"]),
            "ticker": str(top["ticker"]),
            "ticker_name": str(top["ticker_name"]),
            "payment_date": str(top["payment_date"]),
        }

        stats = (
            valid.assign(ticker_key=valid["ticker"].replace("", UNKNOWN_TICKER))
            .groupby("ticker_key", sort=False)
            .agg(ticker_name=("ticker_name", "first"), payments=("amount", "size"), total=("amount", "sum"))
            .reset_index()
        )
        most_payments = _ticker_card(stats.loc[stats["payments"].idxmax()])
        biggest = stats.loc[stats["total"].idxmax()]
        if biggest["total"] > 0:
            biggest_payer = _ticker_card(biggest)
        lowest = stats.loc[stats["total"].idxmin()]
        if lowest["total"] > 0:
            lowest_payer = _ticker_card(lowest)

    def money_or_empty(amount: float, show: bool) -> str:
        return format_money(amount, symbol) if show else EMPTY

    return {
        "currency_symbol": symbol,
        "first_payment": first_payment,
        "last_payment": last_payment,
        "count": count,
        "total": total,
        "total_30d": total_30,
        "total_365d": total_365,
        "average": average,
        "average_per_month": average_per_month,
        "max_payment": max_payment,
        "most_payments": most_payments,
        "biggest_payer": biggest_payer,
        "lowest_payer": lowest_payer,
        "display": {
            "first_payment": first_payment or EMPTY,
            "last_payment": last_payment or EMPTY,
            "count": str(count),
            "total": money_or_empty(total, count > 0),
            "total_30d": money_or_empty(total_30, total_30 > 0),
            "total_365d": money_or_empty(total_365, total_365 > 0),
            "average": money_or_empty(average, count > 0),
            "average_per_month": money_or_empty(average_per_month, total_365 > 0),
            "max_payment": format_money(max_payment["amount"], symbol) if max_payment else EMPTY,
            "most_payments": f"{most_payments['count']} payments" if most_payments else EMPTY,
            "biggest_payer": format_money(biggest_payer["total"], symbol) if biggest_payer else EMPTY,
            "lowest_payer": format_money(lowest_payer["total"], symbol) if lowest_payer else EMPTY,
        },
    }
