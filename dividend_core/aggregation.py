from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

import pandas as pd

from dividend_core.data import records_frame
from dividend_core.models import CanonicalRecord, SeriesPoint, SummaryRow
from dividend_core.utils import currency_symbol_from, format_money, month_index, round_half_up


MONTHLY, QUARTERLY, SEMI_ANNUAL, ANNUAL = 1, 3, 6, 12


def infer_currency(records: Sequence[CanonicalRecord]) -> str:
    """Currency of the first record that has one; applied to every summary figure."""
    return next((r.currency for r in records if r.currency), "")


def build_summary_rows(records: Sequence[CanonicalRecord]) -> List[SummaryRow]:
    """One row per distinct ticker (the empty ticker included), in first-seen order.

    Records whose value has no numeric content are left out of count and total.
    """
    df = records_frame(records)
    valid = df.dropna(subset=["amount"])
    if valid.empty:
        return []
    symbol = currency_symbol_from(infer_currency(records))

    grouped = (
        valid.groupby("ticker", sort=False)
        .agg(ticker_name=("ticker_name", "first"), payments=("amount", "size"), total=("amount", "sum"))
        .reset_index()
    )
    out: List[SummaryRow] = []
    for r in grouped.itertuples(index=False):
        count = int(r.payments)
        total = float(r.total)
        average = total / count if count else 0.0
        out.append(
            SummaryRow(
                ticker=str(r.ticker),
                ticker_name=str(r.ticker_name),
                number_of_payments=count,
                total_payments=format_money(total, symbol),
                average_payment=format_money(average, symbol),
            )
        )
    return out


def _dated_amounts(records: Sequence[CanonicalRecord]) -> pd.DataFrame:
    df = records_frame(records)
    df = df.dropna(subset=["paid_at"]).copy()
    df["month"] = df["paid_at"].dt.year * 12 + df["paid_at"].dt.month - 1
    return df


def last_12_months_series(records: Sequence[CanonicalRecord], now: Optional[datetime] = None) -> List[SeriesPoint]:
    """Monthly sums for the 12 calendar months ending with the current one."""
    now = now or datetime.now()
    dated = _dated_amounts(records)
    if dated.empty:
        return []

    end = month_index(now)
    start = end - 11
    valid = dated.dropna(subset=["amount"])
    valid = valid[(valid["month"] >= start) & (valid["month"] <= end)]
    sums = valid.groupby("month")["amount"].sum()

    points: List[SeriesPoint] = []
    for idx in range(start, end + 1):
        year, month0 = divmod(idx, 12)
        points.append(SeriesPoint(f"{month0 + 1:02d}/{year}", round_half_up(float(sums.get(idx, 0.0)), 2)))
    return points


def choose_bucket_size(span_months: int) -> int:
    if span_months <= 12:
        return MONTHLY
    if span_months <= 36:
        return QUARTERLY
    if span_months <= 72:
        return SEMI_ANNUAL
    return ANNUAL


def bucket_label(bucket: int, size: int) -> str:
    year, month0 = divmod(bucket * size, 12)
    if size == MONTHLY:
        return f"{month0 + 1:02d}/{year}"
    if size == QUARTERLY:
        return f"Q{month0 // 3 + 1} {year}"
    if size == SEMI_ANNUAL:
        return f"{'06' if month0 < 6 else '12'}/{year}"
    return str(year)


def growth_series(records: Sequence[CanonicalRecord], now: Optional[datetime] = None) -> List[SeriesPoint]:
    """Cumulative payments from the earliest record's bucket through the current one.

    Bucket width adapts to the covered span: monthly, quarterly, semi-annual or annual.
    """
    now = now or datetime.now()
    dated = _dated_amounts(records)
    if dated.empty:
        return []

    first_month = int(dated["month"].min())
    span = month_index(now) - first_month + 1
    size = choose_bucket_size(span)
    first_bucket = first_month // size
    last_bucket = month_index(now) // size
    if last_bucket < first_bucket:
        return []

    valid = dated.dropna(subset=["amount"]).copy()
    valid["bucket"] = valid["month"] // size
    sums = (
        valid.groupby("bucket")["amount"]
        .sum()
        .reindex(range(first_bucket, last_bucket + 1), fill_value=0.0)
    )
    cumulative = sums.cumsum()
    return [SeriesPoint(bucket_label(int(b), size), round_half_up(float(v), 2)) for b, v in cumulative.items()]
