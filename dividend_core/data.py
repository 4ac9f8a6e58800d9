from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from dividend_core.models import CanonicalRecord
from dividend_core.utils import (
    format_date_display,
    is_missing,
    normalize_header,
    number_from_mixed_string,
    parse_display_date,
)


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1]
DEFAULT_CSV_PATH = DATA_DIR / "dividends.csv"

CURRENCY_TOTAL_HEADER = "currency (total)"

# Canonical field -> accepted header names (normalized), in priority order.
HEADER_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "ticker": ("ticker", "symbol"),
    "name": ("ticker name", "name", "company", "instrument"),
    "shares": ("number of shares", "no. of shares", "shares"),
    "date": ("payment date", "date", "time"),
    "value": ("value", "amount", "total", "total (gbp)", "gross amount"),
    "currency": (
        "currency (total)",
        "currency",
        "currency (withholding tax)",
        "currency (price / share)",
    ),
}

INLINE_SAMPLE_CSV = """Action,Time,ISIN,Ticker,Name,No. of shares,Price / share,Currency (Price / share),Exchange rate,Total,Currency (Total),Withholding tax,Currency (Withholding tax)
Dividend (Dividend),2010-06-15 10:30:00,US0378331005,AAPL,Apple Inc,0.2000000000,0.120000,USD,Not available,0.02,EUR,0.00,USD
Dividend (Dividend),2010-12-15 10:30:00,US5949181045,MSFT,Microsoft Corp,0.1000000000,0.160000,USD,Not available,0.02,EUR,0.00,USD
Dividend (Dividend),2013-03-15 10:30:00,US92826C8394,V,Visa Inc,0.1500000000,0.200000,USD,Not available,0.03,EUR,0.01,USD
Dividend (Dividend),2013-09-15 10:30:00,US1912161007,KO,Coca-Cola Co,0.5000000000,0.280000,USD,Not available,0.14,EUR,0.03,USD
Dividend (Dividend),2015-01-15 10:30:00,US0378331005,AAPL,Apple Inc,0.3000000000,0.200000,USD,Not available,0.06,EUR,0.01,USD
Dividend (Dividend),2015-07-15 10:30:00,US5949181045,MSFT,Microsoft Corp,0.2000000000,0.310000,USD,Not available,0.06,EUR,0.01,USD
Dividend (Dividend),2024-11-15 10:30:00,US0378331005,AAPL,Apple Inc,0.5000000000,0.240000,USD,Not available,0.12,EUR,0.02,USD
Dividend (Dividend),2024-12-15 10:30:00,US5949181045,MSFT,Microsoft Corp,0.3000000000,0.750000,USD,Not available,0.23,EUR,0.05,USD
Dividend (Dividend),2025-01-15 10:30:00,US92826C8394,V,Visa Inc,0.2000000000,0.450000,USD,Not available,0.09,EUR,0.02,USD
Dividend (Dividend),2025-02-15 10:30:00,US1912161007,KO,Coca-Cola Co,1.0000000000,0.460000,USD,Not available,0.46,EUR,0.09,USD
Dividend (Dividend),2025-03-15 10:30:00,US0378331005,AAPL,Apple Inc,0.5000000000,0.240000,USD,Not available,0.12,EUR,0.02,USD
Dividend (Dividend),2025-04-15 10:30:00,US5949181045,MSFT,Microsoft Corp,0.3000000000,0.750000,USD,Not available,0.23,EUR,0.05,USD
Dividend (Dividend),2025-05-15 10:30:00,US92826C8394,V,Visa Inc,0.2000000000,0.450000,USD,Not available,0.09,EUR,0.02,USD
Dividend (Dividend),2025-06-15 10:30:00,US1912161007,KO,Coca-Cola Co,1.0000000000,0.460000,USD,Not available,0.46,EUR,0.09,USD
Dividend (Dividend),2025-07-15 10:30:00,US0378331005,AAPL,Apple Inc,0.5000000000,0.240000,USD,Not available,0.12,EUR,0.02,USD
Dividend (Dividend),2025-08-15 10:30:00,US5949181045,MSFT,Microsoft Corp,0.3000000000,0.750000,USD,Not available,0.23,EUR,0.05,USD
Dividend (Dividend),2025-09-15 10:30:00,US92826C8394,V,Visa Inc,0.2000000000,0.450000,USD,Not available,0.09,EUR,0.02,USD
Dividend (Dividend),2025-10-15 10:30:00,US1912161007,KO,Coca-Cola Co,1.0000000000,0.460000,USD,Not available,0.46,EUR,0.09,USD
"""


class DataLoadError(ValueError):
    """Raised when CSV input cannot be read at all."""


@dataclass(frozen=True)
class HeaderMap:
    ticker: Optional[str] = None
    name: Optional[str] = None
    shares: Optional[str] = None
    date: Optional[str] = None
    value: Optional[str] = None
    currency: Optional[str] = None


@dataclass
class ParseResult:
    rows: List[Dict[str, str]] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def build_header_map(headers: Iterable[object]) -> HeaderMap:
    candidates = [(h, normalize_header(h)) for h in headers if not is_missing(h)]

    def find(synonyms: Sequence[str]) -> Optional[str]:
        # First header in file order matching any synonym.
        wanted = set(synonyms)
        for raw, key in candidates:
            if key in wanted:
                return str(raw)
        return None

    found = {fld: find(synonyms) for fld, synonyms in HEADER_SYNONYMS.items()}
    # Files carrying several currency columns: the one describing the total wins.
    exact_total = find([CURRENCY_TOTAL_HEADER])
    if exact_total is not None:
        found["currency"] = exact_total
    return HeaderMap(**found)


def _cell(row: Mapping[str, object], key: Optional[str]) -> str:
    if key is None:
        return ""
    value = row.get(key)
    if is_missing(value):
        return ""
    return str(value)


def normalize_row(row: Mapping[str, object], header_map: HeaderMap) -> CanonicalRecord:
    return CanonicalRecord(
        ticker=_cell(row, header_map.ticker),
        ticker_name=_cell(row, header_map.name),
        number_of_shares=_cell(row, header_map.shares),
        payment_date=format_date_display(_cell(row, header_map.date)),
        value=_cell(row, header_map.value),
        currency=_cell(row, header_map.currency),
    )


def normalize_rows(rows: Sequence[Mapping[str, object]], headers: Optional[Iterable[object]] = None) -> List[CanonicalRecord]:
    """Map raw rows onto canonical records; the header map is built once for the whole file."""
    if headers is None:
        seen: Dict[str, None] = {}
        for row in rows:
            for key in row.keys():
                seen.setdefault(key, None)
        headers = list(seen)
    header_map = build_header_map(headers)
    return [normalize_row(row, header_map) for row in rows]


def _decode(text: Union[str, bytes]) -> str:
    if isinstance(text, bytes):
        try:
            return text.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise DataLoadError(f"File is not valid UTF-8 text: {exc}") from exc
    return text.lstrip("\ufeff")


def _read_frame(text: str, header: bool, on_bad_lines, index_col=None) -> pd.DataFrame:
    return pd.read_csv(
        io.StringIO(text),
        header=0 if header else None,
        index_col=index_col,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        engine="python",
        on_bad_lines=on_bad_lines,
    )


def parse_csv(text: Union[str, bytes], header: bool = True) -> ParseResult:
    """Tokenize CSV text into string-keyed rows.

    Malformed rows are collected in `errors` and skipped; they never abort the parse.
    """
    text = _decode(text)
    if not text.strip():
        return ParseResult()

    errors: List[str] = []

    def _bad_line(fields: List[str]) -> None:
        errors.append(f"Malformed row with {len(fields)} fields: {fields!r}")
        return None

    try:
        df = _read_frame(text, header, _bad_line)
        if not isinstance(df.index, pd.RangeIndex):
            # Data rows wider than the header (trailing delimiters): pandas
            # would move the first column into the index. Keep columns aligned
            # and drop the surplus fields instead.
            errors.clear()
            df = _read_frame(text, header, _bad_line, index_col=False)
            errors.append(f"Data rows have more fields than the {len(df.columns)} header columns; extra fields ignored")
    except pd.errors.EmptyDataError:
        return ParseResult()
    except (pd.errors.ParserError, ValueError) as exc:
        raise DataLoadError(f"Could not parse CSV: {exc}") from exc

    df.columns = [str(c).strip() for c in df.columns]
    df = df.fillna("")
    if errors:
        logger.warning("CSV parse errors (%d): %s", len(errors), errors[:5])
    return ParseResult(rows=df.to_dict(orient="records"), headers=list(df.columns), errors=errors)


def load_csv_text(text: Union[str, bytes]) -> Tuple[List[CanonicalRecord], List[str]]:
    """Parse and normalize a CSV file. Returns (records, parse errors)."""
    result = parse_csv(text, header=True)
    return normalize_rows(result.rows, result.headers), result.errors


def file_signature(path: Path) -> Tuple[str, float]:
    return str(path), path.stat().st_mtime


@lru_cache(maxsize=4)
def _read_text_cached(path: str, mtime: float) -> str:
    return Path(path).read_text(encoding="utf-8-sig")


def load_default_csv_text(path: Optional[Union[str, Path]] = None) -> str:
    """Read the bundled dataset, falling back to the inline sample when it is unavailable."""
    target = Path(path) if path else DEFAULT_CSV_PATH
    try:
        return _read_text_cached(*file_signature(target))
    except (OSError, UnicodeDecodeError) as exc:
        logger.info("Default dataset %s unavailable (%s); using inline sample", target, exc)
        return INLINE_SAMPLE_CSV


def records_frame(records: Sequence[CanonicalRecord]) -> pd.DataFrame:
    """Records as a DataFrame with parsed `amount` (float, NaN if unparseable) and `paid_at` columns."""
    columns = list(CanonicalRecord.__dataclass_fields__)
    df = pd.DataFrame([r.to_dict() for r in records], columns=columns)
    df["amount"] = pd.to_numeric(df["value"].map(number_from_mixed_string), errors="coerce").astype(float)
    # Second resolution keeps years outside the nanosecond Timestamp range.
    paid_at = np.array([parse_display_date(v) for v in df["payment_date"]], dtype="datetime64[s]")
    df["paid_at"] = pd.Series(paid_at, index=df.index)
    return df
