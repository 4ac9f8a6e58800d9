from __future__ import annotations

import math
import re
import warnings
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import pandas as pd


DISPLAY_DATE_FORMAT = "%d/%m/%Y %H:%M"

_YMD = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_YMD_HM = re.compile(r"^(\d{4})-(\d{2})-(\d{2})[ T](\d{2}):(\d{2})(?::(\d{2}))?$")
_DISPLAY = re.compile(r"(\d{2})/(\d{2})/(\d{4})\s+(\d{2}):(\d{2})")
_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_WS = re.compile(r"\s+")
# Words pandas resolves against the current clock; not calendar dates.
_RELATIVE_DATE_WORDS = {"now", "today", "tomorrow", "yesterday"}

CURRENCY_SYMBOLS = {
    "usd": "$",
    "eur": "€",
    "gbp": "£",
    "jpy": "¥",
    "cny": "¥",
    "hkd": "HK$",
    "chf": "CHF",
    "cad": "CA$",
    "aud": "A$",
    "nzd": "NZ$",
    "sek": "kr",
    "nok": "kr",
    "dkk": "kr",
    "pln": "zł",
    "czk": "Kč",
    "huf": "Ft",
    "zar": "R",
    "brl": "R$",
    "mxn": "MX$",
    "inr": "₹",
    "sgd": "S$",
    "krw": "₩",
    "try": "₺",
    "rub": "₽",
    "ils": "₪",
}

CURRENCY_NAMES = {
    "euro": "eur",
    "dollar": "usd",
    "us dollar": "usd",
    "canadian dollar": "cad",
    "australian dollar": "aud",
    "pound": "gbp",
    "pound sterling": "gbp",
    "yen": "jpy",
    "yuan": "cny",
    "franc": "chf",
    "rupee": "inr",
    "real": "brl",
    "rand": "zar",
    "peso": "mxn",
    "won": "krw",
    "lira": "try",
    "ruble": "rub",
    "shekel": "ils",
}


def is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _wall_clock(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Build a naive datetime, rolling out-of-range parts over like a calendar would."""
    years, month0 = divmod(year * 12 + month - 1, 12)
    return datetime(years, month0 + 1, 1) + timedelta(days=day - 1, hours=hour, minutes=minute)


def format_display(value: datetime) -> str:
    return value.strftime(DISPLAY_DATE_FORMAT)


def format_date_display(value: object) -> str:
    """Convert a date string into `dd/mm/yyyy HH:MM`.

    Accepts `YYYY-MM-DD`, `YYYY-MM-DD[ T]HH:MM[:SS]` and anything pandas can
    parse as a calendar date. Unrecognized input is returned unchanged.
    """
    if is_missing(value):
        return ""
    original = str(value)
    s = original.strip()
    if not s:
        return ""

    match = _YMD.match(s)
    parts = None
    if match:
        parts = (int(match.group(1)), int(match.group(2)), int(match.group(3)), 0, 0)
    else:
        match = _YMD_HM.match(s)
        if match:
            parts = tuple(int(match.group(i)) for i in range(1, 6))
    # Zero year/month/day is not a calendar date; let the generic parser try.
    if parts and all(parts[:3]):
        try:
            return format_display(_wall_clock(*parts))
        except (ValueError, OverflowError):
            pass

    parsed = parse_display_date(s)
    if parsed is not None and _DISPLAY.fullmatch(s):
        return format_display(parsed)

    if s.lower() in _RELATIVE_DATE_WORDS:
        return original
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            ts = pd.to_datetime(s, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        ts = pd.NaT
    if ts is None or pd.isna(ts):
        return original
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return format_display(ts.to_pydatetime())


def parse_display_date(value: object) -> Optional[datetime]:
    """Parse the `dd/mm/yyyy HH:MM` display format back into a datetime."""
    if is_missing(value):
        return None
    match = _DISPLAY.search(str(value))
    if not match:
        return None
    day, month, year, hour, minute = (int(g) for g in match.groups())
    try:
        return datetime(year, month, day, hour, minute)
    except ValueError:
        return None


def number_from_mixed_string(value: object) -> float:
    """Extract a number from strings like "$1,234.56". NaN when nothing numeric is left.

    Every character other than digits, `.` and `-` is dropped, so locale
    thousands separators are not understood ("1.234,56" -> 1.23456).
    """
    cleaned = _NON_NUMERIC.sub("", str(value))
    if not cleaned:
        return math.nan
    try:
        return float(cleaned)
    except ValueError:
        return math.nan


def normalize_header(value: object) -> str:
    if is_missing(value):
        return ""
    return _WS.sub(" ", str(value).lower()).strip()


def currency_symbol_from(value: object) -> str:
    """Resolve a currency code or common name to its display symbol.

    Unknown input comes back trimmed so it still shows up in the UI.
    """
    if is_missing(value):
        return ""
    raw = str(value).strip().strip("\"'").strip()
    key = _WS.sub(" ", raw.lower())
    if key in CURRENCY_SYMBOLS:
        return CURRENCY_SYMBOLS[key]
    code = CURRENCY_NAMES.get(key)
    if code is not None:
        return CURRENCY_SYMBOLS[code]
    return raw


def format_money(amount: float, symbol: str = "") -> str:
    formatted = f"{amount:.2f}"
    return f"{symbol} {formatted}" if symbol else formatted


def display_money(value: object, currency: object = "") -> str:
    """Value cell text: symbol plus two decimals when numeric, the raw string otherwise."""
    raw = "" if is_missing(value) else str(value)
    num = number_from_mixed_string(raw)
    if not raw or math.isnan(num):
        return raw
    return format_money(num, currency_symbol_from(currency))


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def month_index(value: date) -> int:
    """Months since year 0; consecutive calendar months differ by one."""
    return value.year * 12 + value.month - 1
