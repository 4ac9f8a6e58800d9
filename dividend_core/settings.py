from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from dividend_core.models import PAYMENT_DATE, REQUIRED_COLUMNS, SUMMARY_COLUMNS, TOTAL_PAYMENTS


MAX_PAGE_SIZE = 500
PAGE_SIZE_OPTIONS = [10, 25, 50, 100]


@dataclass(frozen=True)
class TableDefaults:
    sort_key: str = PAYMENT_DATE
    sort_dir: str = "desc"
    page_size: int = 10


@dataclass(frozen=True)
class DashboardSettings:
    table: TableDefaults = field(default_factory=TableDefaults)
    summary: TableDefaults = field(default_factory=lambda: TableDefaults(sort_key=TOTAL_PAYMENTS))
    default_csv_path: Optional[str] = None


def _as_page_size(value: object, fallback: int) -> int:
    try:
        size = int(value)  # type: ignore[arg-type]
    except Exception:
        return fallback
    return max(1, min(MAX_PAGE_SIZE, size))


def _table_defaults(raw: dict, *, columns: dict, fallback: TableDefaults) -> TableDefaults:
    sort_key = str(raw.get("sort_key") or fallback.sort_key)
    if sort_key not in columns:
        sort_key = fallback.sort_key
    sort_dir = str(raw.get("sort_dir") or fallback.sort_dir).strip().lower()
    if sort_dir not in {"asc", "desc"}:
        sort_dir = fallback.sort_dir
    return TableDefaults(
        sort_key=sort_key,
        sort_dir=sort_dir,
        page_size=_as_page_size(raw.get("page_size", fallback.page_size), fallback.page_size),
    )


def normalize_settings(raw: Optional[dict] = None) -> DashboardSettings:
    raw = raw or {}
    defaults = DashboardSettings()
    default_csv_path = (raw.get("default_csv_path") or "").strip() or None
    return DashboardSettings(
        table=_table_defaults(raw.get("table") or {}, columns=REQUIRED_COLUMNS, fallback=defaults.table),
        summary=_table_defaults(raw.get("summary") or {}, columns=SUMMARY_COLUMNS, fallback=defaults.summary),
        default_csv_path=default_csv_path,
    )
