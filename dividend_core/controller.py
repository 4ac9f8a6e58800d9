from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pandas as pd

from dividend_core.aggregation import build_summary_rows, growth_series, infer_currency, last_12_months_series
from dividend_core.data import load_csv_text, load_default_csv_text
from dividend_core.metrics_overview import compute_overview
from dividend_core.models import REQUIRED_COLUMNS, SUMMARY_COLUMNS, CanonicalRecord, SeriesPoint, TableState
from dividend_core.pagination import change_page, page_slice, pagination_info, set_page, set_page_size
from dividend_core.settings import DashboardSettings, TableDefaults
from dividend_core.sorting import apply_sort, toggle_sort
from dividend_core.utils import currency_symbol_from, display_money


logger = logging.getLogger(__name__)

MAIN_TABLE = "table"
SUMMARY_TABLE = "summary"
TABLE_COLUMNS = {MAIN_TABLE: REQUIRED_COLUMNS, SUMMARY_TABLE: SUMMARY_COLUMNS}

Listener = Callable[[str, "DashboardController"], None]


def _new_state(defaults: TableDefaults) -> TableState:
    return TableState(sort_key=defaults.sort_key, sort_dir=defaults.sort_dir, page_size=defaults.page_size)


def _series_payload(series: Sequence[SeriesPoint]) -> List[Dict[str, Any]]:
    return [p._asdict() for p in series]


class DashboardController:
    """Owns the dataset and both table states; the view layer only reads `snapshot()`.

    Every pipeline stage runs synchronously inside one call. A failed load
    raises before anything is replaced, so the previous dataset stays visible.
    """

    def __init__(self, settings: Optional[DashboardSettings] = None, clock: Optional[Callable[[], datetime]] = None):
        self.settings = settings or DashboardSettings()
        self.clock = clock or datetime.now
        self.tables: Dict[str, TableState] = {
            MAIN_TABLE: _new_state(self.settings.table),
            SUMMARY_TABLE: _new_state(self.settings.summary),
        }
        self.records: List[CanonicalRecord] = []
        self.parse_errors: List[str] = []
        self.currency_symbol = ""
        self.payments_series: List[SeriesPoint] = []
        self.growth_series: List[SeriesPoint] = []
        self.overview: Dict[str, Any] = compute_overview([], self.clock())
        self.last_upload_id: Optional[str] = None
        self._listeners: List[Listener] = []

    @property
    def table(self) -> TableState:
        return self.tables[MAIN_TABLE]

    @property
    def summary(self) -> TableState:
        return self.tables[SUMMARY_TABLE]

    # ---------------- Observers ----------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self)

    # ---------------- Loading ----------------
    def load_csv_text(self, text: Union[str, bytes]) -> int:
        records, errors = load_csv_text(text)
        self.load_records(records, errors)
        return len(records)

    def load_upload(self, upload_id: str, data: Union[str, bytes]) -> bool:
        """Load an uploaded file once.

        The view re-submits the same upload on every rerun; an upload already
        applied is ignored, so loading the sample in between is not undone.
        """
        if upload_id == self.last_upload_id:
            return False
        self.load_csv_text(data)
        self.last_upload_id = upload_id
        return True

    def load_default(self) -> int:
        return self.load_csv_text(load_default_csv_text(self.settings.default_csv_path))

    def load_records(self, records: List[CanonicalRecord], errors: Optional[List[str]] = None) -> None:
        now = self.clock()
        self.records = records
        self.parse_errors = list(errors or [])

        self.table.raw_rows = list(records)
        self.table.page = 1
        apply_sort(self.table)

        self.summary.raw_rows = build_summary_rows(records)
        self.summary.page = 1
        apply_sort(self.summary)

        self.currency_symbol = currency_symbol_from(infer_currency(records))
        self.payments_series = last_12_months_series(records, now)
        self.growth_series = growth_series(records, now)
        self.overview = compute_overview(records, now)
        logger.info("Loaded %d records (%d summary rows, %d parse errors)", len(records), len(self.summary.raw_rows), len(self.parse_errors))
        self._notify("data_loaded")

    # ---------------- Table interactions ----------------
    def _state(self, name: str) -> TableState:
        if name not in self.tables:
            raise ValueError(f"unknown table {name!r}; expected one of {sorted(self.tables)}")
        return self.tables[name]

    def sort(self, key: str, table: str = MAIN_TABLE) -> None:
        state = self._state(table)
        if key not in TABLE_COLUMNS[table]:
            raise ValueError(f"unknown sort column {key!r} for {table}")
        toggle_sort(state, key)
        self._notify("sorted")

    def change_page(self, delta: int, table: str = MAIN_TABLE) -> bool:
        changed = change_page(self._state(table), delta)
        if changed:
            self._notify("paged")
        return changed

    def set_page(self, page: int, table: str = MAIN_TABLE) -> bool:
        changed = set_page(self._state(table), page)
        if changed:
            self._notify("paged")
        return changed

    def set_page_size(self, page_size: int, table: str = MAIN_TABLE) -> bool:
        changed = set_page_size(self._state(table), page_size)
        if changed:
            self._notify("paged")
        return changed

    # ---------------- Read side ----------------
    def table_payload(self, table: str = MAIN_TABLE) -> Dict[str, Any]:
        state = self._state(table)
        info = pagination_info(state)
        rows = [r.to_dict() for r in page_slice(state)]
        if table == MAIN_TABLE:
            for r in rows:
                r["value_display"] = display_money(r["value"], r["currency"])
        return {
            "columns": TABLE_COLUMNS[table],
            "rows": rows,
            "sort_key": state.sort_key,
            "sort_dir": state.sort_dir,
            "page_size": state.page_size,
            "page_info": {**asdict(info), "range_text": info.range_text},
        }

    def export_frame(self, table: str = MAIN_TABLE) -> pd.DataFrame:
        """Every sorted row of `table` under its display labels."""
        state = self._state(table)
        labels = TABLE_COLUMNS[table]
        frame = pd.DataFrame([r.to_dict() for r in state.rows], columns=list(labels))
        return frame.rename(columns=labels)

    def series_payload(self) -> Dict[str, Any]:
        return {
            "currency_symbol": self.currency_symbol,
            "payments_last_12_months": _series_payload(self.payments_series),
            "cumulative_growth": _series_payload(self.growth_series),
        }

    def snapshot(self) -> Dict[str, Any]:
        return {
            MAIN_TABLE: self.table_payload(MAIN_TABLE),
            SUMMARY_TABLE: self.table_payload(SUMMARY_TABLE),
            "series": self.series_payload(),
            "overview": self.overview,
            "parse_errors": list(self.parse_errors),
        }
