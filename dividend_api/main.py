from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from dividend_api.schemas import DashboardSettingsModel, LoadRequest, LoadResponse, MetaColumnsResponse
from dividend_core.charts import chart_specs
from dividend_core.controller import MAIN_TABLE, SUMMARY_TABLE, TABLE_COLUMNS, DashboardController
from dividend_core.data import DataLoadError
from dividend_core.settings import normalize_settings


app = FastAPI(title="Dividend Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Single-user dashboard: one controller owns all state for the process.
controller = DashboardController()


def get_controller() -> DashboardController:
    return controller


def reset_controller(new_controller: DashboardController) -> DashboardController:
    global controller
    controller = new_controller
    return controller


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _load_response(ctl: DashboardController) -> JSONResponse:
    payload = LoadResponse(
        records=len(ctl.records),
        summary_rows=len(ctl.summary.raw_rows),
        parse_errors=ctl.parse_errors,
    )
    return _json(payload.model_dump())


@app.get("/meta/columns")
def meta_columns():
    return _json(MetaColumnsResponse(table=TABLE_COLUMNS[MAIN_TABLE], summary=TABLE_COLUMNS[SUMMARY_TABLE]).model_dump())


@app.post("/settings")
def settings(model: DashboardSettingsModel):
    try:
        previous = get_controller()
        raw = model.model_dump()
        # The dataset location is server configuration, never client input.
        raw["default_csv_path"] = previous.settings.default_csv_path
        ctl = reset_controller(DashboardController(normalize_settings(raw), clock=previous.clock))
        if previous.records:
            ctl.load_records(previous.records, previous.parse_errors)
        return _json(ctl.table_payload(MAIN_TABLE))
    except Exception as exc:
        logger.exception("settings failed")
        return _error(exc, 500)


@app.post("/load")
def load(request: LoadRequest):
    try:
        ctl = get_controller()
        ctl.load_csv_text(request.csv_text)
        return _load_response(ctl)
    except DataLoadError as exc:
        logger.warning("load rejected: %s", exc)
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("load failed")
        return _error(exc, 500)


@app.post("/load/default")
def load_default():
    try:
        ctl = get_controller()
        ctl.load_default()
        return _load_response(ctl)
    except DataLoadError as exc:
        logger.warning("default load rejected: %s", exc)
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("load_default failed")
        return _error(exc, 500)


@app.get("/tables/{table}")
def table_page(table: str):
    if table not in TABLE_COLUMNS:
        return _error(ValueError(f"unknown table {table!r}"), 404)
    try:
        return _json(get_controller().table_payload(table))
    except Exception as exc:
        logger.exception("table_page failed")
        return _error(exc, 500)


@app.post("/tables/{table}/sort")
def sort_table(table: str, key: str = Query(...)):
    try:
        ctl = get_controller()
        ctl.sort(key, table=table)
        return _json(ctl.table_payload(table))
    except ValueError as exc:
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("sort_table failed")
        return _error(exc, 500)


@app.post("/tables/{table}/page")
def change_page(table: str, delta: int = Query(default=0), page: Optional[int] = Query(default=None)):
    try:
        ctl = get_controller()
        if page is not None:
            ctl.set_page(page, table=table)
        else:
            ctl.change_page(delta, table=table)
        return _json(ctl.table_payload(table))
    except ValueError as exc:
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("change_page failed")
        return _error(exc, 500)


@app.post("/tables/{table}/page-size")
def change_page_size(table: str, size: int = Query(...)):
    try:
        ctl = get_controller()
        ctl.set_page_size(size, table=table)
        return _json(ctl.table_payload(table))
    except ValueError as exc:
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("change_page_size failed")
        return _error(exc, 500)


@app.get("/overview")
def overview():
    try:
        return _json(get_controller().overview)
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc, 500)


@app.get("/charts")
def charts(include_specs: bool = Query(default=True)):
    try:
        ctl = get_controller()
        payload = ctl.series_payload()
        if include_specs:
            payload["specs"] = chart_specs(ctl.payments_series, ctl.growth_series, ctl.currency_symbol)
        return _json(payload)
    except Exception as exc:
        logger.exception("charts failed")
        return _error(exc, 500)


@app.get("/export/{table}")
def export_table(table: str):
    if table not in TABLE_COLUMNS:
        return _error(ValueError(f"unknown table {table!r}"), 404)
    export_df = get_controller().export_frame(table)
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    filename = "dividends.csv" if table == MAIN_TABLE else "dividend_summary.csv"
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
