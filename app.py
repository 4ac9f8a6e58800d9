import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

import altair as alt
import pandas as pd
import streamlit as st

from dividend_core.charts import growth_chart, payments_chart
from dividend_core.controller import MAIN_TABLE, SUMMARY_TABLE, DashboardController
from dividend_core.data import DataLoadError
from dividend_core.settings import PAGE_SIZE_OPTIONS

alt.data_transformers.disable_max_rows()
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .tile-label {color: #6b7280;font-size: 0.85rem;}
        .tile-value {font-size: 1.2rem;font-weight: 700;color: #111827;}
        .tile-value.positive {color: #16a34a;}
        .tile-sub {color: #6b7280;font-size: 0.8rem;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def tile(label: str, value: str, sub: Optional[str] = None, positive: bool = False):
    css = "tile-value positive" if positive else "tile-value"
    sub_html = f"<div class='tile-sub'>{sub}</div>" if sub else ""
    st.markdown(
        f"<div class='tile-label'>{label}</div><div class='{css}'>{value}</div>{sub_html}",
        unsafe_allow_html=True,
    )


def get_controller() -> DashboardController:
    if "controller" not in st.session_state:
        ctl = DashboardController()
        ctl.load_default()
        st.session_state["controller"] = ctl
    return st.session_state["controller"]


# ---------- Sections ----------
def render_overview(overview: Dict[str, Any]):
    display = overview["display"]
    row1 = st.columns(4)
    with row1[0]:
        tile("First payment", display["first_payment"])
    with row1[1]:
        tile("Last payment", display["last_payment"])
    with row1[2]:
        tile("Payments", display["count"])
    with row1[3]:
        tile("All-time total", display["total"], positive=overview["count"] > 0)

    row2 = st.columns(4)
    with row2[0]:
        tile("Last 30 days", display["total_30d"], positive=overview["total_30d"] > 0)
    with row2[1]:
        tile("Last 365 days", display["total_365d"], positive=overview["total_365d"] > 0)
    with row2[2]:
        tile("Average payment", display["average"])
    with row2[3]:
        tile("Average per month", display["average_per_month"], positive=overview["total_365d"] > 0)

    row3 = st.columns(4)
    cards = [
        ("Highest payment", "max_payment", lambda c: f"{c['ticker']} · {c['ticker_name']} · {c['payment_date']}"),
        ("Most payments", "most_payments", lambda c: f"{c['ticker']} · {c['ticker_name']}"),
        ("Biggest payer", "biggest_payer", lambda c: f"{c['ticker']} · {c['count']} payments"),
        ("Lowest payer", "lowest_payer", lambda c: f"{c['ticker']} · {c['count']} payments"),
    ]
    for col, (label, key, sub) in zip(row3, cards):
        with col:
            data = overview.get(key)
            tile(label, display[key], sub(data) if data else None)


def render_table(ctl: DashboardController, table: str, title: str):
    payload = ctl.table_payload(table)
    columns: Dict[str, str] = payload["columns"]
    with card(title):
        c1, c2, c3, c4 = st.columns([3, 2, 2, 2])
        keys = list(columns)
        with c1:
            sort_key = st.selectbox(
                "Sort by",
                options=keys,
                index=keys.index(payload["sort_key"]) if payload["sort_key"] in keys else 0,
                format_func=lambda k: columns[k],
                key=f"{table}_sort_key",
            )
            if sort_key != payload["sort_key"]:
                ctl.sort(sort_key, table=table)
                st.rerun()
        with c2:
            arrow = "▲ asc" if payload["sort_dir"] == "asc" else "▼ desc"
            if st.button(f"Direction: {arrow}", key=f"{table}_flip"):
                ctl.sort(payload["sort_key"], table=table)
                st.rerun()
        with c3:
            options = sorted(set(PAGE_SIZE_OPTIONS) | {payload["page_size"]})
            size = st.selectbox("Rows per page", options=options, index=options.index(payload["page_size"]), key=f"{table}_page_size")
            if size != payload["page_size"]:
                ctl.set_page_size(size, table=table)
                st.rerun()
        with c4:
            st.download_button(
                "Export CSV",
                data=ctl.export_frame(table).to_csv(index=False).encode("utf-8"),
                file_name="dividends.csv" if table == MAIN_TABLE else "dividend_summary.csv",
                mime="text/csv",
                key=f"{table}_export",
            )

        rows = payload["rows"]
        if table == MAIN_TABLE:
            for r in rows:
                r["value"] = r.pop("value_display")
        frame = pd.DataFrame(rows, columns=keys).rename(columns=columns)
        if frame.empty:
            st.caption("No rows to display")
        else:
            st.dataframe(frame, use_container_width=True, hide_index=True)

        info = payload["page_info"]
        p1, p2, p3 = st.columns([1, 3, 1])
        if p1.button("‹ Prev", key=f"{table}_prev", disabled=not info["has_prev"]):
            ctl.change_page(-1, table=table)
            st.rerun()
        p2.markdown(f"<div style='text-align:center'>{info['range_text']}</div>", unsafe_allow_html=True)
        if p3.button("Next ›", key=f"{table}_next", disabled=not info["has_next"]):
            ctl.change_page(1, table=table)
            st.rerun()


# ---------- UI setup ----------
st.set_page_config(page_title="Dividend Dashboard", layout="wide")
inject_base_styles()
st.title("Dividend Dashboard")
st.caption("Upload a broker dividend export (CSV) to explore payments, per-ticker totals and growth.")

ctl = get_controller()

with st.sidebar:
    st.markdown("### Data")
    uploaded = st.file_uploader("Dividend CSV", type=["csv"])
    if uploaded is not None:
        try:
            ctl.load_upload(uploaded.file_id, uploaded.getvalue())
        except DataLoadError as exc:
            logger.warning("upload rejected: %s", exc)
            st.error(f"Failed to read the selected file: {exc}")
    if st.button("Load sample data"):
        ctl.load_default()
    if ctl.parse_errors:
        with st.expander(f"{len(ctl.parse_errors)} malformed rows skipped"):
            for err in ctl.parse_errors[:50]:
                st.text(err)

snap = ctl.snapshot()

with card("Payments overview"):
    render_overview(snap["overview"])

chart_cols = st.columns(2)
with chart_cols[0]:
    with card("Payments (last 12 months)"):
        if ctl.payments_series:
            st.altair_chart(payments_chart(ctl.payments_series, ctl.currency_symbol), use_container_width=True)
        else:
            st.caption("No dated payments")
with chart_cols[1]:
    with card("Cumulative growth"):
        if ctl.growth_series:
            st.altair_chart(growth_chart(ctl.growth_series, ctl.currency_symbol), use_container_width=True)
        else:
            st.caption("No dated payments")

render_table(ctl, MAIN_TABLE, "Dividend payments")
render_table(ctl, SUMMARY_TABLE, "Summary by ticker")
