from __future__ import annotations

from typing import Any, Dict, Sequence

import altair as alt
import pandas as pd

from dividend_core.models import SeriesPoint

alt.data_transformers.disable_max_rows()

BAR_COLOR = "#4f8cff"
LINE_COLOR = "#9333ea"
LABEL_COLOR = "#22c55e"


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def series_frame(series: Sequence[SeriesPoint]) -> pd.DataFrame:
    df = pd.DataFrame(list(series), columns=["label", "value"])
    df["order"] = range(len(df))
    return df


def _axis_format(symbol: str) -> str:
    # d3-format only knows "$" as a currency prefix; other symbols go in tooltips.
    return "$,.0f" if symbol == "$" else ",.0f"


def payments_chart(series: Sequence[SeriesPoint], symbol: str = "") -> alt.LayerChart:
    """Bar chart of the last 12 months with value labels above each bar."""
    df = series_frame(series)
    df["value_label"] = df["value"].map(lambda v: f"{symbol} {v:.2f}".strip())
    base = alt.Chart(df).encode(
        x=alt.X("label:N", title=None, sort=alt.SortField("order"), axis=alt.Axis(grid=False, labelAngle=-45)),
        y=alt.Y(
            "value:Q",
            title=f"Payments ({symbol})" if symbol else "Payments",
            axis=alt.Axis(format=_axis_format(symbol), gridDash=[4, 4], domain=False, ticks=False),
        ),
    )
    bars = base.mark_bar(color=BAR_COLOR, opacity=0.8).encode(
        tooltip=[alt.Tooltip("label:N", title="Month"), alt.Tooltip("value_label:N", title="Payments")],
    )
    labels = base.mark_text(dy=-8, color=LABEL_COLOR, fontWeight="bold").encode(text="value_label:N")
    return (bars + labels).properties(height=260)


def growth_chart(series: Sequence[SeriesPoint], symbol: str = "") -> alt.Chart:
    """Line chart of the cumulative payment total."""
    df = series_frame(series)
    df["value_label"] = df["value"].map(lambda v: f"{symbol} {v:.2f}".strip())
    hover = alt.selection_point(fields=["label"], on="mouseover", empty="all")
    return (
        alt.Chart(df)
        .mark_line(color=LINE_COLOR, interpolate="monotone", point={"filled": True, "size": 60, "color": LINE_COLOR})
        .encode(
            x=alt.X("label:N", title=None, sort=alt.SortField("order"), axis=alt.Axis(grid=False, labelAngle=-45)),
            y=alt.Y(
                "value:Q",
                title=f"Cumulative ({symbol})" if symbol else "Cumulative",
                axis=alt.Axis(format=_axis_format(symbol), gridDash=[4, 4], domain=False, ticks=False),
            ),
            tooltip=[alt.Tooltip("label:N", title="Period"), alt.Tooltip("value_label:N", title="Cumulative")],
        )
        .add_params(hover)
        .properties(height=260)
    )


def chart_specs(payments: Sequence[SeriesPoint], growth: Sequence[SeriesPoint], symbol: str = "") -> Dict[str, Any]:
    return {
        "payments_last_12_months": to_vega_spec(payments_chart(payments, symbol)),
        "cumulative_growth": to_vega_spec(growth_chart(growth, symbol)),
    }
