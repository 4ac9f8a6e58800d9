from __future__ import annotations

import math
from typing import Any, List, Sequence, Tuple

from dividend_core.models import (
    AVERAGE_PAYMENT,
    NUMBER_OF_PAYMENTS,
    NUMBER_OF_SHARES,
    PAYMENT_DATE,
    TOTAL_PAYMENTS,
    VALUE,
    TableState,
)
from dividend_core.utils import number_from_mixed_string, parse_display_date


NUMERIC_COLUMNS = {NUMBER_OF_SHARES, VALUE, TOTAL_PAYMENTS, AVERAGE_PAYMENT}
COUNT_COLUMNS = {NUMBER_OF_PAYMENTS}

SORT_ASC = "asc"
SORT_DESC = "desc"

# Numbers/timestamps order before text so mixed columns still compare.
_NUMBER, _TEXT = 0, 1


def to_comparable(column: str, value: Any) -> Tuple[int, Any]:
    if column == PAYMENT_DATE:
        parsed = parse_display_date(value)
        if parsed is not None:
            return _NUMBER, parsed
    if column in COUNT_COLUMNS:
        num = number_from_mixed_string(value)
        return _NUMBER, (-math.inf if math.isnan(num) else num)
    if column in NUMERIC_COLUMNS:
        num = number_from_mixed_string(value)
        if not math.isnan(num):
            return _NUMBER, num
    return _TEXT, str(value if value is not None else "").lower()


def sort_rows(rows: Sequence[Any], key: str, direction: str = SORT_ASC) -> List[Any]:
    """Sorted copy of `rows` (dataclasses) by attribute `key`."""
    if not key:
        return list(rows)
    return sorted(
        rows,
        key=lambda row: to_comparable(key, getattr(row, key, "")),
        reverse=direction == SORT_DESC,
    )


def apply_sort(state: TableState) -> None:
    state.rows = sort_rows(state.raw_rows, state.sort_key, state.sort_dir)


def toggle_sort(state: TableState, key: str) -> None:
    """Clicking the active column flips direction; a new column starts ascending."""
    if state.sort_key == key:
        state.sort_dir = SORT_ASC if state.sort_dir == SORT_DESC else SORT_DESC
    else:
        state.sort_key = key
        state.sort_dir = SORT_ASC
    state.page = 1
    apply_sort(state)
