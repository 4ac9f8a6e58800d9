from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List

from dividend_core.models import TableState


@dataclass(frozen=True)
class PageInfo:
    page: int
    last_page: int
    start: int
    end: int
    total: int
    has_prev: bool
    has_next: bool

    @property
    def range_text(self) -> str:
        return f"{self.start}-{self.end} of {self.total}"


def last_page(total: int, page_size: int) -> int:
    return max(1, math.ceil(total / page_size))


def clamp_page(page: int, total: int, page_size: int) -> int:
    return min(last_page(total, page_size), max(1, int(page)))


def set_page(state: TableState, page: int) -> bool:
    """Move to `page` (clamped). Returns True when the page changed."""
    target = clamp_page(page, len(state.rows), state.page_size)
    if target == state.page:
        return False
    state.page = target
    return True


def change_page(state: TableState, delta: int) -> bool:
    return set_page(state, state.page + int(delta))


def set_page_size(state: TableState, page_size: int) -> bool:
    page_size = int(page_size)
    if page_size < 1:
        raise ValueError(f"page size must be a positive integer, got {page_size}")
    changed = page_size != state.page_size or state.page != 1
    state.page_size = page_size
    state.page = 1
    return changed


def page_slice(state: TableState) -> List[Any]:
    start = (state.page - 1) * state.page_size
    return state.rows[start:start + state.page_size]


def pagination_info(state: TableState) -> PageInfo:
    total = len(state.rows)
    start = 0 if total == 0 else (state.page - 1) * state.page_size + 1
    end = min(total, state.page * state.page_size)
    lp = last_page(total, state.page_size)
    return PageInfo(
        page=state.page,
        last_page=lp,
        start=start,
        end=end,
        total=total,
        has_prev=state.page > 1,
        has_next=state.page < lp,
    )
