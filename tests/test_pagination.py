import pytest

from dividend_core.models import TableState
from dividend_core.pagination import (
    change_page,
    clamp_page,
    last_page,
    page_slice,
    pagination_info,
    set_page,
    set_page_size,
)


def _state(n: int, page_size: int = 10, page: int = 1) -> TableState:
    rows = list(range(n))
    return TableState(raw_rows=rows, rows=list(rows), page=page, page_size=page_size)


def test_last_page_and_clamp():
    assert last_page(25, 10) == 3
    assert last_page(0, 10) == 1
    assert clamp_page(5, 25, 10) == 3
    assert clamp_page(0, 25, 10) == 1
    assert clamp_page(-4, 0, 10) == 1


def test_page_slice_and_info():
    state = _state(25, page=2)
    assert page_slice(state) == list(range(10, 20))
    info = pagination_info(state)
    assert info.range_text == "11-20 of 25"
    assert (info.has_prev, info.has_next, info.last_page) == (True, True, 3)


def test_last_page_is_partial():
    state = _state(25, page=3)
    assert page_slice(state) == [20, 21, 22, 23, 24]
    assert pagination_info(state).range_text == "21-25 of 25"
    assert not pagination_info(state).has_next


def test_empty_table_info():
    info = pagination_info(_state(0))
    assert info.range_text == "0-0 of 0"
    assert (info.page, info.has_prev, info.has_next) == (1, False, False)


def test_change_page_clamps_and_reports_change():
    state = _state(25)
    assert change_page(state, 1)
    assert state.page == 2
    assert change_page(state, 10)
    assert state.page == 3
    assert not change_page(state, 1)
    assert not set_page(state, 99)
    assert set_page(state, -1)
    assert state.page == 1


def test_set_page_size_resets_to_first_page():
    state = _state(25, page=3)
    assert set_page_size(state, 25)
    assert (state.page, state.page_size) == (1, 25)
    assert not set_page_size(state, 25)


@pytest.mark.parametrize("size", [0, -5])
def test_set_page_size_rejects_non_positive(size):
    state = _state(5)
    with pytest.raises(ValueError):
        set_page_size(state, size)
    assert state.page_size == 10
