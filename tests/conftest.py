from __future__ import annotations

from datetime import datetime

import pytest

from dividend_core.data import INLINE_SAMPLE_CSV
from tests.helpers import FIXED_NOW, FOUR_TICKER_CSV


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def sample_csv() -> str:
    return INLINE_SAMPLE_CSV


@pytest.fixture
def four_ticker_csv() -> str:
    return FOUR_TICKER_CSV
