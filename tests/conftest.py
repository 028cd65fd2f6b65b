"""Shared bar builders and fixtures."""

import datetime as dt

import pytest

from mimi.models.market import Bar

START = dt.date(2024, 1, 1)


def make_bars(closes, volumes=None, start=START, wick=0.0) -> list[Bar]:
    """Daily bars whose open is the previous close.

    High/low hug the candle body, widened by `wick` on both sides.
    """
    volumes = volumes if volumes is not None else [1_000_000.0] * len(closes)
    bars = []
    prev = closes[0] if closes else 0.0
    for i, (close, volume) in enumerate(zip(closes, volumes)):
        open_ = prev
        bars.append(Bar(
            date=start + dt.timedelta(days=i),
            open=open_,
            high=max(open_, close) + wick,
            low=min(open_, close) - wick,
            close=close,
            volume=volume,
        ))
        prev = close
    return bars


def linear(start: float, end: float, n: int) -> list[float]:
    step = (end - start) / (n - 1)
    return [start + step * i for i in range(n)]


class FakeProvider:
    """In-memory BarProvider that records each lookup."""

    def __init__(self, bars_by_symbol: dict[str, list[Bar]] | None = None, fail: bool = False):
        self.bars_by_symbol = bars_by_symbol or {}
        self.fail = fail
        self.calls: list[tuple[str, int]] = []

    def get_bars(self, symbol: str, lookback: int) -> list[Bar]:
        self.calls.append((symbol, lookback))
        if self.fail:
            raise OSError("feed unavailable")
        return self.bars_by_symbol.get(symbol, [])[-lookback:]


@pytest.fixture
def rising_bars():
    """260 sessions, close 100 -> 200, constant volume."""
    return make_bars(linear(100.0, 200.0, 260))


@pytest.fixture
def falling_bars():
    """80 sessions, close 200 -> 120."""
    return make_bars(linear(200.0, 120.0, 80))


@pytest.fixture
def short_bars():
    """10 sessions, too few for most indicator windows."""
    return make_bars([100.0 + i for i in range(10)])


@pytest.fixture
def flat_bars():
    """120 sessions pinned at 100."""
    return make_bars([100.0] * 120)
