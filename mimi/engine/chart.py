"""Chart payload — candles plus indicator overlays for the trailing window."""

import math

from mimi.engine.ind_darvas import darvas_box
from mimi.engine.ind_ttm import ttm_squeeze_series
from mimi.engine.indicators import IndicatorEngine
from mimi.engine.series import is_finite, to_fixed, value_at
from mimi.models.chart import (
    BollingerPoint,
    ChartCandle,
    ChartData,
    ChartIndicators,
    ChartPoint,
    DarvasLevels,
    MacdPoint,
    TtmChartPoint,
)
from mimi.models.market import Bar

MIN_DAYS = 30
MAX_DAYS = 365
DEFAULT_DAYS = 120


def clamp_days(days: int | None) -> int:
    if not days:
        return DEFAULT_DAYS
    return min(MAX_DAYS, max(MIN_DAYS, int(days)))


def _line(bars: list[Bar], series, start: int, digits: int = 2) -> list[ChartPoint]:
    """Points for bars[start:], skipping warm-up positions."""
    points = []
    for idx in range(start, len(bars)):
        value = value_at(series, idx)
        if is_finite(value):
            points.append(ChartPoint(time=bars[idx].date.isoformat(), value=to_fixed(value, digits)))
    return points


def build_chart_data(bars: list[Bar], days: int = DEFAULT_DAYS) -> ChartData:
    """Overlay series for the last `days` bars (clamped to 30..365).

    Indicators are computed over the full history so the visible window
    starts warmed up; any point with a non-finite component is dropped.
    """
    days = clamp_days(days)
    engine = IndicatorEngine(bars)
    start = max(0, len(bars) - days)

    macd_data = engine.macd()
    bb = engine.bollinger(20, 2.0)
    ttm = ttm_squeeze_series(engine.closes, engine.highs, engine.lows)
    darvas = darvas_box(engine.highs, engine.lows, value_at(engine.closes, engine.last))

    candles = [
        ChartCandle(
            time=b.date.isoformat(),
            open=to_fixed(b.open),
            high=to_fixed(b.high),
            low=to_fixed(b.low),
            close=to_fixed(b.close),
            volume=int(math.floor(b.volume + 0.5)),
        )
        for b in bars[start:]
    ]

    macd_points = []
    bollinger_points = []
    ttm_points = []
    for idx in range(start, len(bars)):
        time = bars[idx].date.isoformat()
        line, signal, hist = (value_at(s, idx) for s in (macd_data.line, macd_data.signal, macd_data.histogram))
        if all(is_finite(v) for v in (line, signal, hist)):
            macd_points.append(MacdPoint(
                time=time, macd=to_fixed(line, 4), signal=to_fixed(signal, 4), histogram=to_fixed(hist, 4),
            ))
        upper, middle, lower = (value_at(s, idx) for s in (bb.upper, bb.middle, bb.lower))
        if all(is_finite(v) for v in (upper, middle, lower)):
            bollinger_points.append(BollingerPoint(
                time=time, upper=to_fixed(upper), middle=to_fixed(middle), lower=to_fixed(lower),
            ))
        ttm_points.append(TtmChartPoint(
            time=time,
            squeeze_on=1 if ttm[idx].squeeze_on else 0,
            momentum=to_fixed(ttm[idx].momentum, 5),
        ))

    return ChartData(
        candles=candles,
        indicators=ChartIndicators(
            sma200=_line(bars, engine.sma(200), start),
            sma50=_line(bars, engine.sma(50), start),
            sma20=_line(bars, engine.sma(20), start),
            ema21=_line(bars, engine.ema(21), start),
            ema8=_line(bars, engine.ema(8), start),
            macd=macd_points,
            rsi=_line(bars, engine.rsi(14), start),
            bollinger=bollinger_points,
            ttm_squeeze=ttm_points,
            darvas=DarvasLevels(top=to_fixed(darvas.top), bottom=to_fixed(darvas.bottom)),
        ),
    )
