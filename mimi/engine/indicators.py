"""Indicator library built on the series primitives.

RSI, ATR and ADX use Wilder's seeding: a plain average over the first
window, recursive smoothing afterwards.

IndicatorEngine wraps a bar set and memoizes each series, so analysis,
signals and charting all read the same arrays.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
import pandas as pd
from loguru import logger

from mimi.engine.series import ArrayLike, as_array, ema, sma, stddev
from mimi.models.market import Bar


@dataclass(frozen=True)
class MacdSeries:
    line: np.ndarray
    signal: np.ndarray
    histogram: np.ndarray


@dataclass(frozen=True)
class BollingerSeries:
    upper: np.ndarray
    middle: np.ndarray
    lower: np.ndarray


@dataclass(frozen=True)
class AdxSeries:
    adx: np.ndarray
    plus_di: np.ndarray
    minus_di: np.ndarray


# ─── Oscillators ──────────────────────────────────────────────────────


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)


def rsi(values: ArrayLike, period: int = 14) -> np.ndarray:
    """Wilder RSI. First defined index is `period`."""
    src = as_array(values)
    n = len(src)
    out = np.full(n, np.nan)
    if period <= 0 or n <= period:
        return out

    gain_sum = 0.0
    loss_sum = 0.0
    for i in range(1, period + 1):
        change = src[i] - src[i - 1]
        if change >= 0:
            gain_sum += change
        else:
            loss_sum -= change

    avg_gain = gain_sum / period
    avg_loss = loss_sum / period
    out[period] = _rsi_from_averages(avg_gain, avg_loss)

    for i in range(period + 1, n):
        change = src[i] - src[i - 1]
        gain = change if change > 0 else 0.0
        loss = -change if change < 0 else 0.0
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period
        out[i] = _rsi_from_averages(avg_gain, avg_loss)

    return out


def macd(values: ArrayLike, fast: int = 12, slow: int = 26, signal: int = 9) -> MacdSeries:
    """MACD line, signal and histogram.

    The signal EMA runs over the line with its warm-up NaNs replaced by 0.
    """
    src = as_array(values)
    fast_ema = ema(src, fast)
    slow_ema = ema(src, slow)
    line = fast_ema - slow_ema  # NaN wherever either leg is NaN

    signal_line = ema(np.where(np.isfinite(line), line, 0.0), signal)
    histogram = np.where(np.isfinite(line) & np.isfinite(signal_line), line - signal_line, np.nan)
    return MacdSeries(line=line, signal=signal_line, histogram=histogram)


# ─── Volatility ───────────────────────────────────────────────────────


def bollinger(values: ArrayLike, period: int = 20, mult: float = 2.0) -> BollingerSeries:
    """Bollinger Bands: SMA ± mult · population stddev."""
    src = as_array(values)
    middle = sma(src, period)
    sd = stddev(src, period)
    return BollingerSeries(
        upper=middle + sd * mult,
        middle=middle,
        lower=middle - sd * mult,
    )


def bollinger_width(bands: BollingerSeries) -> np.ndarray:
    """Band width as a percentage of the middle band (NaN unless middle > 0)."""
    with np.errstate(divide="ignore", invalid="ignore"):
        width = (bands.upper - bands.lower) / bands.middle * 100.0
    valid = np.isfinite(bands.middle) & (bands.middle > 0) & np.isfinite(width)
    return np.where(valid, width, np.nan)


def true_range(highs: ArrayLike, lows: ArrayLike, closes: ArrayLike) -> np.ndarray:
    """True range; the first bar uses high - low."""
    h, lo, c = as_array(highs), as_array(lows), as_array(closes)
    n = len(c)
    tr = np.full(n, np.nan)
    for i in range(n):
        hl = h[i] - lo[i]
        if i == 0:
            tr[i] = hl
        else:
            tr[i] = max(hl, abs(h[i] - c[i - 1]), abs(lo[i] - c[i - 1]))
    return tr


def atr(highs: ArrayLike, lows: ArrayLike, closes: ArrayLike, period: int = 14) -> np.ndarray:
    """Wilder ATR seeded with the plain mean of the first `period` true ranges."""
    tr = true_range(highs, lows, closes)
    n = len(tr)
    out = np.full(n, np.nan)
    if period <= 0 or n < period:
        return out

    out[period - 1] = tr[:period].sum() / period
    for i in range(period, n):
        out[i] = (out[i - 1] * (period - 1) + tr[i]) / period
    return out


# ─── Trend strength ───────────────────────────────────────────────────


def adx(highs: ArrayLike, lows: ArrayLike, closes: ArrayLike, period: int = 14) -> AdxSeries:
    """Average Directional Index with +DI / -DI.

    Needs at least 2 * period bars; shorter input yields all-NaN series.
    """
    h, lo = as_array(highs), as_array(lows)
    n = len(h)
    adx_out = np.full(n, np.nan)
    plus_di = np.full(n, np.nan)
    minus_di = np.full(n, np.nan)
    if period <= 0 or n < 2 * period:
        logger.debug(f"ADX({period}) needs {2 * period} bars, got {n}")
        return AdxSeries(adx=adx_out, plus_di=plus_di, minus_di=minus_di)

    tr = true_range(h, lo, closes)
    plus_dm = np.zeros(n)
    minus_dm = np.zeros(n)
    for i in range(1, n):
        up = h[i] - h[i - 1]
        down = lo[i - 1] - lo[i]
        if up > down and up > 0:
            plus_dm[i] = up
        if down > up and down > 0:
            minus_dm[i] = down

    # Wilder running totals over bars 1..period, then s = s - s/period + x
    tr_s = tr[1:period + 1].sum()
    plus_s = plus_dm[1:period + 1].sum()
    minus_s = minus_dm[1:period + 1].sum()

    dx = np.full(n, np.nan)
    for i in range(period, n):
        if i > period:
            tr_s = tr_s - tr_s / period + tr[i]
            plus_s = plus_s - plus_s / period + plus_dm[i]
            minus_s = minus_s - minus_s / period + minus_dm[i]

        pdi = 100.0 * plus_s / tr_s if tr_s > 0 else 0.0
        mdi = 100.0 * minus_s / tr_s if tr_s > 0 else 0.0
        plus_di[i] = pdi
        minus_di[i] = mdi
        di_sum = pdi + mdi
        dx[i] = 100.0 * abs(pdi - mdi) / di_sum if di_sum > 0 else 0.0

    first = 2 * period - 1
    adx_out[first] = dx[period:first + 1].sum() / period
    for i in range(first + 1, n):
        adx_out[i] = (adx_out[i - 1] * (period - 1) + dx[i]) / period

    return AdxSeries(adx=adx_out, plus_di=plus_di, minus_di=minus_di)


# ─── Engine ───────────────────────────────────────────────────────────


class IndicatorEngine:
    """Compute indicator series once per bar set and serve them from cache."""

    def __init__(self, bars: list[Bar]):
        self._bars = bars
        self._df = pd.DataFrame({
            "open": [b.open for b in bars],
            "high": [b.high for b in bars],
            "low": [b.low for b in bars],
            "close": [b.close for b in bars],
            "volume": [b.volume for b in bars],
        }, dtype=float)
        self._cache: dict[tuple, Any] = {}

    def __len__(self) -> int:
        return len(self._df)

    @property
    def bars(self) -> list[Bar]:
        return self._bars

    @property
    def last(self) -> int:
        """Index of the most recent bar (-1 when empty)."""
        return len(self._df) - 1

    def column(self, name: str) -> np.ndarray:
        return self._df[name].to_numpy(dtype=float)

    @property
    def opens(self) -> np.ndarray:
        return self.column("open")

    @property
    def highs(self) -> np.ndarray:
        return self.column("high")

    @property
    def lows(self) -> np.ndarray:
        return self.column("low")

    @property
    def closes(self) -> np.ndarray:
        return self.column("close")

    @property
    def volumes(self) -> np.ndarray:
        return self.column("volume")

    def _memo(self, key: tuple, compute: Callable[[], Any]) -> Any:
        if key not in self._cache:
            self._cache[key] = compute()
        return self._cache[key]

    def sma(self, period: int, source: str = "close") -> np.ndarray:
        return self._memo(("sma", source, period), lambda: sma(self.column(source), period))

    def ema(self, period: int, source: str = "close") -> np.ndarray:
        return self._memo(("ema", source, period), lambda: ema(self.column(source), period))

    def rsi(self, period: int = 14) -> np.ndarray:
        return self._memo(("rsi", period), lambda: rsi(self.closes, period))

    def macd(self, fast: int = 12, slow: int = 26, signal: int = 9) -> MacdSeries:
        return self._memo(("macd", fast, slow, signal), lambda: macd(self.closes, fast, slow, signal))

    def bollinger(self, period: int = 20, mult: float = 2.0) -> BollingerSeries:
        return self._memo(("bollinger", period, mult), lambda: bollinger(self.closes, period, mult))

    def bollinger_width(self, period: int = 20, mult: float = 2.0) -> np.ndarray:
        return self._memo(
            ("bollinger_width", period, mult),
            lambda: bollinger_width(self.bollinger(period, mult)),
        )

    def atr(self, period: int = 14) -> np.ndarray:
        return self._memo(("atr", period), lambda: atr(self.highs, self.lows, self.closes, period))

    def adx(self, period: int = 14) -> AdxSeries:
        return self._memo(("adx", period), lambda: adx(self.highs, self.lows, self.closes, period))

    def compute_series(self, name: str, params: dict[str, Any] | None = None) -> dict[str, list[float | None]]:
        """Named dispatch returning JSON-friendly lists (NaN -> None)."""
        params = params or {}
        dispatch_map: dict[str, Callable[[], dict[str, np.ndarray]]] = {
            "SMA": lambda: {"value": self.sma(params.get("period", 20))},
            "EMA": lambda: {"value": self.ema(params.get("period", 20))},
            "RSI": lambda: {"value": self.rsi(params.get("period", 14))},
            "ATR": lambda: {"value": self.atr(params.get("period", 14))},
            "MACD": lambda: vars(self.macd(
                params.get("fast", 12), params.get("slow", 26), params.get("signal", 9),
            )),
            "Bollinger": lambda: vars(self.bollinger(params.get("period", 20), params.get("mult", 2.0))),
            "ADX": lambda: vars(self.adx(params.get("period", 14))),
        }
        func = dispatch_map.get(name)
        if not func:
            raise ValueError(f"Unknown indicator: {name}")
        return {key: _series_to_list(series) for key, series in func().items()}


def _series_to_list(series: np.ndarray) -> list[float | None]:
    return [float(v) if math.isfinite(v) else None for v in series]
