"""Series primitives — windowed reducers shared by every indicator.

All series are float64 numpy arrays aligned index-for-index with the input.
Positions before the warm-up window hold NaN ("not available").
"""

import math
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any, Sequence

import numpy as np

ArrayLike = Sequence[float] | np.ndarray

# wide enough to quantize any finite float64
_ROUNDING = Context(prec=400, rounding=ROUND_HALF_UP)


def as_array(values: ArrayLike) -> np.ndarray:
    """Coerce any float sequence (list, tuple, ndarray, pd.Series) to float64."""
    return np.asarray(values, dtype=float).reshape(-1)


def is_finite(value: Any) -> bool:
    """NaN/inf/None-safe finiteness check."""
    if value is None:
        return False
    try:
        return math.isfinite(value)
    except TypeError:
        return False


def value_at(series: ArrayLike, idx: int, default: float = float("nan")) -> float:
    """Return series[idx], or default when idx is out of range (negatives included)."""
    if idx < 0 or idx >= len(series):
        return default
    return float(series[idx])


def to_fixed(value: Any, digits: int = 2) -> float:
    """Round the exact binary value to `digits` decimals, halves away from zero.

    1.005 is stored just below the half and rounds to 1.0. Non-finite maps to 0.
    """
    if not is_finite(value):
        return 0.0
    quantum = Decimal(1).scaleb(-digits)
    rounded = float(Decimal(float(value)).quantize(quantum, context=_ROUNDING))
    return rounded if rounded else 0.0


# ─── Moving averages ──────────────────────────────────────────────────


def sma(values: ArrayLike, period: int) -> np.ndarray:
    """Simple moving average via a running sum with trailing subtract."""
    src = as_array(values)
    n = len(src)
    out = np.full(n, np.nan)
    if period <= 0:
        return out

    total = 0.0
    for i in range(n):
        total += src[i]
        if i >= period:
            total -= src[i - period]
        if i >= period - 1:
            out[i] = total / period
    return out


def ema(values: ArrayLike, period: int) -> np.ndarray:
    """Exponential moving average seeded with the SMA of the first `period` values.

    Nothing is smoothed before the seed index; afterwards
    ema[i] = value[i] * k + ema[i-1] * (1 - k) with k = 2 / (period + 1).
    """
    src = as_array(values)
    n = len(src)
    out = np.full(n, np.nan)
    if period <= 0 or n < period:
        return out

    seed = 0.0
    for i in range(period):
        seed += src[i]
    out[period - 1] = seed / period

    k = 2.0 / (period + 1)
    for i in range(period, n):
        out[i] = src[i] * k + out[i - 1] * (1 - k)
    return out


def stddev(values: ArrayLike, period: int) -> np.ndarray:
    """Population standard deviation (divide by period) over a trailing window."""
    src = as_array(values)
    n = len(src)
    out = np.full(n, np.nan)
    if period <= 0:
        return out

    for i in range(period - 1, n):
        window = src[i - period + 1:i + 1]
        avg = window.sum() / period
        variance = ((window - avg) ** 2).sum() / period
        out[i] = math.sqrt(variance)
    return out


def linreg_slope(values: ArrayLike) -> float:
    """OLS slope of y against x = 1..n. Degenerate input returns 0."""
    src = as_array(values)
    n = len(src)
    if n == 0:
        return 0.0

    sum_x = sum_y = sum_xy = sum_xx = 0.0
    for idx in range(n):
        x = idx + 1
        y = float(src[idx])
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_xx += x * x

    denom = n * sum_xx - sum_x * sum_x
    if denom == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denom


def finite_window(series: ArrayLike, end: int, length: int) -> np.ndarray:
    """Finite values of series[end-length+1 .. end] (clipped at 0)."""
    src = as_array(series)
    start = max(0, end - length + 1)
    window = src[start:end + 1]
    return window[np.isfinite(window)]
