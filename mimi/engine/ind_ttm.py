"""TTM Squeeze — Bollinger Bands inside a Keltner-style channel.

Squeeze is ON when BB(20, 2) sits entirely inside EMA(20) ± 1.5·ATR(20).
Momentum is the linear-regression slope of close minus the average of the
BB middle and EMA(20) over the trailing 20 bars.
"""

from dataclasses import dataclass

import numpy as np

from mimi.engine.indicators import atr, bollinger
from mimi.engine.series import ArrayLike, as_array, ema, finite_window, linreg_slope

TTM_PERIOD = 20
BB_MULT = 2.0
KC_MULT = 1.5
MIN_MOMENTUM_POINTS = 5

RISING = "rising"
FALLING = "falling"


@dataclass(frozen=True)
class TtmPoint:
    squeeze_on: bool
    momentum: float
    raw: float  # close - (bb middle + ema) / 2, NaN during warm-up


@dataclass(frozen=True)
class TtmSqueeze:
    squeeze_on: bool
    momentum: float
    direction: str


def ttm_squeeze_series(closes: ArrayLike, highs: ArrayLike, lows: ArrayLike,
                       period: int = TTM_PERIOD) -> list[TtmPoint]:
    """Per-bar squeeze flag and momentum, aligned with the input."""
    c = as_array(closes)
    bb = bollinger(c, period, BB_MULT)
    kc_mid = ema(c, period)
    kc_range = atr(highs, lows, c, period) * KC_MULT

    squeeze = (
        np.isfinite(bb.upper) & np.isfinite(bb.lower)
        & np.isfinite(kc_mid) & np.isfinite(kc_range)
    )
    with np.errstate(invalid="ignore"):
        squeeze &= (bb.upper < kc_mid + kc_range) & (bb.lower > kc_mid - kc_range)
        raw = c - (bb.middle + kc_mid) / 2

    points: list[TtmPoint] = []
    for i in range(len(c)):
        window = finite_window(raw, i, period)
        momentum = linreg_slope(window) if len(window) >= MIN_MOMENTUM_POINTS else 0.0
        points.append(TtmPoint(squeeze_on=bool(squeeze[i]), momentum=momentum, raw=float(raw[i])))
    return points


def ttm_squeeze(closes: ArrayLike, highs: ArrayLike, lows: ArrayLike,
                period: int = TTM_PERIOD) -> TtmSqueeze:
    """Squeeze snapshot at the last bar."""
    points = ttm_squeeze_series(closes, highs, lows, period)
    if not points:
        return TtmSqueeze(squeeze_on=False, momentum=0.0, direction=RISING)

    current = points[-1]
    prev_momentum = points[-2].momentum if len(points) > 1 else 0.0
    return TtmSqueeze(
        squeeze_on=current.squeeze_on,
        momentum=current.momentum,
        direction=RISING if current.momentum >= prev_momentum else FALLING,
    )
