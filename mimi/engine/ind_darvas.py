"""Darvas Box — breakout channel from the trailing year of highs and lows.

The box is drawn from the bars *preceding* the current one (at most 252
sessions), so today's close can actually clear yesterday's ceiling and
register as a breakout.
"""

from dataclasses import dataclass

import numpy as np

from mimi.engine.series import ArrayLike, as_array, is_finite

DARVAS_LOOKBACK = 252
EDGE_TOLERANCE = 0.005  # bar "touches" the box within 0.5% of top/bottom

BREAKOUT = "breakout"
BREAKDOWN = "breakdown"
INSIDE = "inside"


@dataclass(frozen=True)
class DarvasBox:
    top: float
    bottom: float
    formation_days: int
    status: str


def darvas_status(close: float, top: float, bottom: float) -> str:
    if not is_finite(close):
        return INSIDE
    if is_finite(top) and close > top:
        return BREAKOUT
    if is_finite(bottom) and close < bottom:
        return BREAKDOWN
    return INSIDE


def darvas_box(highs: ArrayLike, lows: ArrayLike, close: float,
               lookback: int = DARVAS_LOOKBACK) -> DarvasBox:
    """Box top/bottom, formation length and the status of `close` against it."""
    h, lo = as_array(highs), as_array(lows)
    n = len(h)
    if n == 0:
        return DarvasBox(top=float("nan"), bottom=float("nan"), formation_days=0, status=INSIDE)

    # Single bar: nothing precedes it, so it forms its own box
    end = n - 1 if n > 1 else n
    start = max(0, end - lookback)
    top = float(np.max(h[start:end]))
    bottom = float(np.min(lo[start:end]))

    formation_days = 1
    for i in range(end - 1, start - 1, -1):
        if h[i] > top * (1 - EDGE_TOLERANCE) or lo[i] < bottom * (1 + EDGE_TOLERANCE):
            formation_days += 1
        else:
            break

    return DarvasBox(
        top=top,
        bottom=bottom,
        formation_days=formation_days,
        status=darvas_status(close, top, bottom),
    )
