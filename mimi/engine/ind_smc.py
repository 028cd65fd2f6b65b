"""Market structure (SMC) — swing pivots and HH/HL trend classification.

A bar is a swing high when its high is >= every high within `look_around`
bars on both sides (ties count); swing lows mirror this with minima.
The two most recent swings of each kind decide the trend:
- HH + HL → uptrend
- LH + LL → downtrend
- anything else → sideways
"""

from dataclasses import dataclass, field

from loguru import logger

from mimi.engine.series import ArrayLike, as_array

SWING_HIGH = 1
SWING_LOW = -1

UPTREND = "uptrend"
DOWNTREND = "downtrend"
SIDEWAYS = "sideways"

LOOK_AROUND = 5


@dataclass
class SwingPoint:
    swing_type: int       # SWING_HIGH or SWING_LOW
    price: float
    bar_idx: int


@dataclass
class Swings:
    highs: list[SwingPoint] = field(default_factory=list)
    lows: list[SwingPoint] = field(default_factory=list)


@dataclass(frozen=True)
class MarketStructure:
    trend: str
    swing_high: float
    swing_low: float
    prev_swing_high: float
    prev_swing_low: float
    higher_high: bool
    higher_low: bool
    lower_high: bool
    lower_low: bool


def detect_swings(highs: ArrayLike, lows: ArrayLike, look_around: int = LOOK_AROUND) -> Swings:
    """Pivot highs/lows with a symmetric window; edges without a full window are skipped."""
    h, lo = as_array(highs), as_array(lows)
    n = len(h)
    swings = Swings()
    if look_around <= 0:
        return swings

    for i in range(look_around, n - look_around):
        left = slice(i - look_around, i)
        right = slice(i + 1, i + look_around + 1)

        if h[i] >= max(h[left].max(), h[right].max()):
            swings.highs.append(SwingPoint(SWING_HIGH, float(h[i]), i))
        if lo[i] <= min(lo[left].min(), lo[right].min()):
            swings.lows.append(SwingPoint(SWING_LOW, float(lo[i]), i))

    return swings


def market_structure(highs: ArrayLike, lows: ArrayLike, look_around: int = LOOK_AROUND) -> MarketStructure:
    """Compare the last two swing highs and lows.

    With fewer than two swings the missing values fall back to the latest
    swing, then to the last raw high/low, which degrades to "sideways".
    """
    h, lo = as_array(highs), as_array(lows)
    swings = detect_swings(h, lo, look_around)

    last_raw_high = float(h[-1]) if len(h) else 0.0
    last_raw_low = float(lo[-1]) if len(lo) else 0.0

    last_high = swings.highs[-1].price if swings.highs else last_raw_high
    prev_high = swings.highs[-2].price if len(swings.highs) > 1 else last_high
    last_low = swings.lows[-1].price if swings.lows else last_raw_low
    prev_low = swings.lows[-2].price if len(swings.lows) > 1 else last_low

    if len(swings.highs) < 2 or len(swings.lows) < 2:
        logger.debug(
            f"SMC degraded: {len(swings.highs)} swing highs, {len(swings.lows)} swing lows"
        )

    higher_high = last_high > prev_high
    higher_low = last_low > prev_low
    lower_high = last_high < prev_high
    lower_low = last_low < prev_low

    if higher_high and higher_low:
        trend = UPTREND
    elif lower_high and lower_low:
        trend = DOWNTREND
    else:
        trend = SIDEWAYS

    return MarketStructure(
        trend=trend,
        swing_high=last_high,
        swing_low=last_low,
        prev_swing_high=prev_high,
        prev_swing_low=prev_low,
        higher_high=higher_high,
        higher_low=higher_low,
        lower_high=lower_high,
        lower_low=lower_low,
    )
