"""Stop-loss recommender: nearest structural support below price."""

from dataclasses import dataclass

from mimi.engine.series import is_finite

DARVAS_BUFFER = 0.98
EMA8_BUFFER = 0.97
SWING_BUFFER = 0.98

STOP_LOGIC = (
    "Use the closest reasonable support below the current price "
    "so the stop is not placed too deep."
)


@dataclass(frozen=True)
class StopLoss:
    darvas_bottom: float
    ema8: float
    swing_low: float
    recommended: float
    risk_percent: float
    logic: str = STOP_LOGIC


def recommend_stop(price: float, darvas_bottom: float, ema8: float, swing_low: float) -> StopLoss:
    """Pick the highest candidate still below price; fall back to the EMA8 stop."""
    darvas_stop = darvas_bottom * DARVAS_BUFFER
    ema8_stop = ema8 * EMA8_BUFFER
    swing_stop = swing_low * SWING_BUFFER

    candidates = [
        stop for stop in (darvas_stop, ema8_stop, swing_stop)
        if is_finite(stop) and stop > 0 and is_finite(price) and stop < price
    ]
    recommended = max(candidates) if candidates else ema8_stop

    if is_finite(price) and price > 0:
        risk_percent = (price - recommended) / price * 100
    else:
        risk_percent = 0.0

    return StopLoss(
        darvas_bottom=darvas_stop,
        ema8=ema8_stop,
        swing_low=swing_stop,
        recommended=recommended,
        risk_percent=risk_percent,
    )
