"""Stop-falling and bottom pattern catalogues.

Each pattern is checked independently at the last bar and only when enough
history exists to fill its window. The bottom catalogue reuses the RSI
divergence check from the stop-falling catalogue.
"""

from dataclasses import dataclass, field

import numpy as np

from mimi.engine.indicators import IndicatorEngine
from mimi.engine.series import is_finite, value_at

THREE_DAY_NO_NEW_LOW = "three days without a new low"
LONG_BULLISH_CANDLE = "long bullish candle"
RANGE_CONTRACTION = "range contraction"
VOLUME_UP_PRICE_FLAT = "volume up, price flat"
FALSE_BREAKDOWN = "false breakdown recovered"
RSI_DIVERGENCE = "RSI bullish divergence"
VOLUME_EXHAUSTION = "volume exhaustion reversal"

VOLUME_BREAKOUT = "volume-confirmed breakout"
RSI_BOTTOM_DIVERGENCE = "RSI bottom divergence"
MACD_HIST_FLIP = "MACD histogram turned positive"

STOP_FALLING_TOTAL = 7
BOTTOM_TOTAL = 3


@dataclass(frozen=True)
class PatternReport:
    total: int
    signals: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.signals)


def _coefficient_of_variation(values: np.ndarray) -> float:
    mean = values.mean()
    if mean == 0:
        return float("nan")
    return float(np.sqrt(((values - mean) ** 2).mean()) / mean)


def three_day_no_new_low(lows: np.ndarray, i: int) -> bool:
    if i < 9:
        return False
    last3 = lows[i - 2:i + 1].min()
    prior7 = lows[i - 9:i - 2].min()
    return bool(last3 >= prior7 * 0.99)


def long_bullish_candle(opens: np.ndarray, closes: np.ndarray, i: int) -> bool:
    if i < 0 or opens[i] <= 0 or closes[i] <= opens[i]:
        return False
    start = max(0, i - 19)
    window_opens = opens[start:i + 1]
    safe_opens = np.where(window_opens != 0, window_opens, 1.0)
    avg_ratio = (np.abs(closes[start:i + 1] - window_opens) / safe_opens).sum() / min(20, i + 1)
    body_ratio = abs(closes[i] - opens[i]) / opens[i]
    return bool(body_ratio > avg_ratio * 1.5)


def range_contraction(closes: np.ndarray, i: int) -> bool:
    if i < 24:
        return False
    recent = _coefficient_of_variation(closes[i - 4:i + 1])
    older = _coefficient_of_variation(closes[i - 24:i - 4])
    return is_finite(recent) and is_finite(older) and recent < older * 0.7


def volume_up_price_flat(closes: np.ndarray, volumes: np.ndarray, i: int) -> bool:
    if i < 19:
        return False
    avg_volume = volumes[i - 19:i + 1].sum() / 20
    prev_close = value_at(closes, i - 1, closes[i])
    move = abs((closes[i] - prev_close) / prev_close) if prev_close else 0.0
    return bool(volumes[i] > avg_volume * 1.5 and move < 0.01)


def false_breakdown_recovery(lows: np.ndarray, closes: np.ndarray, i: int) -> bool:
    if i < 21:
        return False
    support = lows[i - 20:i].min()
    return bool(lows[i] < support * 0.99 and closes[i] > support)


def rsi_bullish_divergence(lows: np.ndarray, rsi14: np.ndarray, i: int) -> bool:
    """Price prints a new 21-bar low while RSI stays above its 21-bar low."""
    if i < 20:
        return False
    min_low = lows[i - 20:i + 1].min()
    rsi_window = rsi14[i - 20:i + 1]
    rsi_window = rsi_window[np.isfinite(rsi_window)]
    current_rsi = value_at(rsi14, i)
    min_rsi = rsi_window.min() if len(rsi_window) else current_rsi
    return bool(lows[i] <= min_low and is_finite(current_rsi) and current_rsi > min_rsi)


def volume_exhaustion_reversal(closes: np.ndarray, volumes: np.ndarray, i: int) -> bool:
    if i < 4:
        return False
    shrinking = (
        volumes[i - 4] > volumes[i - 3] > volumes[i - 2]
        and closes[i - 4] > closes[i - 3] > closes[i - 2]
    )
    rebound = closes[i] > closes[i - 1] and volumes[i] > volumes[i - 1] * 1.5
    return bool(shrinking and rebound)


def detect_stop_falling(engine: IndicatorEngine) -> PatternReport:
    """Signs that a decline is losing momentum."""
    i = engine.last
    opens, lows, closes, volumes = engine.opens, engine.lows, engine.closes, engine.volumes
    rsi14 = engine.rsi(14)

    checks = [
        (THREE_DAY_NO_NEW_LOW, lambda: three_day_no_new_low(lows, i)),
        (LONG_BULLISH_CANDLE, lambda: long_bullish_candle(opens, closes, i)),
        (RANGE_CONTRACTION, lambda: range_contraction(closes, i)),
        (VOLUME_UP_PRICE_FLAT, lambda: volume_up_price_flat(closes, volumes, i)),
        (FALSE_BREAKDOWN, lambda: false_breakdown_recovery(lows, closes, i)),
        (RSI_DIVERGENCE, lambda: rsi_bullish_divergence(lows, rsi14, i)),
        (VOLUME_EXHAUSTION, lambda: volume_exhaustion_reversal(closes, volumes, i)),
    ]
    signals = [label for label, check in checks if check()]
    return PatternReport(total=STOP_FALLING_TOTAL, signals=signals)


def detect_bottom_signals(engine: IndicatorEngine, stop_falling: PatternReport | None = None) -> PatternReport:
    """Confirmation that a bottom may be in."""
    i = engine.last
    closes, volumes = engine.closes, engine.volumes
    if stop_falling is None:
        stop_falling = detect_stop_falling(engine)

    signals: list[str] = []
    if i >= 19:
        avg_volume = volumes[i - 19:i + 1].sum() / 20
        prev_close = closes[i - 1]
        gain = (closes[i] - prev_close) / prev_close if prev_close else 0.0
        if volumes[i] > avg_volume * 2 and gain > 0.03:
            signals.append(VOLUME_BREAKOUT)

    if RSI_DIVERGENCE in stop_falling.signals:
        signals.append(RSI_BOTTOM_DIVERGENCE)

    hist = engine.macd().histogram
    prev_hist, hist_now = value_at(hist, i - 1), value_at(hist, i)
    if is_finite(prev_hist) and is_finite(hist_now) and prev_hist < 0 < hist_now:
        signals.append(MACD_HIST_FLIP)

    return PatternReport(total=BOTTOM_TOTAL, signals=signals)
