"""Composite scoring — the 0-100 Mimi score and the -10..+10 overall score.

Mimi score: trend, momentum and technical sub-scores start at 50, move by
fixed deltas keyed on indicator state, and are clamped to [0, 100].
    total = round(trend * 0.4 + momentum * 0.3 + technical * 0.3)

Overall score: an independent point system clipped to [-10, 10].

Any NaN input makes its comparison false, so it lands on the conservative
branch (e.g. an undefined SMA200 counts as "below").
"""

import math
from dataclasses import dataclass, field

from mimi.engine.ind_darvas import BREAKDOWN, BREAKOUT
from mimi.engine.ind_smc import DOWNTREND, UPTREND
from mimi.engine.ind_ttm import RISING, TtmSqueeze
from mimi.engine.series import is_finite

TREND_WEIGHT = 0.4
MOMENTUM_WEIGHT = 0.3
TECHNICAL_WEIGHT = 0.3

OVERALL_MIN = -10.0
OVERALL_MAX = 10.0

# Descending (threshold, label) buckets
MIMI_VERDICTS = [
    (75, "strong buy"),
    (60, "bullish watch"),
    (45, "hold/watch"),
    (30, "caution"),
]
MIMI_FLOOR_VERDICT = "avoid"

OVERALL_RATINGS = [
    (6, "strong buy"),
    (3, "consider buy"),
    (0, "neutral"),
    (-3, "caution"),
]
OVERALL_FLOOR_RATING = "avoid"

# Bollinger positions (see analysis.bollinger_position)
ABOVE_UPPER = "above_upper"
UPPER_HALF = "upper_half"
LOWER_HALF = "lower_half"
BELOW_LOWER = "below_lower"


@dataclass(frozen=True)
class ScoreInputs:
    price: float
    sma200: float
    sma50: float
    ema8: float
    ema21: float
    smc_trend: str
    macd_line: float
    macd_hist: float
    rsi_value: float
    ttm: TtmSqueeze
    vol_ratio: float
    bb_position: str
    darvas_status: str
    stop_signals: list[str] = field(default_factory=list)
    bottom_signals: list[str] = field(default_factory=list)
    macd_golden_cross: bool = False
    entry_count: int = 0
    exit_count: int = 0


@dataclass(frozen=True)
class MimiScore:
    total: int
    trend: int
    momentum: int
    technical: int
    verdict: str
    positive_signals: list[str]
    risk_signals: list[str]


@dataclass(frozen=True)
class OverallScore:
    score: float
    rating: str
    reasons: list[str]


def _gt(a: float, b: float) -> bool:
    return is_finite(a) and is_finite(b) and a > b


def _lt(a: float, b: float) -> bool:
    return is_finite(a) and is_finite(b) and a < b


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def mimi_verdict(total: float) -> str:
    for threshold, label in MIMI_VERDICTS:
        if total >= threshold:
            return label
    return MIMI_FLOOR_VERDICT


def overall_rating(score: float) -> str:
    for threshold, label in OVERALL_RATINGS:
        if score >= threshold:
            return label
    return OVERALL_FLOOR_RATING


def mimi_score(inputs: ScoreInputs) -> MimiScore:
    """Weighted 0-100 composite with the signals that moved it."""
    trend = momentum = technical = 50
    positive: list[str] = []
    risk: list[str] = []

    # ── Trend ──
    if _gt(inputs.price, inputs.sma200):
        trend += 15
        positive.append("above SMA200")
    else:
        trend -= 20
        risk.append("below SMA200")

    trend += 10 if _gt(inputs.price, inputs.sma50) else -10

    if _gt(inputs.ema8, inputs.ema21):
        trend += 12
        positive.append("EMA bullish alignment")
    else:
        trend -= 12
        risk.append("EMA death cross")

    if inputs.smc_trend == UPTREND:
        trend += 13
        positive.append("uptrend structure")
    elif inputs.smc_trend == DOWNTREND:
        trend -= 15
        risk.append("downtrend structure")

    # ── Momentum ──
    if _gt(inputs.macd_line, 0):
        momentum += 10
    if _gt(inputs.macd_hist, 0):
        momentum += 10
        positive.append("MACD bullish momentum")
    else:
        momentum -= 10

    if _lt(inputs.rsi_value, 35):
        momentum += 6
        positive.append("RSI low zone")
    if _gt(inputs.rsi_value, 70):
        momentum -= 8
        risk.append("RSI overheated")

    if not inputs.ttm.squeeze_on and inputs.ttm.direction == RISING:
        momentum += 8
    if _gt(inputs.vol_ratio, 1.2):
        momentum += 6

    # ── Technical ──
    if inputs.bb_position == UPPER_HALF:
        technical += 8
    elif inputs.bb_position == BELOW_LOWER:
        technical -= 10

    if inputs.darvas_status == BREAKOUT:
        technical += 12
        positive.append("Darvas breakout")
    elif inputs.darvas_status == BREAKDOWN:
        technical -= 15
        risk.append("Darvas breakdown")

    technical += min(10, len(inputs.stop_signals) * 2)
    technical += min(8, len(inputs.bottom_signals) * 2)

    trend = int(clamp(trend, 0, 100))
    momentum = int(clamp(momentum, 0, 100))
    technical = int(clamp(technical, 0, 100))

    total = round_half_up(trend * TREND_WEIGHT + momentum * MOMENTUM_WEIGHT + technical * TECHNICAL_WEIGHT)
    return MimiScore(
        total=total,
        trend=trend,
        momentum=momentum,
        technical=technical,
        verdict=mimi_verdict(total),
        positive_signals=positive,
        risk_signals=risk,
    )


def overall_score(inputs: ScoreInputs, mimi: MimiScore) -> OverallScore:
    """Point system clipped to [-10, 10].

    +2 above SMA200, +1 above SMA50, +1 SMA50 > SMA200, +1 MACD above zero,
    +1 MACD golden cross, +1 RSI < 30 / -1 RSI > 70, +1 for one stop-falling
    sign and +2 for two or more, +1 per bottom signal, and +0.5 / -0.5 per
    entry / exit signal fired by the strategy detectors.
    """
    points = 0.0
    reasons: list[str] = []

    def add(delta: float, reason: str) -> None:
        nonlocal points
        points += delta
        reasons.append(f"{reason} ({delta:+g})")

    if _gt(inputs.price, inputs.sma200):
        add(2, "above SMA200")
    if _gt(inputs.price, inputs.sma50):
        add(1, "above SMA50")
    if _gt(inputs.sma50, inputs.sma200):
        add(1, "SMA50/200 golden cross")
    if _gt(inputs.macd_line, 0):
        add(1, "MACD above zero")
    if inputs.macd_golden_cross:
        add(1, "MACD golden cross")

    if _lt(inputs.rsi_value, 30):
        add(1, "RSI oversold")
    elif _gt(inputs.rsi_value, 70):
        add(-1, "RSI overbought")

    stop_count = len(inputs.stop_signals)
    if stop_count >= 2:
        add(2, f"{stop_count} stop-falling signs")
    elif stop_count == 1:
        add(1, "1 stop-falling sign")

    if inputs.bottom_signals:
        add(len(inputs.bottom_signals), f"{len(inputs.bottom_signals)} bottom signals")

    if inputs.entry_count:
        add(0.5 * inputs.entry_count, f"{inputs.entry_count} entry signals")
    if inputs.exit_count:
        add(-0.5 * inputs.exit_count, f"{inputs.exit_count} exit signals")

    score = clamp(points, OVERALL_MIN, OVERALL_MAX)
    reasons.extend([
        f"trend score {mimi.trend}",
        f"momentum score {mimi.momentum}",
        f"technical score {mimi.technical}",
        f"mimi total {mimi.total}",
    ])
    return OverallScore(score=score, rating=overall_rating(score), reasons=reasons)
