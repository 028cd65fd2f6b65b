"""Market regime — offense/defense posture from VIX, SPY and QQQ.

Each index contributes trend points (price vs SMA200/SMA50/EMA8), RSI
extremes and a lower-band bonus; VIX adds a fear score. The clipped total
maps to one of five regimes:
- "extreme_offense" (>= 7), "offense" (>= 4), "neutral" (>= 1)
- "crisis_buy" (<= -3, or VIX > 30 with an oversold index)
- "defense" otherwise
"""

from datetime import datetime, timezone

from mimi.engine.indicators import bollinger, rsi
from mimi.engine.scoring import clamp
from mimi.engine.series import ArrayLike, as_array, ema, is_finite, sma, to_fixed, value_at
from mimi.models.regime import IndexMetrics, MarketRegime, RegimeOverall, ScoreBreakdown, VixSnapshot

EXTREME_OFFENSE = "extreme_offense"
OFFENSE = "offense"
NEUTRAL = "neutral"
DEFENSE = "defense"
CRISIS_BUY = "crisis_buy"

DEFAULT_VIX = 20.0


def vix_status(vix: float) -> str:
    if vix < 15:
        return "low"
    if vix < 20:
        return "moderate"
    if vix < 30:
        return "high"
    return "extreme"


def vix_trend(current: float, ma20: float) -> str:
    diff = current - ma20
    if abs(diff) < 0.2:
        return "stable"
    return "rising" if diff > 0 else "falling"


def vix_score(vix: float) -> int:
    if vix < 15:
        return 1
    if vix < 20:
        return 0
    if vix < 25:
        return -1
    if vix < 30:
        return -2
    return 2  # capitulation: fear this high is a contrarian buy


def build_vix_snapshot(current: float | None, closes: ArrayLike | None) -> VixSnapshot:
    """VIX level and trend; falls back to a flat series at the current (or default) level."""
    history = as_array(closes) if closes is not None else as_array([])
    if len(history) < 50:
        history = as_array([current if current is not None else DEFAULT_VIX] * 50)
    now = current if current is not None else value_at(history, len(history) - 1, DEFAULT_VIX)

    ma20 = value_at(sma(history, 20), len(history) - 1)
    ma50 = value_at(sma(history, 50), len(history) - 1)
    ma20 = ma20 if is_finite(ma20) else now
    ma50 = ma50 if is_finite(ma50) else now
    return VixSnapshot(
        current=to_fixed(now),
        ma20=to_fixed(ma20),
        ma50=to_fixed(ma50),
        status=vix_status(now),
        trend=vix_trend(now, ma20),
    )


def build_index_metrics(price: float, change_percent: float, closes: ArrayLike) -> IndexMetrics:
    """Trend snapshot of an index; undefined averages fall back to price."""
    src = as_array(closes)
    i = len(src) - 1
    ema8 = value_at(ema(src, 8), i)
    sma50 = value_at(sma(src, 50), i)
    sma200 = value_at(sma(src, 200), i)
    rsi14 = value_at(rsi(src, 14), i)
    bb = bollinger(src, 20, 2.0)
    upper, lower = value_at(bb.upper, i), value_at(bb.lower, i)

    if is_finite(upper) and is_finite(lower) and upper != lower:
        bb_position = clamp((price - lower) / (upper - lower) * 100, 0, 100)
    else:
        bb_position = 50.0

    dist_from_200 = (price - sma200) / sma200 * 100 if is_finite(sma200) and sma200 != 0 else 0.0

    return IndexMetrics(
        price=to_fixed(price),
        change_percent=to_fixed(change_percent),
        ema8=to_fixed(ema8 if is_finite(ema8) else price),
        sma50=to_fixed(sma50 if is_finite(sma50) else price),
        sma200=to_fixed(sma200 if is_finite(sma200) else price),
        rsi=to_fixed(rsi14 if is_finite(rsi14) else 50.0),
        bb_position=to_fixed(bb_position),
        trend="bull" if is_finite(sma200) and price > sma200 else "bear",
        lifeline_status="above_ema8" if is_finite(ema8) and price >= ema8 else "below_ema8",
        dist_from_200=to_fixed(dist_from_200),
    )


def score_market_regime(vix: VixSnapshot, spy: IndexMetrics, qqq: IndexMetrics) -> RegimeOverall:
    breakdown: list[ScoreBreakdown] = []
    score = 0.0

    v = vix_score(vix.current)
    score += v
    breakdown.append(ScoreBreakdown(key="vix", label="VIX risk", score=v, note=f"VIX {vix.current}"))

    for name, idx in (("SPY", spy), ("QQQ", qqq)):
        key = name.lower()
        trend = 0
        if idx.price > idx.sma200:
            trend += 2
        if idx.price > idx.sma50:
            trend += 1
        if idx.price > idx.ema8:
            trend += 1
        breakdown.append(ScoreBreakdown(
            key=f"{key}_trend", label=f"{name} trend", score=trend,
            note=f"P:{idx.price} / EMA8:{idx.ema8} / SMA50:{idx.sma50} / SMA200:{idx.sma200}",
        ))

        rsi_pts = 1 if idx.rsi < 30 else -1 if idx.rsi > 70 else 0
        breakdown.append(ScoreBreakdown(key=f"{key}_rsi", label=f"{name} RSI", score=rsi_pts, note=f"RSI {idx.rsi}"))

        bb_pts = 1 if idx.bb_position < 20 else 0
        breakdown.append(ScoreBreakdown(
            key=f"{key}_bb", label=f"{name} Bollinger", score=bb_pts, note=f"BB position {idx.bb_position}%",
        ))
        score += trend + rsi_pts + bb_pts

    score = clamp(score, -10, 10)
    panic_bottom = vix.current > 30 and (spy.rsi < 30 or qqq.rsi < 30)

    if score >= 7:
        return RegimeOverall(score=score, regime=EXTREME_OFFENSE, label="Extreme offense",
                             suggestion="Add aggressively, favour the strongest names.", breakdown=breakdown)
    if score >= 4:
        return RegimeOverall(score=score, regime=OFFENSE, label="Offense",
                             suggestion="Buy actively and scale exposure up in steps.", breakdown=breakdown)
    if score >= 1:
        return RegimeOverall(score=score, regime=NEUTRAL, label="Neutral",
                             suggestion="Hold positions and wait for a clearer direction.", breakdown=breakdown)
    if score <= -3 or panic_bottom:
        suggestion = (
            "Panic zone: scale in gradually with strict sizing and risk control."
            if panic_bottom else
            "Market is very weak; only consider staged buys of oversold names."
        )
        return RegimeOverall(score=score, regime=CRISIS_BUY, label="Crisis buy",
                             suggestion=suggestion, breakdown=breakdown)
    return RegimeOverall(score=score, regime=DEFENSE, label="Defense",
                         suggestion="Cut leverage and position size, keep cash.", breakdown=breakdown)


def build_market_regime(vix: VixSnapshot, spy: IndexMetrics, qqq: IndexMetrics,
                        timestamp: datetime | None = None) -> MarketRegime:
    timestamp = timestamp or datetime.now(timezone.utc)
    return MarketRegime(
        timestamp=timestamp.isoformat(),
        vix=vix,
        spy=spy,
        qqq=qqq,
        overall=score_market_regime(vix, spy, qqq),
    )
