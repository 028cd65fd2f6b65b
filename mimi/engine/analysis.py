"""Full per-symbol analysis snapshot.

build_analysis() runs every indicator, analyzer, detector and scorer over an
ascending, de-duplicated bar list and rounds the last-bar values into an
AnalysisResult. Short histories degrade to NaN-driven defaults (rounded to
0) instead of raising.
"""

import math

from loguru import logger

from mimi.engine.ind_darvas import darvas_box
from mimi.engine.ind_smc import market_structure
from mimi.engine.ind_ttm import ttm_squeeze
from mimi.engine.indicators import IndicatorEngine
from mimi.engine.patterns import RSI_DIVERGENCE, detect_bottom_signals, detect_stop_falling
from mimi.engine.scoring import (
    ABOVE_UPPER,
    BELOW_LOWER,
    LOWER_HALF,
    UPPER_HALF,
    ScoreInputs,
    mimi_score,
    overall_score,
)
from mimi.engine.stop_loss import recommend_stop
from mimi.engine.strategies import SQUEEZE_TOLERANCE, day_change_pct, detect_strategies, is_bb_squeeze
from mimi.engine.series import is_finite, to_fixed, value_at
from mimi.models.analysis import (
    AdxSnapshot,
    AnalysisResult,
    BollingerSnapshot,
    DarvasSnapshot,
    MacdSnapshot,
    MimiScoreSnapshot,
    MovingAverages,
    OverallScoreSnapshot,
    PatternSnapshot,
    RsiSnapshot,
    SmcSnapshot,
    StopLossSnapshot,
    StrategySummary,
    TtmSnapshot,
    VolumeSnapshot,
)
from mimi.models.market import Bar

ADX_STRONG = 25.0


def rsi_status(value: float) -> str:
    if is_finite(value) and value > 70:
        return "overbought"
    if is_finite(value) and value < 30:
        return "oversold"
    return "neutral"


def macd_trend_label(above_zero: bool, golden_cross: bool, line: float, signal: float) -> str:
    if above_zero and golden_cross:
        return "golden cross above zero (strongest bullish)"
    if above_zero and line > signal:
        return "bullish continuation above zero"
    if not above_zero and golden_cross:
        return "golden cross below zero (rebound watch)"
    if not above_zero and line < signal:
        return "bearish below zero"
    return "neutral"


def bollinger_position(price: float, upper: float, middle: float, lower: float) -> str:
    if price > upper:
        return ABOVE_UPPER
    if price < lower:
        return BELOW_LOWER
    if price >= middle:
        return UPPER_HALF
    return LOWER_HALF


def _round_int(value: float) -> int:
    return int(math.floor(value + 0.5)) if is_finite(value) else 0


def build_analysis(symbol: str, bars: list[Bar], squeeze_mode: str = SQUEEZE_TOLERANCE) -> AnalysisResult:
    """Analyze the last bar of `bars` (ascending by date, no duplicates)."""
    engine = IndicatorEngine(bars)
    i = engine.last
    prev = i - 1
    highs, lows, closes, volumes = engine.highs, engine.lows, engine.closes, engine.volumes

    sma200 = value_at(engine.sma(200), i)
    sma50 = value_at(engine.sma(50), i)
    sma20 = value_at(engine.sma(20), i)
    ema21 = value_at(engine.ema(21), i)
    ema8 = value_at(engine.ema(8), i)

    price = value_at(closes, i, 0.0)
    prev_close = value_at(closes, prev, price)
    change = day_change_pct(closes, i)
    change_amount = price - prev_close

    # ── Moving averages ──
    above_200 = is_finite(sma200) and price > sma200
    above_50 = is_finite(sma50) and price > sma50
    trend_score = (1 if above_200 else -1) + (1 if above_50 else -1)
    ma_golden_cross = is_finite(sma50) and is_finite(sma200) and sma50 > sma200

    # ── MACD ──
    macd_data = engine.macd()
    macd_line = value_at(macd_data.line, i)
    macd_signal = value_at(macd_data.signal, i)
    macd_hist = value_at(macd_data.histogram, i)
    macd_above_zero = is_finite(macd_line) and macd_line > 0
    macd_golden_cross = (
        prev >= 0
        and macd_line > macd_signal
        and value_at(macd_data.line, prev) <= value_at(macd_data.signal, prev)
    )
    prev_hist = value_at(macd_data.histogram, prev, macd_hist)

    # ── Bollinger ──
    bb = engine.bollinger(20, 2.0)
    bb_upper = value_at(bb.upper, i)
    bb_middle = value_at(bb.middle, i)
    bb_lower = value_at(bb.lower, i)
    bb_width = value_at(engine.bollinger_width(20, 2.0), i, 0.0)
    bb_pos = bollinger_position(price, bb_upper, bb_middle, bb_lower)
    bb_squeeze = is_bb_squeeze(engine.bollinger_width(20, 2.0), i, squeeze_mode)
    sigma = (bb_upper - bb_middle) / 2
    bb_z_score = (price - bb_middle) / sigma if is_finite(sigma) and sigma > 0 else 0.0

    # ── Oscillators & volume ──
    rsi_value = value_at(engine.rsi(14), i)
    vol_avg20 = value_at(engine.sma(20, source="volume"), i)
    volume_now = value_at(volumes, i, 0.0)
    vol_ratio = volume_now / vol_avg20 if is_finite(vol_avg20) and vol_avg20 > 0 else 0.0
    adx_value = value_at(engine.adx(14).adx, i)

    # ── Structure ──
    darvas = darvas_box(highs, lows, price)
    ttm = ttm_squeeze(closes, highs, lows)
    smc = market_structure(highs, lows)

    # ── Signals ──
    stop_falling = detect_stop_falling(engine)
    bottom = detect_bottom_signals(engine, stop_falling)
    strategies = detect_strategies(engine, squeeze_mode=squeeze_mode)

    stop = recommend_stop(price, darvas.bottom, ema8, smc.swing_low)

    inputs = ScoreInputs(
        price=price,
        sma200=sma200,
        sma50=sma50,
        ema8=ema8,
        ema21=ema21,
        smc_trend=smc.trend,
        macd_line=macd_line,
        macd_hist=macd_hist,
        rsi_value=rsi_value,
        ttm=ttm,
        vol_ratio=vol_ratio,
        bb_position=bb_pos,
        darvas_status=darvas.status,
        stop_signals=stop_falling.signals,
        bottom_signals=bottom.signals,
        macd_golden_cross=macd_golden_cross,
        entry_count=strategies.entry_count,
        exit_count=strategies.exit_count,
    )
    mimi = mimi_score(inputs)
    overall = overall_score(inputs, mimi)

    logger.debug(
        f"Analysis {symbol}: {len(bars)} bars, mimi {mimi.total} ({mimi.verdict}), "
        f"overall {overall.score:+.1f} ({overall.rating})"
    )

    return AnalysisResult(
        symbol=symbol,
        price=to_fixed(price),
        change=to_fixed(change),
        change_amount=to_fixed(change_amount),
        moving_averages=MovingAverages(
            sma200=to_fixed(sma200),
            sma50=to_fixed(sma50),
            sma20=to_fixed(sma20),
            ema21=to_fixed(ema21),
            ema8=to_fixed(ema8),
            price_vs_200="above" if is_finite(sma200) and price >= sma200 else "below",
            golden_cross=ma_golden_cross,
            trend_score=trend_score,
        ),
        macd=MacdSnapshot(
            line=to_fixed(macd_line, 4),
            signal=to_fixed(macd_signal, 4),
            histogram=to_fixed(macd_hist, 4),
            above_zero=macd_above_zero,
            golden_cross=macd_golden_cross,
            trend=macd_trend_label(macd_above_zero, macd_golden_cross, macd_line, macd_signal),
            histogram_trend="increasing" if macd_hist >= prev_hist else "decreasing",
            bull_divergence=RSI_DIVERGENCE in stop_falling.signals,
        ),
        bollinger=BollingerSnapshot(
            upper=to_fixed(bb_upper),
            middle=to_fixed(bb_middle),
            lower=to_fixed(bb_lower),
            width=to_fixed(bb_width),
            position=bb_pos,
            squeeze=bb_squeeze,
            z_score=to_fixed(bb_z_score),
        ),
        rsi=RsiSnapshot(value=to_fixed(rsi_value), status=rsi_status(rsi_value)),
        volume=VolumeSnapshot(
            current=_round_int(volume_now),
            avg20=_round_int(vol_avg20),
            ratio=to_fixed(vol_ratio),
        ),
        adx=AdxSnapshot(
            value=to_fixed(adx_value),
            trend_strength="strong" if is_finite(adx_value) and adx_value >= ADX_STRONG else "weak",
        ),
        darvas_box=DarvasSnapshot(
            top=to_fixed(darvas.top),
            bottom=to_fixed(darvas.bottom),
            formation_days=darvas.formation_days,
            status=darvas.status,
        ),
        ttm_squeeze=TtmSnapshot(
            squeeze_on=ttm.squeeze_on,
            momentum=to_fixed(ttm.momentum, 5),
            direction=ttm.direction,
        ),
        smc=SmcSnapshot(
            trend=smc.trend,
            swing_high=to_fixed(smc.swing_high),
            swing_low=to_fixed(smc.swing_low),
            higher_high=smc.higher_high,
            higher_low=smc.higher_low,
            lower_high=smc.lower_high,
            lower_low=smc.lower_low,
        ),
        stop_loss=StopLossSnapshot(
            darvas_bottom=to_fixed(stop.darvas_bottom),
            ema8=to_fixed(stop.ema8),
            swing_low=to_fixed(stop.swing_low),
            recommended=to_fixed(stop.recommended),
            risk_percent=to_fixed(stop.risk_percent),
            logic=stop.logic,
        ),
        mimi_score=MimiScoreSnapshot(
            total=mimi.total,
            trend=mimi.trend,
            momentum=mimi.momentum,
            technical=mimi.technical,
            verdict=mimi.verdict,
            positive_signals=list(mimi.positive_signals),
            risk_signals=list(mimi.risk_signals),
        ),
        stop_falling=PatternSnapshot(
            count=stop_falling.count,
            total=stop_falling.total,
            signals=list(stop_falling.signals),
        ),
        bottom_signals=PatternSnapshot(
            count=bottom.count,
            total=bottom.total,
            signals=list(bottom.signals),
        ),
        strategies=StrategySummary(
            entry_count=strategies.entry_count,
            exit_count=strategies.exit_count,
            details=list(strategies.details),
        ),
        overall_score=OverallScoreSnapshot(
            score=to_fixed(overall.score, 1),
            rating=overall.rating,
            reasons=list(overall.reasons),
        ),
    )
