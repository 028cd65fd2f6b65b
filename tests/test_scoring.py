"""Tests for mimi.engine.scoring — Mimi score and overall score."""

import pytest

from mimi.engine.ind_darvas import BREAKDOWN, BREAKOUT, INSIDE
from mimi.engine.ind_smc import DOWNTREND, SIDEWAYS, UPTREND
from mimi.engine.ind_ttm import FALLING, RISING, TtmSqueeze
from mimi.engine.scoring import (
    BELOW_LOWER,
    LOWER_HALF,
    UPPER_HALF,
    ScoreInputs,
    clamp,
    mimi_score,
    mimi_verdict,
    overall_rating,
    overall_score,
    round_half_up,
)

NAN = float("nan")
QUIET_TTM = TtmSqueeze(squeeze_on=True, momentum=0.0, direction=FALLING)


def make_inputs(**overrides) -> ScoreInputs:
    base = dict(
        price=100.0,
        sma200=NAN,
        sma50=NAN,
        ema8=NAN,
        ema21=NAN,
        smc_trend=SIDEWAYS,
        macd_line=NAN,
        macd_hist=NAN,
        rsi_value=NAN,
        ttm=QUIET_TTM,
        vol_ratio=0.0,
        bb_position=LOWER_HALF,
        darvas_status=INSIDE,
    )
    base.update(overrides)
    return ScoreInputs(**base)


BULLISH = dict(
    price=110.0, sma200=100.0, sma50=105.0, ema8=108.0, ema21=106.0,
    smc_trend=UPTREND, macd_line=1.0, macd_hist=0.5, rsi_value=60.0,
    ttm=TtmSqueeze(squeeze_on=False, momentum=0.2, direction=RISING),
    vol_ratio=1.5, bb_position=UPPER_HALF, darvas_status=BREAKOUT,
    stop_signals=["a", "b", "c"], bottom_signals=["d"],
)

BEARISH = dict(
    price=90.0, sma200=100.0, sma50=95.0, ema8=92.0, ema21=94.0,
    smc_trend=DOWNTREND, macd_line=-1.0, macd_hist=-0.5, rsi_value=75.0,
    bb_position=BELOW_LOWER, darvas_status=BREAKDOWN,
)


# ── Mimi score ──────────────────────────────────────────────────────

class TestMimiScore:
    def test_nan_inputs_take_conservative_branch(self):
        score = mimi_score(make_inputs())
        assert score.trend == 8          # 50 - 20 - 10 - 12
        assert score.momentum == 40      # 50 - 10
        assert score.technical == 50
        assert score.total == 30
        assert score.verdict == "caution"
        assert score.risk_signals == ["below SMA200", "EMA death cross"]
        assert score.positive_signals == []

    def test_bullish(self):
        score = mimi_score(make_inputs(**BULLISH))
        assert score.trend == 100
        assert score.momentum == 84
        assert score.technical == 78
        assert score.total == 89
        assert score.verdict == "strong buy"
        assert "Darvas breakout" in score.positive_signals

    def test_subscores_clamped(self):
        score = mimi_score(make_inputs(**BEARISH))
        assert score.trend == 0          # 50 - 20 - 10 - 12 - 15
        assert 0 <= score.momentum <= 100
        assert 0 <= score.technical <= 100
        expected = round_half_up(score.trend * 0.4 + score.momentum * 0.3 + score.technical * 0.3)
        assert score.total == expected
        assert "Darvas breakdown" in score.risk_signals
        assert "RSI overheated" in score.risk_signals

    def test_pattern_bonus_capped(self):
        score = mimi_score(make_inputs(stop_signals=["x"] * 7, bottom_signals=["y"] * 3))
        assert score.technical == 50 + 10 + 6

    def test_squeeze_release_adds_momentum(self):
        released = TtmSqueeze(squeeze_on=False, momentum=0.1, direction=RISING)
        assert mimi_score(make_inputs(ttm=released)).momentum == 48


# ── Buckets ─────────────────────────────────────────────────────────

class TestBuckets:
    @pytest.mark.parametrize("total,verdict", [
        (100, "strong buy"),
        (75, "strong buy"),
        (74, "bullish watch"),
        (60, "bullish watch"),
        (45, "hold/watch"),
        (30, "caution"),
        (29, "avoid"),
        (0, "avoid"),
    ])
    def test_mimi_verdict(self, total, verdict):
        assert mimi_verdict(total) == verdict

    @pytest.mark.parametrize("score,rating", [
        (10, "strong buy"),
        (6, "strong buy"),
        (5.9, "consider buy"),
        (3, "consider buy"),
        (0, "neutral"),
        (-0.5, "caution"),
        (-3, "caution"),
        (-3.5, "avoid"),
    ])
    def test_overall_rating(self, score, rating):
        assert overall_rating(score) == rating

    def test_round_half_up(self):
        assert round_half_up(88.5) == 89
        assert round_half_up(30.2) == 30

    def test_clamp(self):
        assert clamp(12, -10, 10) == 10
        assert clamp(-12, -10, 10) == -10
        assert clamp(3, -10, 10) == 3


# ── Overall score ───────────────────────────────────────────────────

class TestOverallScore:
    def test_bullish_points(self):
        inputs = make_inputs(**BULLISH)
        result = overall_score(inputs, mimi_score(inputs))
        assert result.score == pytest.approx(8.0)
        assert result.rating == "strong buy"
        assert "above SMA200 (+2)" in result.reasons
        assert "3 stop-falling signs (+2)" in result.reasons
        assert "1 bottom signals (+1)" in result.reasons

    def test_entry_signals_add_half_points(self):
        inputs = make_inputs(**BULLISH, entry_count=3)
        result = overall_score(inputs, mimi_score(inputs))
        assert result.score == pytest.approx(9.5)
        assert "3 entry signals (+1.5)" in result.reasons

    def test_bullish_is_clipped(self):
        inputs = make_inputs(**BULLISH, entry_count=6)
        result = overall_score(inputs, mimi_score(inputs))
        assert result.score == 10.0

    def test_mimi_labels_do_not_move_points(self):
        inputs = make_inputs(**BULLISH)
        mimi = mimi_score(inputs)
        assert mimi.positive_signals
        assert not any("confirmations" in r for r in overall_score(inputs, mimi).reasons)

    def test_bearish(self):
        inputs = make_inputs(**BEARISH)
        result = overall_score(inputs, mimi_score(inputs))
        assert result.score == pytest.approx(-1.0)
        assert result.rating == "caution"
        assert "RSI overbought (-1)" in result.reasons

    def test_exit_signals_subtract_half_points(self):
        inputs = make_inputs(**BEARISH, exit_count=5)
        result = overall_score(inputs, mimi_score(inputs))
        assert result.score == pytest.approx(-3.5)
        assert result.rating == "avoid"
        assert "5 exit signals (-2.5)" in result.reasons

    def test_golden_cross_and_oversold(self):
        inputs = make_inputs(macd_golden_cross=True, rsi_value=25.0)
        mimi = mimi_score(inputs)
        result = overall_score(inputs, mimi)
        assert result.score == pytest.approx(2.0)
        assert result.rating == "neutral"

    def test_reasons_end_with_subscores(self):
        inputs = make_inputs()
        mimi = mimi_score(inputs)
        reasons = overall_score(inputs, mimi).reasons
        assert reasons[-1] == f"mimi total {mimi.total}"
        assert reasons[-4] == f"trend score {mimi.trend}"
