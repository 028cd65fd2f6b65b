"""Tests for mimi.engine.indicators — oscillators, bands, ATR/ADX and the engine façade."""

import numpy as np
import pytest

from mimi.engine.indicators import (
    IndicatorEngine,
    adx,
    atr,
    bollinger,
    bollinger_width,
    macd,
    rsi,
    true_range,
)
from mimi.engine.series import ema, stddev
from tests.conftest import linear, make_bars

ZIGZAG = [100 + (3 if i % 2 else -2) + i * 0.1 for i in range(60)]


# ── RSI ─────────────────────────────────────────────────────────────

class TestRsi:
    def test_all_gains_is_100(self):
        out = rsi(linear(100, 130, 30), 14)
        assert np.isnan(out[:14]).all()
        assert (out[14:] == 100.0).all()

    def test_all_losses_is_0(self):
        out = rsi(linear(130, 100, 30), 14)
        assert (out[14:] == 0.0).all()

    def test_flat_counts_as_gain_in_seed(self):
        out = rsi([50.0] * 20, 14)
        assert out[14] == 100.0

    def test_too_short_is_all_nan(self):
        assert np.isnan(rsi(linear(1, 14, 14), 14)).all()

    def test_bounded(self):
        out = rsi(ZIGZAG, 14)
        finite = out[np.isfinite(out)]
        assert len(finite) == len(ZIGZAG) - 14
        assert ((finite >= 0) & (finite <= 100)).all()


# ── MACD ────────────────────────────────────────────────────────────

class TestMacd:
    def test_line_is_fast_minus_slow(self):
        result = macd(ZIGZAG)
        expected = ema(ZIGZAG, 12) - ema(ZIGZAG, 26)
        assert np.allclose(result.line[25:], expected[25:])

    def test_histogram_nan_during_warmup(self):
        result = macd(ZIGZAG)
        assert np.isnan(result.histogram[:25]).all()
        assert np.isfinite(result.histogram[25:]).all()

    def test_signal_runs_over_zero_filled_line(self):
        result = macd(ZIGZAG)
        filled = np.where(np.isfinite(result.line), result.line, 0.0)
        assert np.allclose(result.signal[8:], ema(filled, 9)[8:])

    def test_short_series(self):
        result = macd([1.0, 2.0, 3.0])
        assert np.isnan(result.line).all()
        assert np.isnan(result.histogram).all()


# ── Bollinger ───────────────────────────────────────────────────────

class TestBollinger:
    def test_band_spread_is_four_sigma(self):
        bands = bollinger(ZIGZAG, 20, 2)
        sd = stddev(ZIGZAG, 20)
        mask = np.isfinite(bands.upper)
        assert np.allclose((bands.upper - bands.lower)[mask], 4 * sd[mask])

    def test_width_percent_of_middle(self):
        bands = bollinger(ZIGZAG, 20, 2)
        width = bollinger_width(bands)
        i = len(ZIGZAG) - 1
        assert width[i] == pytest.approx((bands.upper[i] - bands.lower[i]) / bands.middle[i] * 100)

    def test_width_nan_without_positive_middle(self):
        width = bollinger_width(bollinger([0.0] * 25, 20, 2))
        assert np.isnan(width).all()


# ── ATR / ADX ───────────────────────────────────────────────────────

class TestAtr:
    def test_true_range_uses_previous_close(self):
        tr = true_range([10, 12], [8, 11], [9, 11.5])
        assert tr[0] == 2.0
        assert tr[1] == 3.0  # high 12 vs previous close 9

    def test_seed_is_plain_mean(self):
        highs = [10 + i % 3 for i in range(20)]
        lows = [h - 2 for h in highs]
        closes = [h - 1 for h in highs]
        tr = true_range(highs, lows, closes)
        out = atr(highs, lows, closes, 14)
        assert np.isnan(out[:13]).all()
        assert out[13] == pytest.approx(tr[:14].mean())
        assert out[14] == pytest.approx((out[13] * 13 + tr[14]) / 14)


class TestAdx:
    def test_needs_two_periods(self):
        bars = make_bars(linear(100, 120, 27), wick=1.0)
        result = adx([b.high for b in bars], [b.low for b in bars], [b.close for b in bars], 14)
        assert np.isnan(result.adx).all()
        assert np.isnan(result.plus_di).all()

    def test_first_value_at_two_periods(self):
        bars = make_bars(linear(100, 160, 60), wick=1.0)
        result = adx([b.high for b in bars], [b.low for b in bars], [b.close for b in bars], 14)
        assert np.isnan(result.adx[:27]).all()
        assert np.isfinite(result.adx[27:]).all()

    def test_steady_uptrend_is_strong(self):
        bars = make_bars(linear(100, 160, 60), wick=1.0)
        result = adx([b.high for b in bars], [b.low for b in bars], [b.close for b in bars], 14)
        assert result.plus_di[-1] > result.minus_di[-1]
        assert result.adx[-1] > 25


# ── Engine ──────────────────────────────────────────────────────────

class TestIndicatorEngine:
    def test_series_are_memoized(self, rising_bars):
        engine = IndicatorEngine(rising_bars)
        assert engine.sma(50) is engine.sma(50)
        assert engine.macd() is engine.macd()

    def test_volume_source(self, rising_bars):
        engine = IndicatorEngine(rising_bars)
        assert engine.sma(20, source="volume")[-1] == 1_000_000.0

    def test_last_index(self, short_bars):
        assert IndicatorEngine(short_bars).last == 9
        assert IndicatorEngine([]).last == -1

    def test_compute_series_json_friendly(self, short_bars):
        out = IndicatorEngine(short_bars).compute_series("SMA", {"period": 3})
        assert out["value"][:2] == [None, None]
        assert out["value"][2] == pytest.approx(101.0)

    def test_compute_series_multi_output(self, rising_bars):
        out = IndicatorEngine(rising_bars).compute_series("Bollinger")
        assert set(out) == {"upper", "middle", "lower"}
        assert len(out["middle"]) == len(rising_bars)

    def test_compute_series_unknown(self, short_bars):
        with pytest.raises(ValueError, match="Unknown indicator"):
            IndicatorEngine(short_bars).compute_series("Ichimoku")
