"""Tests for mimi.engine.series — windowed reducers and rounding."""

import math

import numpy as np
import pandas as pd
import pytest

from mimi.engine.series import (
    ema,
    finite_window,
    is_finite,
    linreg_slope,
    sma,
    stddev,
    to_fixed,
    value_at,
)


# ── SMA ─────────────────────────────────────────────────────────────

class TestSma:
    def test_running_mean(self):
        out = sma([1, 2, 3, 4, 5], 3)
        assert np.isnan(out[:2]).all()
        assert list(out[2:]) == [2.0, 3.0, 4.0]

    def test_first_value_is_plain_mean(self):
        values = [3.0, 7.0, 1.0, 9.0]
        assert sma(values, 4)[3] == pytest.approx(sum(values) / 4)

    def test_shorter_than_period_is_all_nan(self):
        assert np.isnan(sma([1, 2], 5)).all()

    def test_non_positive_period(self):
        assert np.isnan(sma([1, 2, 3], 0)).all()

    def test_accepts_pandas_series(self):
        out = sma(pd.Series([2.0, 4.0, 6.0]), 2)
        assert list(out[1:]) == [3.0, 5.0]

    def test_empty(self):
        assert len(sma([], 3)) == 0


# ── EMA ─────────────────────────────────────────────────────────────

class TestEma:
    def test_seed_equals_sma(self):
        values = [10, 11, 12, 13, 14, 15, 16]
        assert ema(values, 5)[4] == sma(values, 5)[4]

    def test_recursion(self):
        values = [10.0, 12.0, 11.0, 15.0, 14.0, 18.0, 17.0]
        out = ema(values, 3)
        k = 2 / (3 + 1)
        for i in range(3, len(values)):
            assert out[i] == values[i] * k + out[i - 1] * (1 - k)

    def test_nothing_before_seed(self):
        out = ema([1, 2, 3, 4], 3)
        assert np.isnan(out[:2]).all()

    def test_short_is_all_nan(self):
        assert np.isnan(ema([1, 2], 3)).all()


# ── Stddev / slope ──────────────────────────────────────────────────

class TestStddev:
    def test_population_stddev(self):
        out = stddev([2, 4, 4, 4, 5, 5, 7, 9], 8)
        assert out[-1] == pytest.approx(2.0)

    def test_constant_window_is_zero(self):
        assert stddev([5, 5, 5], 3)[-1] == 0.0


class TestLinregSlope:
    def test_unit_slope(self):
        assert linreg_slope([1, 2, 3, 4]) == pytest.approx(1.0)

    def test_negative_slope(self):
        assert linreg_slope([10, 8, 6]) == pytest.approx(-2.0)

    def test_single_point_is_zero(self):
        assert linreg_slope([5]) == 0.0

    def test_empty_is_zero(self):
        assert linreg_slope([]) == 0.0

    def test_flat(self):
        assert linreg_slope([3, 3, 3]) == 0.0


# ── Helpers ─────────────────────────────────────────────────────────

class TestToFixed:
    def test_exact_halves_round_away_from_zero(self):
        assert to_fixed(0.125) == 0.13
        assert to_fixed(-0.125) == -0.13
        assert to_fixed(2.5, 0) == 3.0

    def test_binary_value_below_half_rounds_down(self):
        # 1.005 is stored as 1.00499999999999989...
        assert to_fixed(1.005) == 1.0
        assert to_fixed(-1.005) == -1.0
        assert to_fixed(0.285) == 0.28

    def test_numpy_scalar(self):
        assert to_fixed(np.float32(1.5), 0) == 2.0

    def test_digits(self):
        assert to_fixed(1.23456, 4) == 1.2346
        assert to_fixed(0.000012345, 5) == 0.00001

    def test_non_finite_maps_to_zero(self):
        assert to_fixed(float("nan")) == 0.0
        assert to_fixed(float("inf")) == 0.0
        assert to_fixed(None) == 0.0

    def test_tiny_negative_is_plain_zero(self):
        result = to_fixed(-0.001)
        assert result == 0.0
        assert math.copysign(1, result) == 1


class TestValueAt:
    def test_in_range(self):
        assert value_at([1.0, 2.0], 1) == 2.0

    def test_negative_index_is_out_of_range(self):
        assert math.isnan(value_at([1.0, 2.0], -1))

    def test_default(self):
        assert value_at([], 0, 7.0) == 7.0


class TestIsFinite:
    @pytest.mark.parametrize("value,expected", [
        (1.0, True),
        (0, True),
        (float("nan"), False),
        (float("-inf"), False),
        (None, False),
        ("1.0", False),
    ])
    def test_values(self, value, expected):
        assert is_finite(value) is expected


class TestFiniteWindow:
    def test_drops_nan_and_clips_start(self):
        out = finite_window([np.nan, 1.0, 2.0, np.nan, 3.0], 4, 10)
        assert list(out) == [1.0, 2.0, 3.0]

    def test_trailing_length(self):
        assert list(finite_window([1, 2, 3, 4, 5], 3, 2)) == [3.0, 4.0]
