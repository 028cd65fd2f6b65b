"""Entry/exit strategy detectors evaluated on the last two bars.

Six independent detectors, each reporting whether its entry and exit
condition fires "now":

| Detector       | Entry                                         | Exit                        |
|----------------|-----------------------------------------------|-----------------------------|
| ema_cross      | EMA8 crosses above EMA21                      | EMA8 < EMA21                |
| vol_breakout   | +2% day, volume > 2x avg20, close > SMA50     | -2% day, volume > 1.5x avg  |
| bar3_reversal  | 3 up candles and RSI < 40                     | RSI > 60 and down candle    |
| rsi            | RSI < 30                                      | RSI > exit threshold (70)   |
| bb_squeeze     | narrowest band width of 20 bars, close > upper| close < lower               |
| sma50_pullback | SMA50 > SMA200, touch of SMA50, bullish close | close < SMA50 * 0.98        |

Every comparison is guarded by a finiteness check; missing history never fires.
"""

from dataclasses import dataclass, field

from mimi.engine.indicators import IndicatorEngine
from mimi.engine.series import finite_window, is_finite, value_at

SQUEEZE_TOLERANCE = "tolerance"
SQUEEZE_EXACT = "exact"
SQUEEZE_TOLERANCE_MULT = 1.1
SQUEEZE_WINDOW = 20

RSI_ENTRY = 30.0
RSI_EXIT = 70.0
RSI_EXIT_SIMPLE = 50.0

BULL = "BULL"
BEAR = "BEAR"

STRATEGY_NAMES = ("ema_cross", "vol_breakout", "bar3_reversal", "rsi", "bb_squeeze", "sma50_pullback")


@dataclass(frozen=True)
class SignalFlag:
    entry: bool = False
    exit: bool = False


@dataclass(frozen=True)
class StrategySignals:
    flags: dict[str, SignalFlag]
    ema_bullish: bool
    rsi_value: float
    change_pct: float
    details: list[str] = field(default_factory=list)

    @property
    def entry_count(self) -> int:
        return sum(1 for f in self.flags.values() if f.entry)

    @property
    def exit_count(self) -> int:
        return sum(1 for f in self.flags.values() if f.exit)

    @property
    def trend(self) -> str:
        return BULL if self.ema_bullish else BEAR


def _gt(a: float, b: float) -> bool:
    return is_finite(a) and is_finite(b) and a > b


def _lt(a: float, b: float) -> bool:
    return is_finite(a) and is_finite(b) and a < b


def day_change_pct(closes, i: int) -> float:
    """Percent change of close[i] vs close[i-1]; 0 without a usable previous close."""
    price = value_at(closes, i, 0.0)
    prev_close = value_at(closes, i - 1, price)
    if not prev_close:
        return 0.0
    return (price - prev_close) / prev_close * 100


def is_bb_squeeze(widths, i: int, mode: str = SQUEEZE_TOLERANCE) -> bool:
    """Band width at i is the narrowest of the trailing 20 bars.

    "tolerance" accepts anything within 10% of the minimum; "exact" demands
    the minimum itself.
    """
    current = value_at(widths, i)
    window = finite_window(widths, i, SQUEEZE_WINDOW)
    if not is_finite(current) or len(window) == 0:
        return False
    min_width = float(window.min())
    if mode == SQUEEZE_EXACT:
        return abs(current - min_width) < 1e-12
    return current <= min_width * SQUEEZE_TOLERANCE_MULT


def detect_strategies(engine: IndicatorEngine, squeeze_mode: str = SQUEEZE_TOLERANCE,
                      rsi_exit_threshold: float = RSI_EXIT) -> StrategySignals:
    """Evaluate every detector at the last bar."""
    i = engine.last
    prev = i - 1
    opens, lows, closes, volumes = engine.opens, engine.lows, engine.closes, engine.volumes

    ema8 = engine.ema(8)
    ema21 = engine.ema(21)
    sma50 = engine.sma(50)
    sma200 = engine.sma(200)
    vol_avg = engine.sma(20, source="volume")
    rsi14 = engine.rsi(14)
    bb = engine.bollinger(20, 2.0)
    widths = engine.bollinger_width(20, 2.0)

    price = value_at(closes, i)
    open_ = value_at(opens, i)
    volume = value_at(volumes, i)
    rsi_value = value_at(rsi14, i)
    change = day_change_pct(closes, i)
    avg_volume = value_at(vol_avg, i)

    ema_bullish = _gt(value_at(ema8, i), value_at(ema21, i))
    flags: dict[str, SignalFlag] = {}

    # EMA 8/21 cross
    crossed_up = (
        prev >= 0
        and is_finite(value_at(ema8, prev)) and is_finite(value_at(ema21, prev))
        and value_at(ema8, prev) <= value_at(ema21, prev)
        and ema_bullish
    )
    flags["ema_cross"] = SignalFlag(
        entry=crossed_up,
        exit=_lt(value_at(ema8, i), value_at(ema21, i)),
    )

    # Volume breakout / breakdown
    flags["vol_breakout"] = SignalFlag(
        entry=change > 2 and _gt(volume, avg_volume * 2) and _gt(price, value_at(sma50, i)),
        exit=change < -2 and _gt(volume, avg_volume * 1.5),
    )

    # Three-bar reversal
    three_up = i >= 2 and all(_gt(value_at(closes, k), value_at(opens, k)) for k in (i, i - 1, i - 2))
    flags["bar3_reversal"] = SignalFlag(
        entry=three_up and _lt(rsi_value, 40),
        exit=_gt(rsi_value, 60) and _lt(price, open_),
    )

    # RSI extremes
    flags["rsi"] = SignalFlag(
        entry=_lt(rsi_value, RSI_ENTRY),
        exit=_gt(rsi_value, rsi_exit_threshold),
    )

    # Bollinger squeeze breakout
    flags["bb_squeeze"] = SignalFlag(
        entry=is_bb_squeeze(widths, i, squeeze_mode) and _gt(price, value_at(bb.upper, i)),
        exit=_lt(price, value_at(bb.lower, i)),
    )

    # SMA50 pullback in a bull regime
    sma50_now = value_at(sma50, i)
    bull_regime = _gt(sma50_now, value_at(sma200, i))
    touched = (
        (prev >= 0 and is_finite(value_at(sma50, prev))
         and value_at(closes, prev) <= value_at(sma50, prev) * 1.01)
        or (is_finite(sma50_now) and value_at(lows, i) <= sma50_now * 1.01)
    )
    flags["sma50_pullback"] = SignalFlag(
        entry=bull_regime and touched and _gt(price, sma50_now) and _gt(price, open_),
        exit=is_finite(sma50_now) and _lt(price, sma50_now * 0.98),
    )

    details = []
    for name in STRATEGY_NAMES:
        if flags[name].entry:
            details.append(f"{name} entry")
        if flags[name].exit:
            details.append(f"{name} exit")

    return StrategySignals(
        flags=flags,
        ema_bullish=ema_bullish,
        rsi_value=rsi_value,
        change_pct=change,
        details=details,
    )
