"""Per-symbol entry/exit scan used by the watchlist signals endpoint."""

from mimi.engine.indicators import IndicatorEngine
from mimi.engine.series import to_fixed, value_at
from mimi.engine.strategies import RSI_EXIT, SQUEEZE_TOLERANCE, detect_strategies
from mimi.models.market import Bar
from mimi.models.signal import EmaCrossFlag, RsiFlag, SignalResult, SignalSet, StrategyFlag


def build_signal_result(symbol: str, bars: list[Bar], squeeze_mode: str = SQUEEZE_TOLERANCE,
                        rsi_exit_threshold: float = RSI_EXIT) -> SignalResult:
    engine = IndicatorEngine(bars)
    strategies = detect_strategies(engine, squeeze_mode=squeeze_mode, rsi_exit_threshold=rsi_exit_threshold)
    flags = strategies.flags

    def flag(name: str) -> StrategyFlag:
        return StrategyFlag(entry=flags[name].entry, exit=flags[name].exit)

    return SignalResult(
        symbol=symbol,
        price=to_fixed(value_at(engine.closes, engine.last, 0.0)),
        change=to_fixed(strategies.change_pct),
        signals=SignalSet(
            ema_cross=EmaCrossFlag(
                entry=flags["ema_cross"].entry,
                exit=flags["ema_cross"].exit,
                bullish=strategies.ema_bullish,
                status="EMA8 > EMA21" if strategies.ema_bullish else "EMA8 <= EMA21",
            ),
            vol_breakout=flag("vol_breakout"),
            bar3_reversal=flag("bar3_reversal"),
            rsi=RsiFlag(
                entry=flags["rsi"].entry,
                exit=flags["rsi"].exit,
                value=to_fixed(strategies.rsi_value),
            ),
            bb_squeeze=flag("bb_squeeze"),
            sma50_pullback=flag("sma50_pullback"),
        ),
        entry_count=strategies.entry_count,
        exit_count=strategies.exit_count,
        trend=strategies.trend,
    )
