from pydantic import BaseModel


class StrategyFlag(BaseModel):
    entry: bool = False
    exit: bool = False


class EmaCrossFlag(StrategyFlag):
    bullish: bool = False
    status: str = ""


class RsiFlag(StrategyFlag):
    value: float = 0.0


class SignalSet(BaseModel):
    ema_cross: EmaCrossFlag = EmaCrossFlag()
    vol_breakout: StrategyFlag = StrategyFlag()
    bar3_reversal: StrategyFlag = StrategyFlag()
    rsi: RsiFlag = RsiFlag()
    bb_squeeze: StrategyFlag = StrategyFlag()
    sma50_pullback: StrategyFlag = StrategyFlag()


class SignalResult(BaseModel):
    symbol: str
    price: float = 0.0
    change: float = 0.0
    signals: SignalSet = SignalSet()
    entry_count: int = 0
    exit_count: int = 0
    trend: str = "BEAR"  # BULL, BEAR


class SignalsResponse(BaseModel):
    scanned_at: str
    results: list[SignalResult] = []
