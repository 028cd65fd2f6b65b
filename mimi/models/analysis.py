"""Pydantic models for the per-symbol analysis snapshot."""

from pydantic import BaseModel


class MovingAverages(BaseModel):
    sma200: float = 0.0
    sma50: float = 0.0
    sma20: float = 0.0
    ema21: float = 0.0
    ema8: float = 0.0
    price_vs_200: str = "below"  # above, below
    golden_cross: bool = False
    trend_score: int = 0  # -2..2


class MacdSnapshot(BaseModel):
    line: float = 0.0
    signal: float = 0.0
    histogram: float = 0.0
    above_zero: bool = False
    golden_cross: bool = False
    trend: str = ""
    histogram_trend: str = "increasing"  # increasing, decreasing
    bull_divergence: bool = False


class BollingerSnapshot(BaseModel):
    upper: float = 0.0
    middle: float = 0.0
    lower: float = 0.0
    width: float = 0.0
    position: str = "lower_half"  # above_upper, upper_half, lower_half, below_lower
    squeeze: bool = False
    z_score: float = 0.0


class RsiSnapshot(BaseModel):
    value: float = 0.0
    status: str = "neutral"  # overbought, neutral, oversold


class VolumeSnapshot(BaseModel):
    current: int = 0
    avg20: int = 0
    ratio: float = 0.0


class AdxSnapshot(BaseModel):
    value: float = 0.0
    trend_strength: str = "weak"  # strong, weak


class DarvasSnapshot(BaseModel):
    top: float = 0.0
    bottom: float = 0.0
    formation_days: int = 0
    status: str = "inside"  # inside, breakout, breakdown


class TtmSnapshot(BaseModel):
    squeeze_on: bool = False
    momentum: float = 0.0
    direction: str = "rising"  # rising, falling


class SmcSnapshot(BaseModel):
    trend: str = "sideways"  # uptrend, downtrend, sideways
    swing_high: float = 0.0
    swing_low: float = 0.0
    higher_high: bool = False
    higher_low: bool = False
    lower_high: bool = False
    lower_low: bool = False


class StopLossSnapshot(BaseModel):
    darvas_bottom: float = 0.0
    ema8: float = 0.0
    swing_low: float = 0.0
    recommended: float = 0.0
    risk_percent: float = 0.0
    logic: str = ""


class MimiScoreSnapshot(BaseModel):
    total: int = 0
    trend: int = 0
    momentum: int = 0
    technical: int = 0
    verdict: str = ""
    positive_signals: list[str] = []
    risk_signals: list[str] = []


class PatternSnapshot(BaseModel):
    count: int = 0
    total: int = 0
    signals: list[str] = []


class StrategySummary(BaseModel):
    entry_count: int = 0
    exit_count: int = 0
    details: list[str] = []


class OverallScoreSnapshot(BaseModel):
    score: float = 0.0
    rating: str = ""
    reasons: list[str] = []


class AnalysisResult(BaseModel):
    symbol: str
    price: float = 0.0
    change: float = 0.0
    change_amount: float = 0.0
    moving_averages: MovingAverages = MovingAverages()
    macd: MacdSnapshot = MacdSnapshot()
    bollinger: BollingerSnapshot = BollingerSnapshot()
    rsi: RsiSnapshot = RsiSnapshot()
    volume: VolumeSnapshot = VolumeSnapshot()
    adx: AdxSnapshot = AdxSnapshot()
    darvas_box: DarvasSnapshot = DarvasSnapshot()
    ttm_squeeze: TtmSnapshot = TtmSnapshot()
    smc: SmcSnapshot = SmcSnapshot()
    stop_loss: StopLossSnapshot = StopLossSnapshot()
    mimi_score: MimiScoreSnapshot = MimiScoreSnapshot()
    stop_falling: PatternSnapshot = PatternSnapshot()
    bottom_signals: PatternSnapshot = PatternSnapshot()
    strategies: StrategySummary = StrategySummary()
    overall_score: OverallScoreSnapshot = OverallScoreSnapshot()


class AnalysisResponse(BaseModel):
    scanned_at: str
    result: AnalysisResult
