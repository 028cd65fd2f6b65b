from pydantic import BaseModel


class VixSnapshot(BaseModel):
    current: float
    ma20: float
    ma50: float
    status: str  # low, moderate, high, extreme
    trend: str  # rising, falling, stable


class IndexMetrics(BaseModel):
    price: float
    change_percent: float
    ema8: float
    sma50: float
    sma200: float
    rsi: float
    bb_position: float  # 0-100 location inside the bands
    trend: str  # bull, bear
    lifeline_status: str  # above_ema8, below_ema8
    dist_from_200: float


class ScoreBreakdown(BaseModel):
    key: str
    label: str
    score: float
    note: str


class RegimeOverall(BaseModel):
    score: float
    regime: str  # extreme_offense, offense, neutral, defense, crisis_buy
    label: str
    suggestion: str
    breakdown: list[ScoreBreakdown] = []


class MarketRegime(BaseModel):
    timestamp: str
    vix: VixSnapshot
    spy: IndexMetrics
    qqq: IndexMetrics
    overall: RegimeOverall
