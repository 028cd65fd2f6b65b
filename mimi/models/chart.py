from pydantic import BaseModel


class ChartCandle(BaseModel):
    time: str
    open: float
    high: float
    low: float
    close: float
    volume: int


class ChartPoint(BaseModel):
    time: str
    value: float


class MacdPoint(BaseModel):
    time: str
    macd: float
    signal: float
    histogram: float


class BollingerPoint(BaseModel):
    time: str
    upper: float
    middle: float
    lower: float


class TtmChartPoint(BaseModel):
    time: str
    squeeze_on: int  # 1 while the squeeze is on
    momentum: float


class DarvasLevels(BaseModel):
    top: float = 0.0
    bottom: float = 0.0


class ChartIndicators(BaseModel):
    sma200: list[ChartPoint] = []
    sma50: list[ChartPoint] = []
    sma20: list[ChartPoint] = []
    ema21: list[ChartPoint] = []
    ema8: list[ChartPoint] = []
    macd: list[MacdPoint] = []
    rsi: list[ChartPoint] = []
    bollinger: list[BollingerPoint] = []
    ttm_squeeze: list[TtmChartPoint] = []
    darvas: DarvasLevels = DarvasLevels()


class ChartData(BaseModel):
    candles: list[ChartCandle] = []
    indicators: ChartIndicators = ChartIndicators()


class ChartDataResponse(BaseModel):
    symbol: str
    days: int
    data: ChartData
