"""Request layer: resolves bars through a provider, runs the engine and caches results."""

from datetime import datetime, timezone

from loguru import logger

from mimi.cache import TTLCache
from mimi.config import Settings
from mimi.data import BarProvider, normalize_symbol
from mimi.engine.analysis import build_analysis
from mimi.engine.chart import build_chart_data, clamp_days
from mimi.engine.regime import build_index_metrics, build_market_regime, build_vix_snapshot
from mimi.engine.signals import build_signal_result
from mimi.engine.strategies import day_change_pct
from mimi.errors import InvalidRequest, SymbolNotFound
from mimi.models.analysis import AnalysisResponse
from mimi.models.chart import ChartDataResponse
from mimi.models.market import Bar
from mimi.models.regime import IndexMetrics, MarketRegime
from mimi.models.signal import SignalsResponse

# Chart requests load this many extra bars so the first visible SMA200 point is warmed up
CHART_WARMUP_BARS = 200


def normalize_symbols(symbols: str | list[str]) -> list[str]:
    """Split, upper-case and de-duplicate, keeping first-seen order."""
    raw = symbols.split(",") if isinstance(symbols, str) else symbols
    seen: list[str] = []
    for s in raw:
        sym = normalize_symbol(s)
        if sym and sym not in seen:
            seen.append(sym)
    return seen


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AnalysisService:
    def __init__(self, provider: BarProvider, cache: TTLCache | None = None, settings: Settings | None = None):
        self.provider = provider
        self.cache = cache or TTLCache()
        self.settings = settings or Settings()

    def _bars(self, symbol: str, lookback: int) -> list[Bar]:
        try:
            bars = self.provider.get_bars(symbol, lookback)
        except Exception as e:
            logger.error(f"Bar provider failed for {symbol}: {e}")
            return []
        logger.debug(f"Provider returned {len(bars)} bars for {symbol}")
        return bars

    def _cached(self, key: tuple):
        value = self.cache.get(key)
        logger.debug(f"Cache {'hit' if value is not None else 'miss'}: {key}")
        return value

    def _store(self, key: tuple, value) -> None:
        self.cache.put(key, value, self.settings.cache_ttl_seconds)

    def analysis(self, symbol: str) -> AnalysisResponse:
        symbol = normalize_symbol(symbol)
        if not symbol:
            raise InvalidRequest("symbol is required")

        key = ("analysis", symbol)
        cached = self._cached(key)
        if cached is not None:
            return cached

        bars = self._bars(symbol, self.settings.analysis_lookback)
        if len(bars) < self.settings.min_analysis_bars:
            raise SymbolNotFound(symbol, len(bars))

        result = build_analysis(symbol, bars, squeeze_mode=self.settings.squeeze_mode)
        response = AnalysisResponse(scanned_at=_now_iso(), result=result)
        self._store(key, response)
        logger.info(f"Analyzed {symbol}: overall {result.overall_score.score} ({result.overall_score.rating})")
        return response

    def signals(self, symbols: str | list[str]) -> SignalsResponse:
        symbols = normalize_symbols(symbols)
        if not symbols:
            raise InvalidRequest("symbols is required")
        if len(symbols) > self.settings.max_symbols:
            raise InvalidRequest(f"At most {self.settings.max_symbols} symbols per request")

        key = ("signals", tuple(sorted(symbols)))
        cached = self._cached(key)
        if cached is not None:
            return cached

        results = []
        for symbol in symbols:
            bars = self._bars(symbol, self.settings.signal_lookback)
            if len(bars) < self.settings.min_signal_bars:
                logger.warning(f"Skipping {symbol}: only {len(bars)} bars")
                continue
            results.append(build_signal_result(
                symbol, bars,
                squeeze_mode=self.settings.squeeze_mode,
                rsi_exit_threshold=self.settings.rsi_exit_threshold,
            ))

        response = SignalsResponse(scanned_at=_now_iso(), results=results)
        self._store(key, response)
        logger.info(f"Signal scan: {len(results)}/{len(symbols)} symbols")
        return response

    def chart(self, symbol: str, days: int | None = None) -> ChartDataResponse:
        symbol = normalize_symbol(symbol)
        if not symbol:
            raise InvalidRequest("symbol is required")
        days = clamp_days(days)

        key = ("chart", symbol, days)
        cached = self._cached(key)
        if cached is not None:
            return cached

        bars = self._bars(symbol, days + CHART_WARMUP_BARS)
        if len(bars) < self.settings.min_analysis_bars:
            raise SymbolNotFound(symbol, len(bars))

        response = ChartDataResponse(symbol=symbol, days=days, data=build_chart_data(bars, days))
        self._store(key, response)
        return response

    def _index_metrics(self, symbol: str) -> IndexMetrics:
        bars = self._bars(symbol, self.settings.analysis_lookback)
        if not bars:
            raise SymbolNotFound(symbol)
        closes = [b.close for b in bars]
        return build_index_metrics(closes[-1], day_change_pct(closes, len(closes) - 1), closes)

    def market_regime(self) -> MarketRegime:
        key = ("market_regime",)
        cached = self._cached(key)
        if cached is not None:
            return cached

        s = self.settings
        vix_bars = self._bars(normalize_symbol(s.vix_symbol), s.analysis_lookback)
        vix_closes = [b.close for b in vix_bars]
        vix = build_vix_snapshot(vix_closes[-1] if vix_closes else None, vix_closes)
        if not vix_bars:
            logger.warning(f"No {s.vix_symbol} bars, using default VIX level")

        regime = build_market_regime(
            vix,
            self._index_metrics(normalize_symbol(s.spy_symbol)),
            self._index_metrics(normalize_symbol(s.qqq_symbol)),
        )
        self._store(key, regime)
        logger.info(f"Market regime: {regime.overall.regime} ({regime.overall.score:+g})")
        return regime
