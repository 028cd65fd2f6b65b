"""Watchlist endpoints — analysis, signal scan, chart data and market regime."""

import asyncio

from fastapi import APIRouter, HTTPException, Query

from mimi.api.main import app_state
from mimi.errors import InvalidRequest, SymbolNotFound
from mimi.models.analysis import AnalysisResponse
from mimi.models.chart import ChartDataResponse
from mimi.models.regime import MarketRegime
from mimi.models.signal import SignalsResponse

router = APIRouter(prefix="/api", tags=["watchlist"])


async def _run(fn, *args):
    """Run a service call off the event loop and map domain errors to HTTP."""
    try:
        return await asyncio.to_thread(fn, *args)
    except SymbolNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidRequest as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/analysis", response_model=AnalysisResponse)
async def get_analysis(symbol: str = Query("")):
    return await _run(app_state["service"].analysis, symbol)


@router.get("/signals", response_model=SignalsResponse)
async def get_signals(symbols: str = Query("")):
    return await _run(app_state["service"].signals, symbols)


@router.get("/chart-data", response_model=ChartDataResponse)
async def get_chart_data(symbol: str = Query(""), days: int = Query(120)):
    return await _run(app_state["service"].chart, symbol, days)


@router.get("/market-regime", response_model=MarketRegime)
async def get_market_regime():
    return await _run(app_state["service"].market_regime)
