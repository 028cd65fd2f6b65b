"""FastAPI application factory and lifespan management."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from mimi import __version__
from mimi.cache import TTLCache
from mimi.config import settings
from mimi.data import CsvBarProvider
from mimi.service import AnalysisService

# Global app state — accessible from route handlers
app_state: dict = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    if "service" not in app_state:
        logger.info(f"Reading bars from {settings.data_dir}")
        app_state["service"] = AnalysisService(CsvBarProvider(settings.data_dir), TTLCache(), settings)
    logger.info("Mimi API ready")
    yield
    logger.info("Shutting down Mimi API...")
    app_state["service"].cache.clear()


def create_app(service: AnalysisService | None = None) -> FastAPI:
    app_state.clear()
    if service is not None:
        app_state["service"] = service

    app = FastAPI(
        title="Mimi Watchlist API",
        description="Technical indicators, entry/exit signals and composite scores for stock watchlists",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "version": __version__}

    from mimi.api.watchlist import router as watchlist_router

    app.include_router(watchlist_router)

    return app
