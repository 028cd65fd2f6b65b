"""Entry point — starts the Mimi watchlist API."""

import sys

import uvicorn
from loguru import logger

from mimi.config import settings


def main():
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=settings.log_level,
    )
    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="10 MB",
            retention="7 days",
            level="DEBUG",
        )

    logger.info(f"API: http://{settings.api_host}:{settings.api_port}")
    logger.info(f"Bars: {settings.data_dir} | squeeze mode: {settings.squeeze_mode}")

    from mimi.api.main import create_app

    app = create_app()
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
