from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Bar source
    data_dir: str = "data/bars"
    analysis_lookback: int = 400
    signal_lookback: int = 120

    # Minimum history per request type
    min_analysis_bars: int = 60
    min_signal_bars: int = 30
    max_symbols: int = 200

    # Engine
    squeeze_mode: str = "tolerance"  # tolerance, exact
    rsi_exit_threshold: float = 70.0

    # Market regime symbols
    vix_symbol: str = "^VIX"
    spy_symbol: str = "SPY"
    qqq_symbol: str = "QQQ"

    # Cache
    cache_ttl_seconds: int = 120

    # Web server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"
    log_file: str = "data/mimi.log"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "MIMI_"}


settings = Settings()
