"""Bar sources and normalisation.

Every provider hands the engine an ascending, de-duplicated list of Bar
records. Malformed rows are dropped here so the engine never sees them.
"""

import datetime as dt
import math
from pathlib import Path
from typing import Any, Iterable, Protocol

import pandas as pd
from loguru import logger
from pydantic import ValidationError

from mimi.models.market import Bar

PRICE_FIELDS = ("open", "high", "low", "close")


class BarProvider(Protocol):
    def get_bars(self, symbol: str, lookback: int) -> list[Bar]:
        ...


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


def _coerce_date(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, dt.datetime):  # pd.Timestamp included
        return value.date()
    return value


def _to_bar(record: Bar | dict) -> Bar | None:
    if isinstance(record, Bar):
        bar = record
    else:
        data = dict(record)
        data["date"] = _coerce_date(data.get("date"))
        if data.get("volume") is None or (isinstance(data["volume"], float) and math.isnan(data["volume"])):
            data["volume"] = 0.0
        try:
            bar = Bar.model_validate(data)
        except ValidationError:
            return None
    if not all(math.isfinite(getattr(bar, f)) for f in PRICE_FIELDS) or not math.isfinite(bar.volume):
        return None
    return bar


def normalize_bars(records: Iterable[Bar | dict]) -> list[Bar]:
    """Validate, sort ascending by date and de-duplicate (last record wins)."""
    by_date: dict[dt.date, Bar] = {}
    dropped = 0
    for record in records:
        bar = _to_bar(record)
        if bar is None:
            dropped += 1
            continue
        by_date[bar.date] = bar
    if dropped:
        logger.debug(f"Dropped {dropped} malformed bar records")
    return [by_date[d] for d in sorted(by_date)]


class CsvBarProvider:
    """Daily bars from `<directory>/<SYMBOL>.csv` (date, open, high, low, close, volume)."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path_for(self, symbol: str) -> Path:
        return self.directory / f"{normalize_symbol(symbol)}.csv"

    def get_bars(self, symbol: str, lookback: int) -> list[Bar]:
        path = self.path_for(symbol)
        if not path.exists():
            logger.debug(f"No bar file for {symbol}: {path}")
            return []
        try:
            df = pd.read_csv(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read {path}: {e}")
            return []

        df.columns = [str(c).strip().lower() for c in df.columns]
        if "date" not in df.columns:
            logger.warning(f"{path} has no date column")
            return []
        df["date"] = pd.to_datetime(df["date"], errors="coerce")
        for col in (*PRICE_FIELDS, "volume"):
            if col in df.columns:
                df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)

        bars = normalize_bars(df.to_dict("records"))
        if lookback > 0:
            bars = bars[-lookback:]
        logger.debug(f"Loaded {len(bars)} bars for {symbol} from {path.name}")
        return bars
