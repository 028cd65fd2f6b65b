import datetime as dt

from pydantic import BaseModel, field_validator


class Bar(BaseModel):
    date: dt.date
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @field_validator("volume")
    @classmethod
    def _non_negative_volume(cls, v: float) -> float:
        return max(v, 0.0)
