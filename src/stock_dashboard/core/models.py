"""Pydantic data models — the system's type contracts."""

from __future__ import annotations

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# --- Type Aliases ---

Symbol = str

# --- Enumerations ---


class PriceRange(StrEnum):
    """Chart ranges understood by the dashboard."""

    ONE_MONTH = "1mo"
    THREE_MONTHS = "3mo"
    SIX_MONTHS = "6mo"
    ONE_YEAR = "1y"


class Tier(StrEnum):
    """Data sources in strict fallback order."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    CACHE = "cache"
    SAMPLE = "sample"


# Approximate day counts; a month is 31 days, not a calendar month.
RANGE_DAYS: dict[str, int] = {
    PriceRange.ONE_MONTH: 31,
    PriceRange.THREE_MONTHS: 93,
    PriceRange.SIX_MONTHS: 186,
    PriceRange.ONE_YEAR: 370,
}
DEFAULT_RANGE_DAYS = 186


def range_to_days(range_: str | None) -> int:
    """Map a range string to its day-count window. Unknown ranges → 186."""
    return RANGE_DAYS.get(range_ or "", DEFAULT_RANGE_DAYS)


# --- Price Models ---


class PriceBar(BaseModel):
    """One day's OHLCV record for a symbol.

    Only ``date`` is mandatory. Providers drop bars without a close before
    they get this far, but cached and sample rows may still carry nulls.
    """

    model_config = ConfigDict(frozen=True)

    date: date
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = None
    volume: int | None = None

    @field_validator("volume")
    @classmethod
    def volume_non_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError(f"volume must be >= 0, got {v}")
        return v


class Company(BaseModel):
    """A company the dashboard can chart."""

    model_config = ConfigDict(frozen=True)

    symbol: Symbol
    name: str

    @field_validator("symbol")
    @classmethod
    def symbol_uppercase(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("symbol must not be empty")
        return v


class FetchResult(BaseModel):
    """A non-empty price series and the tier that produced it."""

    model_config = ConfigDict(frozen=True)

    source: Tier
    data: list[PriceBar]


class PriceStats(BaseModel):
    """52-week aggregates. Each field is None when it could not be computed."""

    model_config = ConfigDict(frozen=True)

    high52: float | None = None
    low52: float | None = None
    avg_vol: int | None = None


class PriceSeries(BaseModel):
    """The answer to a price request."""

    model_config = ConfigDict(frozen=True)

    symbol: Symbol
    range: str
    interval: str
    source: Tier | None = None
    data: list[PriceBar] = Field(default_factory=list)
    stats: PriceStats | None = None


class Prediction(BaseModel):
    """Rolling-mean close prediction over the last ``lookback`` closes."""

    model_config = ConfigDict(frozen=True)

    symbol: Symbol
    lookback: int = Field(..., ge=1)
    predicted_close: float
    std: float
