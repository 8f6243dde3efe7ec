"""API-specific request/response schemas (Pydantic v2)."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from stock_dashboard.core.models import Company, Prediction, PriceSeries


# -- Error --


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    error: str
    detail: str | None = None


# -- Companies --


class CompanyResponse(BaseModel):
    symbol: str
    name: str

    @classmethod
    def from_company(cls, company: Company) -> CompanyResponse:
        return cls(symbol=company.symbol, name=company.name)


# -- Prices --


class PriceBarResponse(BaseModel):
    """One OHLCV bar as the chart expects it."""

    date: date
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = None
    volume: int | None = None


class PriceSeriesResponse(BaseModel):
    """Response for GET /api/prices/{symbol}.

    ``stats`` is ``{high52, low52, avgVol}`` for live data and ``{}``
    otherwise. ``source`` is null when no tier had any data.
    """

    symbol: str
    range: str
    interval: str
    data: list[PriceBarResponse]
    stats: dict[str, float | int | None] = Field(default_factory=dict)
    source: str | None = None

    @classmethod
    def from_series(cls, series: PriceSeries) -> PriceSeriesResponse:
        stats: dict[str, float | int | None] = {}
        if series.stats is not None:
            stats = {
                "high52": series.stats.high52,
                "low52": series.stats.low52,
                "avgVol": series.stats.avg_vol,
            }
        return cls(
            symbol=series.symbol,
            range=series.range,
            interval=series.interval,
            data=[PriceBarResponse(**bar.model_dump()) for bar in series.data],
            stats=stats,
            source=series.source.value if series.source is not None else None,
        )


# -- Prediction --


class PredictionResponse(BaseModel):
    """Response for GET /api/predict/{symbol}."""

    model_config = ConfigDict(populate_by_name=True)

    symbol: str
    lookback: int
    predicted_close: float = Field(..., alias="predictedClose")
    std: float

    @classmethod
    def from_prediction(cls, prediction: Prediction) -> PredictionResponse:
        return cls(
            symbol=prediction.symbol,
            lookback=prediction.lookback,
            predicted_close=prediction.predicted_close,
            std=prediction.std,
        )


# -- Health --


class HealthResponse(BaseModel):
    """Response for GET /health."""

    status: str = "ok"
