"""FastAPI route definitions for the stock-dashboard API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from stock_dashboard.api.deps import get_service
from stock_dashboard.api.schemas import (
    CompanyResponse,
    ErrorResponse,
    HealthResponse,
    PredictionResponse,
    PriceSeriesResponse,
)
from stock_dashboard.core.exceptions import InsufficientDataError, PredictionError
from stock_dashboard.dashboard.service import DEFAULT_LOOKBACK, DashboardService

logger = logging.getLogger(__name__)

router = APIRouter()
health_router = APIRouter()


# -- Health --


@health_router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness probe."""
    return HealthResponse(status="ok")


# -- Companies --


@router.get("/companies", response_model=list[CompanyResponse])
async def list_companies(service: DashboardService = Depends(get_service)):
    """All known companies, ordered by symbol."""
    companies = await service.list_companies()
    return [CompanyResponse.from_company(c) for c in companies]


# -- Prices --


@router.get("/prices/{symbol}", response_model=PriceSeriesResponse)
async def get_prices(
    symbol: str,
    range_: str = Query("6mo", alias="range", description="One of 1mo, 3mo, 6mo, 1y"),
    interval: str = Query("1d", description="Passed through to the primary provider"),
    service: DashboardService = Depends(get_service),
):
    """Price history with 52-week stats, degrading to cache or sample data."""
    series = await service.get_price_series(symbol, range_, interval)
    return PriceSeriesResponse.from_series(series)


# -- Prediction --


@router.get(
    "/predict/{symbol}",
    response_model=PredictionResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def predict(
    symbol: str,
    lookback: int = Query(DEFAULT_LOOKBACK, ge=1),
    service: DashboardService = Depends(get_service),
):
    """Naive next-close prediction: mean and std of the last ``lookback`` closes."""
    try:
        prediction = await service.predict(symbol, lookback)
    except InsufficientDataError as e:
        logger.info("Prediction for %s refused: %s", symbol, e.context)
        return JSONResponse(status_code=400, content={"error": "Not enough data"})
    except PredictionError as e:
        logger.error("Prediction for %s failed: %s", symbol, e.context)
        return JSONResponse(status_code=500, content={"error": "Prediction failed"})
    return PredictionResponse.from_prediction(prediction)
