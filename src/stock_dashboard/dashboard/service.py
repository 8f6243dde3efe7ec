"""Request handlers: company listing, price series, and prediction.

``DashboardService`` composes the live fetcher, the price cache and the
sample store. Each handler expresses its sourcing as an ordered list of
tiers consumed by ``first_success``:

    price series:  live (primary → secondary) → cache → sample → empty
    prediction:    live 1mo closes → cache closes → sample closes → 400

Data-availability problems never escape ``get_price_series``; the caller
always gets a series, possibly empty.
"""

from __future__ import annotations

import logging

from stock_dashboard.core.exceptions import (
    InsufficientDataError,
    PredictionError,
    StockDashboardError,
    StoreUninitializedError,
)
from stock_dashboard.core.models import (
    Company,
    Prediction,
    PriceRange,
    PriceSeries,
    PriceStats,
    Tier,
)
from stock_dashboard.dashboard.stats import closes_of, compute_52w_stats, rolling_prediction
from stock_dashboard.prices.fallback import attempt, first_success
from stock_dashboard.prices.fetcher import HistoricalFetcher
from stock_dashboard.prices.samples import SampleStore
from stock_dashboard.prices.store import PriceCache

logger = logging.getLogger(__name__)

LIVE = "live"
STATS_RANGE = PriceRange.ONE_YEAR.value
PREDICTION_RANGE = PriceRange.ONE_MONTH.value
DEFAULT_LOOKBACK = 5


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


class DashboardService:
    """Answers the dashboard's three queries.

    Parameters
    ----------
    fetcher : HistoricalFetcher
        Sole gateway to live provider data.
    cache : PriceCache
        Must already be initialized.
    samples : SampleStore
        Canned datasets for when nothing else answers.
    """

    def __init__(
        self,
        fetcher: HistoricalFetcher,
        cache: PriceCache,
        samples: SampleStore,
    ) -> None:
        self._fetcher = fetcher
        self._cache = cache
        self._samples = samples

    # --- Companies ---

    async def list_companies(self) -> list[Company]:
        return await self._cache.list_companies()

    # --- Price series ---

    async def get_price_series(
        self,
        symbol: str,
        range_: str = PriceRange.SIX_MONTHS.value,
        interval: str = "1d",
    ) -> PriceSeries:
        """Price history for ``symbol`` from the first tier that has any."""
        symbol = normalize_symbol(symbol)

        async def live() -> PriceSeries:
            fetched = await self._fetcher.get_historical(symbol, range_, interval)
            await self._cache.upsert_prices(symbol, fetched.data)
            stats = await self._year_stats(symbol)
            return PriceSeries(
                symbol=symbol,
                range=range_,
                interval=interval,
                source=fetched.source,
                data=fetched.data,
                stats=stats,
            )

        async def cached() -> PriceSeries:
            bars = await self._cache.read_prices(symbol)
            return PriceSeries(
                symbol=symbol, range=range_, interval=interval, source=Tier.CACHE, data=bars
            )

        async def sample() -> PriceSeries:
            bars = self._samples.load_sample(symbol)
            return PriceSeries(
                symbol=symbol, range=range_, interval=interval, source=Tier.SAMPLE, data=bars
            )

        result = await first_success(
            [(LIVE, live), (Tier.CACHE, cached), (Tier.SAMPLE, sample)],
            accept=lambda s: bool(s.data),
            fatal=(StoreUninitializedError,),
        )
        if result.winner is None:
            logger.error(
                "No price data for %s from any tier: %s", symbol, result.failures()
            )
            return PriceSeries(symbol=symbol, range=range_, interval=interval)

        series: PriceSeries = result.value
        if series.source in (Tier.CACHE, Tier.SAMPLE):
            logger.warning("Serving %s prices for %s", series.source, symbol)
        return series

    async def _year_stats(self, symbol: str) -> PriceStats:
        """Best-effort 52-week stats. Any failure yields all-None stats."""

        async def compute() -> PriceStats:
            fetched = await self._fetcher.get_historical(symbol, STATS_RANGE, "1d")
            return compute_52w_stats(fetched.data)

        outcome = await attempt("52w-stats", compute)
        return outcome.value if outcome.ok else PriceStats()

    # --- Prediction ---

    async def predict(self, symbol: str, lookback: int = DEFAULT_LOOKBACK) -> Prediction:
        """Rolling-mean next close from the trailing ``lookback`` closes.

        Raises
        ------
        InsufficientDataError
            No tier produced ``lookback`` closes.
        PredictionError
            An unexpected failure, and the sample store could not cover it.
        """
        if lookback < 1:
            raise ValueError(f"lookback must be >= 1, got {lookback}")
        symbol = normalize_symbol(symbol)

        try:
            closes = await self._gather_closes(symbol, lookback)
        except InsufficientDataError:
            raise
        except Exception as e:
            logger.exception("Prediction failed for %s, retrying against samples", symbol)
            closes = self._sample_closes_or_fail(symbol, lookback, e)

        mean, std = rolling_prediction(closes, lookback)
        return Prediction(symbol=symbol, lookback=lookback, predicted_close=mean, std=std)

    async def _gather_closes(self, symbol: str, lookback: int) -> list[float]:
        async def live() -> list[float]:
            fetched = await self._fetcher.get_historical(symbol, PREDICTION_RANGE, "1d")
            return closes_of(fetched.data)

        async def cached() -> list[float]:
            return closes_of(await self._cache.read_prices(symbol))

        async def sample() -> list[float]:
            return closes_of(self._samples.load_sample(symbol))

        result = await first_success(
            [(LIVE, live), (Tier.CACHE, cached), (Tier.SAMPLE, sample)],
            accept=lambda closes: len(closes) >= lookback,
            fatal=(StoreUninitializedError,),
        )
        if result.winner is None:
            available = max((len(a.value) for a in result.attempts if a.ok), default=0)
            raise InsufficientDataError(
                f"Not enough data to predict {symbol}",
                context={"symbol": symbol, "lookback": lookback, "available": available},
            )
        logger.debug("Predicting %s from %s closes", symbol, result.winner.name)
        return result.value

    def _sample_closes_or_fail(
        self, symbol: str, lookback: int, cause: Exception
    ) -> list[float]:
        try:
            closes = closes_of(self._samples.load_sample(symbol))
        except StockDashboardError as e:
            raise PredictionError(
                f"Prediction failed for {symbol}",
                context={"symbol": symbol, "cause": str(cause)},
            ) from e
        if len(closes) < lookback:
            raise PredictionError(
                f"Prediction failed for {symbol}",
                context={"symbol": symbol, "cause": str(cause), "available": len(closes)},
            ) from cause
        return closes
