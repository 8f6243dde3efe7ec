"""Historical data fetcher — the single entry point for live prices.

Tries each configured live source in order (Yahoo, then Stooq by default)
and returns the first non-empty series. Handlers must go through
``HistoricalFetcher.get_historical``; no caller talks to a source directly.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from stock_dashboard.core.config import ProvidersConfig
from stock_dashboard.core.exceptions import NoLiveDataError
from stock_dashboard.core.models import FetchResult
from stock_dashboard.prices.fallback import first_success
from stock_dashboard.prices.provider import HistoricalSource
from stock_dashboard.prices.stooq import StooqCsvSource
from stock_dashboard.prices.yahoo import YahooChartSource

logger = logging.getLogger(__name__)


class HistoricalFetcher:
    """Ordered fallback over live price sources.

    Parameters
    ----------
    sources : sequence of HistoricalSource
        Tried strictly in order. A later source is only called when every
        earlier one raised or returned no bars.
    """

    def __init__(self, sources: Sequence[HistoricalSource]) -> None:
        if not sources:
            raise ValueError("HistoricalFetcher needs at least one source")
        self._sources = list(sources)

    @property
    def sources(self) -> list[HistoricalSource]:
        return list(self._sources)

    async def get_historical(
        self, symbol: str, range_: str = "6mo", interval: str = "1d"
    ) -> FetchResult:
        """Fetch ``symbol`` from the first live source that has data.

        Raises
        ------
        NoLiveDataError
            When every source failed or came back empty.
        """
        strategies = [
            (source.name, _bind(source, symbol, range_, interval))
            for source in self._sources
        ]
        result = await first_success(strategies, accept=lambda r: bool(r.data))
        if result.winner is None:
            raise NoLiveDataError(
                f"No live data from providers for {symbol}",
                context={"symbol": symbol, "attempts": result.failures()},
            )

        fetched: FetchResult = result.value
        logger.info(
            "Fetched %d bars for %s from %s", len(fetched.data), symbol, fetched.source
        )
        return fetched


def _bind(source: HistoricalSource, symbol: str, range_: str, interval: str):
    async def _call() -> FetchResult:
        return await source.fetch(symbol, range_, interval)

    return _call


def create_fetcher(config: ProvidersConfig) -> HistoricalFetcher:
    """Build the default primary → secondary fetcher from configuration."""
    return HistoricalFetcher([YahooChartSource(config), StooqCsvSource(config)])
