"""Historical price retrieval with tiered fallback and persistence.

Architecture
------------
Live data flows through a single choke point:

    Yahoo chart JSON ─┐
                      ├─ HistoricalFetcher ─→ FetchResult
    Stooq daily CSV ──┘

Each provider is an adapter (raw payload → ``PriceBar``) plus a source
(network read). The fetcher tries sources in order via ``first_success``;
the same combinator lets request handlers fall through to ``PriceCache``
and then ``SampleStore`` when every live source fails.
"""

from stock_dashboard.prices.fallback import (
    FallbackResult,
    SourceOutcome,
    attempt,
    first_success,
)
from stock_dashboard.prices.fetcher import HistoricalFetcher, create_fetcher
from stock_dashboard.prices.provider import HistoricalSource, PriceAdapter
from stock_dashboard.prices.samples import SampleStore
from stock_dashboard.prices.stooq import StooqCsvAdapter, StooqCsvSource
from stock_dashboard.prices.store import DEFAULT_COMPANIES, PriceCache, create_cache
from stock_dashboard.prices.yahoo import YahooChartAdapter, YahooChartSource

__all__ = [
    # Protocols
    "PriceAdapter",
    "HistoricalSource",
    # Fallback
    "SourceOutcome",
    "FallbackResult",
    "attempt",
    "first_success",
    # Providers
    "YahooChartAdapter",
    "YahooChartSource",
    "StooqCsvAdapter",
    "StooqCsvSource",
    "HistoricalFetcher",
    "create_fetcher",
    # Persistence
    "PriceCache",
    "DEFAULT_COMPANIES",
    "create_cache",
    "SampleStore",
]
