"""Price source and adapter protocols — the provider-agnostic interface layer.

Architecture
------------
Each upstream provider is split in two:

    HTTP response → PriceAdapter → list[PriceBar] → HistoricalSource → Fetcher

- **PriceAdapter** turns one provider's raw payload (chart JSON, CSV text)
  into canonical ``PriceBar`` records. Adapters do no I/O.

- **HistoricalSource** performs the network read for one provider and
  returns a non-empty ``FetchResult`` tagged with its tier, or raises a
  ``ProviderError``. Sources never retry and never fall back on their own;
  ordering is the fetcher's job.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from stock_dashboard.core.models import FetchResult, PriceBar, Tier


@runtime_checkable
class PriceAdapter(Protocol):
    """Transforms one provider's raw response into PriceBar records.

    Returns
    -------
    list[PriceBar]
        Sorted by date ascending. May be empty; raising on emptiness is
        the source's decision.
    """

    def adapt(self, raw_data: Any, symbol: str) -> list[PriceBar]: ...


@runtime_checkable
class HistoricalSource(Protocol):
    """A single live provider of daily price history."""

    name: str
    tier: Tier

    async def fetch(
        self, symbol: str, range_: str = "6mo", interval: str = "1d"
    ) -> FetchResult:
        """Fetch the bars for ``symbol`` over the ``range_`` day window.

        Raises
        ------
        ProviderError
            On transport failure, unexpected schema, or zero usable rows.
        """
        ...
