"""Yahoo Finance chart provider — the primary price tier.

Uses the unauthenticated ``/v8/finance/chart/`` endpoint via httpx. The
response carries parallel arrays (timestamps, opens, highs, lows, closes,
volumes) that the adapter zips into PriceBar records.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any

import httpx

from stock_dashboard.core.config import ProvidersConfig
from stock_dashboard.core.exceptions import EmptyResultError, ProviderError
from stock_dashboard.core.models import FetchResult, PriceBar, Tier, range_to_days

logger = logging.getLogger(__name__)

_CHART_PATH = "/v8/finance/chart"


def _at(values: list[Any] | None, i: int) -> Any:
    """Index into a possibly short or missing array."""
    if not values or i >= len(values):
        return None
    return values[i]


class YahooChartAdapter:
    """Transforms a Yahoo Finance ``chart.result[0]`` object into PriceBars.

    Bars without a close are dropped (holidays, halted sessions). Other
    null fields are kept as None. When several bars fall on the same UTC
    calendar day, the last one wins.
    """

    def adapt(self, raw_data: Any, symbol: str) -> list[PriceBar]:
        timestamps: list[int] = raw_data.get("timestamp") or []
        if not timestamps:
            return []

        quotes = (raw_data.get("indicators", {}).get("quote") or [{}])[0] or {}
        opens = quotes.get("open")
        highs = quotes.get("high")
        lows = quotes.get("low")
        closes = quotes.get("close")
        volumes = quotes.get("volume")

        by_date: dict[date, PriceBar] = {}
        for i, ts in enumerate(timestamps):
            c = _at(closes, i)
            if c is None:
                continue
            o, h, lo, v = _at(opens, i), _at(highs, i), _at(lows, i), _at(volumes, i)
            bar_date = datetime.fromtimestamp(ts, tz=timezone.utc).date()
            by_date[bar_date] = PriceBar(
                date=bar_date,
                open=float(o) if o is not None else None,
                high=float(h) if h is not None else None,
                low=float(lo) if lo is not None else None,
                close=float(c),
                volume=int(v) if v is not None else None,
            )

        return sorted(by_date.values(), key=lambda b: b.date)


class YahooChartSource:
    """Fetches daily history from Yahoo Finance's chart API.

    Parameters
    ----------
    config : ProvidersConfig
        Base URL, user agent and request timeout.
    adapter : YahooChartAdapter | None
        Custom adapter instance. Uses default if None.
    """

    name = "yahoo"
    tier = Tier.PRIMARY

    def __init__(
        self,
        config: ProvidersConfig | None = None,
        adapter: YahooChartAdapter | None = None,
    ) -> None:
        self._config = config or ProvidersConfig()
        self._adapter = adapter or YahooChartAdapter()

    async def _fetch_chart(
        self, symbol: str, period1: int, period2: int, interval: str
    ) -> dict:
        """Fetch the raw ``chart.result[0]`` object for one symbol."""
        url = f"{self._config.yahoo_base_url}{_CHART_PATH}/{symbol}"
        params = {
            "interval": interval,
            "period1": str(period1),
            "period2": str(period2),
        }
        context = {"provider": self.name, "symbol": symbol}

        try:
            async with httpx.AsyncClient(timeout=self._config.timeout) as client:
                resp = await client.get(
                    url,
                    params=params,
                    headers={"User-Agent": self._config.user_agent},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"Yahoo chart HTTP {e.response.status_code} for {symbol}",
                context={**context, "status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            raise ProviderError(
                f"Yahoo chart request failed for {symbol}: {e}", context=context
            ) from e
        except ValueError as e:
            raise ProviderError(
                f"Yahoo chart returned invalid JSON for {symbol}", context=context
            ) from e

        chart = data.get("chart") or {}
        if chart.get("error"):
            err = chart["error"]
            raise ProviderError(
                f"Yahoo chart error for {symbol}: {err.get('code')}: {err.get('description')}",
                context=context,
            )

        results = chart.get("result")
        if not results:
            raise EmptyResultError(
                f"Yahoo chart returned no results for {symbol}", context=context
            )
        return results[0]

    async def fetch(
        self, symbol: str, range_: str = "6mo", interval: str = "1d"
    ) -> FetchResult:
        days = range_to_days(range_)
        period2 = datetime.now(timezone.utc)
        period1 = period2 - timedelta(days=days)

        raw = await self._fetch_chart(
            symbol, int(period1.timestamp()), int(period2.timestamp()), interval
        )
        bars = self._adapter.adapt(raw, symbol)
        if not bars:
            raise EmptyResultError(
                f"Yahoo returned no data for {symbol}",
                context={"provider": self.name, "symbol": symbol},
            )

        logger.debug("Yahoo returned %d bars for %s (%s)", len(bars), symbol, range_)
        return FetchResult(source=self.tier, data=bars)
